"""
Package marker for the portfolio admin API source tree under `src`.
It keeps `src.api` and `src.common` importable under one stable root.
"""
