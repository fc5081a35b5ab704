# This file marks the services package for entity store logic.
# Routers depend on these services instead of composing store queries themselves.
