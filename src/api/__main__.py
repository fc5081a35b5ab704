# This file runs the admin API under uvicorn with `python -m src.api`.
# Host and port come from the same API config the application reads at startup.

from __future__ import annotations

import logging

import uvicorn

from src.api.api_config import get_api_config
from src.api.app import app

LOGGER = logging.getLogger("admin")


def main() -> None:
    config = get_api_config()
    LOGGER.info("serving %s on %s:%s", config.api_name, config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
