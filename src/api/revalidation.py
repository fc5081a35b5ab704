# This file asks the public site to refresh its cached pages after admin mutations.
# It exists so mutation endpoints only need one no-argument call once a store write succeeds.
# The webhook variant posts locale paths and the cache tag to the site's revalidation hook.
# Failures are logged rather than raised because the mutation itself has already been committed.

from __future__ import annotations

import logging
from typing import Protocol

import requests

from src.api.api_config import ApiConfig

LOGGER = logging.getLogger("revalidation")


class PageRevalidator(Protocol):
    def revalidate_public_pages(self) -> None: ...


class LoggingRevalidator:
    """Used when no revalidation webhook is configured."""

    def __init__(self, *, paths: list[str]) -> None:
        self.paths = paths

    def revalidate_public_pages(self) -> None:
        LOGGER.info("revalidation webhook not configured; skipping paths=%s", ",".join(self.paths))


class WebhookRevalidator:
    def __init__(
        self,
        *,
        url: str,
        paths: list[str],
        cache_tag: str,
        timeout_seconds: int = 5,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.paths = paths
        self.cache_tag = cache_tag
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def revalidate_public_pages(self) -> None:
        payload = {"paths": self.paths, "tags": [self.cache_tag]}
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            LOGGER.warning("revalidation request failed url=%s error=%s", self.url, exc)
            return
        if response.status_code >= 400:
            LOGGER.warning(
                "revalidation rejected url=%s status_code=%s", self.url, response.status_code
            )
            return
        LOGGER.info("revalidated public pages paths=%s", ",".join(self.paths))


def build_revalidator(config: ApiConfig) -> PageRevalidator:
    paths = config.public_page_paths()
    if not config.revalidation_webhook_url:
        return LoggingRevalidator(paths=paths)
    return WebhookRevalidator(
        url=config.revalidation_webhook_url,
        paths=paths,
        cache_tag=config.revalidation_cache_tag,
        timeout_seconds=config.revalidation_timeout_seconds,
    )
