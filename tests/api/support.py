# This file provides shared helpers for API endpoint tests.
# It exists so tests can override the store client and revalidation hook without touching real databases.
# The helpers build consistent config objects and scoped TestClient contexts.
# Centralized test wiring keeps API tests small and focused on behavior.

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi.testclient import TestClient

from src.api.api_config import ENTITY_TABLE_NAMES, ApiConfig
from src.api.app import app
from src.api.dependencies import get_config, get_database_client, get_revalidator

ADMIN_TOKEN = "test-admin-token"
ADMIN_HEADERS = {"Authorization": f"Bearer {ADMIN_TOKEN}"}


def build_test_config(**overrides: Any) -> ApiConfig:
    """Create deterministic API config for tests."""

    values: dict[str, Any] = {
        "api_name": "Test Portfolio API",
        "api_version_path": "/api/v1",
        "host": "0.0.0.0",
        "port": 8000,
        "environment": "test",
        "database_url": "sqlite+pysqlite:///:memory:",
        "default_page_size": 10,
        "max_page_size": 100,
        "allowed_origins": [],
        "admin_api_tokens": [ADMIN_TOKEN],
        "revalidation_webhook_url": None,
        "supported_locales": ["en", "fr"],
        "app_version": "0.1.0",
        "allowed_table_names": set(ENTITY_TABLE_NAMES),
    }
    values.update(overrides)
    return ApiConfig(**values)


class FakeDBClient:
    """Simple fake DB dependency for health/readiness endpoint tests."""

    def __init__(self, *, connected: bool = True, existing_tables: set[str] | None = None) -> None:
        self._connected = connected
        self._tables = set(ENTITY_TABLE_NAMES) if existing_tables is None else existing_tables

    def can_connect(self) -> bool:
        return self._connected

    def table_exists(self, table_name: str) -> bool:
        return self._connected and table_name in self._tables


class RecordingRevalidator:
    def __init__(self) -> None:
        self.calls = 0

    def revalidate_public_pages(self) -> None:
        self.calls += 1


@contextmanager
def api_test_client(
    *,
    config: ApiConfig | None = None,
    db_client: Any | None = None,
    revalidator: RecordingRevalidator | None = None,
) -> Iterator[TestClient]:
    """Yield a TestClient with scoped dependency overrides."""

    resolved_config = config or build_test_config()
    resolved_revalidator = revalidator or RecordingRevalidator()

    app.dependency_overrides[get_config] = lambda: resolved_config
    app.dependency_overrides[get_revalidator] = lambda: resolved_revalidator
    if db_client is not None:
        app.dependency_overrides[get_database_client] = lambda: db_client

    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
