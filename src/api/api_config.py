# This file defines runtime settings for the admin API layer in one place.
# It exists so pagination limits, admin tokens, revalidation targets, and table names can change without code edits.
# The config loader reads environment variables and applies safe defaults for local development.
# It also validates table names so only allow-listed SQL identifiers ever reach the store client.

from __future__ import annotations

import os
import re
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.api.pagination import MAX_PAGE_SIZE

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

ENTITY_TABLE_NAMES: frozenset[str] = frozenset(
    {
        "skills",
        "skill_categories",
        "projects",
        "project_skills",
        "experience",
        "education",
        "hobbies",
        "testimonials",
        "social_links",
        "contact_messages",
    }
)


class ApiConfig(BaseModel):
    """Typed API runtime configuration."""

    model_config = ConfigDict(extra="ignore")

    api_name: str = "Portfolio Admin API"
    api_version_path: str = "/api/v1"
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "local"
    database_url: str
    default_page_size: int = 10
    max_page_size: int = MAX_PAGE_SIZE
    max_search_length: int = 120
    allowed_origins: list[str] = Field(default_factory=list)
    admin_api_tokens: list[str] = Field(default_factory=list)
    revalidation_webhook_url: str | None = None
    revalidation_timeout_seconds: int = 5
    revalidation_cache_tag: str = "portfolio-public"
    supported_locales: list[str] = Field(default_factory=lambda: ["en", "fr"])
    app_version: str = "0.1.0"
    allowed_table_names: set[str] = Field(default_factory=lambda: set(ENTITY_TABLE_NAMES))

    @field_validator("api_version_path")
    @classmethod
    def validate_api_version_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("api_version_path must start with '/'.")
        parts = [part for part in value.split("/") if part]
        if len(parts) < 2 or parts[-1].startswith("v") is False:
            raise ValueError("api_version_path must look like '/api/v1'.")
        return value.rstrip("/")

    @field_validator(
        "default_page_size",
        "max_page_size",
        "max_search_length",
        "revalidation_timeout_seconds",
    )
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Value must be greater than 0.")
        return value

    @field_validator("allowed_table_names")
    @classmethod
    def validate_table_allowlist(cls, value: set[str]) -> set[str]:
        for table_name in value:
            if not _IDENTIFIER_RE.match(table_name):
                raise ValueError(f"Unsafe SQL identifier in allowlist: {table_name!r}")
        return value

    @model_validator(mode="after")
    def validate_page_size_bounds(self) -> ApiConfig:
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size must be <= max_page_size.")
        if self.max_page_size > MAX_PAGE_SIZE:
            raise ValueError(f"max_page_size must be <= {MAX_PAGE_SIZE}.")
        return self

    def api_version_label(self) -> str:
        return self.api_version_path.rstrip("/").split("/")[-1]

    def validate_table_name(self, table_name: str) -> str:
        if not _IDENTIFIER_RE.match(table_name):
            raise ValueError(f"Unsafe SQL identifier: {table_name!r}")
        if table_name not in self.allowed_table_names:
            raise ValueError(f"Table name is not in allowlist: {table_name!r}")
        return table_name

    def public_page_paths(self) -> list[str]:
        paths: list[str] = []
        for locale in self.supported_locales:
            paths.append(f"/{locale}")
            paths.append(f"/{locale}/admin")
        return paths


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_list(name: str, default: list[str] | None = None) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_api_config(*, load_env: bool = True) -> ApiConfig:
    """Load API configuration from `.env` and process environment."""

    if load_env:
        load_dotenv()

    config_values: dict[str, object] = {
        "api_name": os.getenv("API_NAME", "Portfolio Admin API"),
        "api_version_path": os.getenv("API_VERSION_PATH", "/api/v1"),
        "host": os.getenv("API_HOST", "0.0.0.0"),
        "port": _env_int("API_PORT", 8000),
        "environment": os.getenv("ENV", "local"),
        "database_url": os.getenv("DATABASE_URL", ""),
        "default_page_size": _env_int("API_DEFAULT_PAGE_SIZE", 10),
        "max_page_size": _env_int("API_MAX_PAGE_SIZE", MAX_PAGE_SIZE),
        "max_search_length": _env_int("API_MAX_SEARCH_LENGTH", 120),
        "allowed_origins": _env_list("API_ALLOWED_ORIGINS", []),
        "admin_api_tokens": _env_list("ADMIN_API_TOKENS", []),
        "revalidation_webhook_url": os.getenv("REVALIDATION_WEBHOOK_URL") or None,
        "revalidation_timeout_seconds": _env_int("REVALIDATION_TIMEOUT_SECONDS", 5),
        "revalidation_cache_tag": os.getenv("REVALIDATION_CACHE_TAG", "portfolio-public"),
        "supported_locales": _env_list("SUPPORTED_LOCALES", ["en", "fr"]),
        "app_version": os.getenv("APP_VERSION", "0.1.0"),
    }
    if not config_values["database_url"]:
        raise RuntimeError("DATABASE_URL is required for API startup.")

    allowed_table_names = set(ENTITY_TABLE_NAMES)
    allowed_table_names.update(_env_list("API_ALLOWED_TABLE_NAMES", []))
    config_values["allowed_table_names"] = allowed_table_names

    return ApiConfig.model_validate(config_values)


@lru_cache(maxsize=1)
def get_api_config() -> ApiConfig:
    """Cached accessor for API config."""

    return load_api_config()
