# This file provides dependency factories for FastAPI routes and middleware.
# It exists so the store client and revalidation hook are created once and shared through dependency injection.
# Entity services are built per request from the injected config and store client.
# Tests override these factories to swap in fakes without touching real databases.

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.api.api_config import ApiConfig, get_api_config
from src.api.db_access import DatabaseClient
from src.api.revalidation import PageRevalidator, build_revalidator
from src.api.services.entity_service import EntityServiceRegistry


@lru_cache(maxsize=1)
def get_database_client() -> DatabaseClient:
    config = get_api_config()
    return DatabaseClient(
        database_url=config.database_url,
        allowed_table_names=config.allowed_table_names,
    )


@lru_cache(maxsize=1)
def get_revalidator() -> PageRevalidator:
    return build_revalidator(get_api_config())


def get_config() -> ApiConfig:
    return get_api_config()


def get_entity_services(
    config: Annotated[ApiConfig, Depends(get_config)],
    db: Annotated[DatabaseClient, Depends(get_database_client)],
) -> EntityServiceRegistry:
    return EntityServiceRegistry(config=config, db=db)
