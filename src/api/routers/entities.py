# This file builds the versioned CRUD, duplicate, and bulk endpoints for each admin-managed entity.
# It exists so every entity exposes the same list contract without a hand-written router per table.
# Mutations require an admin token and schedule public page revalidation once the store write succeeds.
# The bulk route reads the raw body so malformed JSON is reported as a 400 instead of a schema error.

from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request
from starlette.concurrency import run_in_threadpool

from src.api.auth import get_is_admin, require_admin
from src.api.dependencies import get_entity_services, get_revalidator
from src.api.entities import ENTITY_DEFINITIONS, EntityDefinition
from src.api.revalidation import PageRevalidator
from src.api.schemas.common import (
    BulkMutationRequest,
    BulkMutationResponse,
    DeleteResponse,
    PaginatedResponse,
)
from src.api.services.entity_service import EntityService, EntityServiceRegistry

RegistryDep = Annotated[EntityServiceRegistry, Depends(get_entity_services)]
RevalidatorDep = Annotated[PageRevalidator, Depends(get_revalidator)]
AdminDep = Annotated[bool, Depends(require_admin)]
PayloadDep = Annotated[dict[str, Any], Body()]


def build_entity_router(definition: EntityDefinition) -> APIRouter:
    """Create the router for one entity under `/{slug}`."""

    router = APIRouter(prefix=f"/{definition.slug}", tags=[definition.slug])

    def service_for(registry: EntityServiceRegistry) -> EntityService:
        return registry.for_entity(definition.slug)

    def schedule_revalidation(background_tasks: BackgroundTasks, revalidator: PageRevalidator) -> None:
        if definition.revalidates:
            background_tasks.add_task(revalidator.revalidate_public_pages)

    list_admin_dependency = require_admin if definition.admin_only_list else get_is_admin

    @router.get(
        "",
        response_model=PaginatedResponse | list[dict[str, Any]],
        summary=f"List {definition.slug}",
    )
    def list_entities(
        request: Request,
        registry: RegistryDep,
        is_admin: Annotated[bool, Depends(list_admin_dependency)],
    ) -> Any:
        return service_for(registry).list_records(dict(request.query_params), is_admin=is_admin)

    @router.post(
        "/bulk",
        response_model=BulkMutationResponse,
        summary=f"Bulk mutate {definition.slug}",
        description=f"Supported actions: {', '.join(sorted(definition.bulk_actions))}.",
        openapi_extra={
            "requestBody": {
                "required": True,
                "content": {"application/json": {"schema": BulkMutationRequest.model_json_schema()}},
            }
        },
    )
    async def bulk_mutate_entities(
        request: Request,
        background_tasks: BackgroundTasks,
        registry: RegistryDep,
        revalidator: RevalidatorDep,
        _: AdminDep,
    ) -> dict[str, object]:
        body = await request.body()
        result = await run_in_threadpool(
            service_for(registry).bulk_mutate,
            body,
            on_success=lambda: background_tasks.add_task(revalidator.revalidate_public_pages),
        )
        return {"success": result.success, "affected": result.affected}

    if definition.allows_create:
        create_admin_dependency = get_is_admin if definition.public_create else require_admin

        @router.post("", status_code=201, summary=f"Create {definition.label}")
        def create_entity(
            payload: PayloadDep,
            background_tasks: BackgroundTasks,
            registry: RegistryDep,
            revalidator: RevalidatorDep,
            is_admin: Annotated[bool, Depends(create_admin_dependency)],
        ) -> dict[str, Any]:
            created = service_for(registry).create_record(payload, is_admin=is_admin)
            schedule_revalidation(background_tasks, revalidator)
            return created

    @router.get("/{record_id}", summary=f"Get {definition.label}")
    def get_entity(
        record_id: str,
        registry: RegistryDep,
        is_admin: Annotated[bool, Depends(list_admin_dependency)],
    ) -> dict[str, Any]:
        return service_for(registry).get_record(record_id, is_admin=is_admin)

    @router.patch("/{record_id}", summary=f"Update {definition.label}")
    def update_entity(
        record_id: str,
        payload: PayloadDep,
        background_tasks: BackgroundTasks,
        registry: RegistryDep,
        revalidator: RevalidatorDep,
        _: AdminDep,
    ) -> dict[str, Any]:
        updated = service_for(registry).update_record(record_id, payload)
        schedule_revalidation(background_tasks, revalidator)
        return updated

    @router.delete("/{record_id}", response_model=DeleteResponse, summary=f"Delete {definition.label}")
    def delete_entity(
        record_id: str,
        background_tasks: BackgroundTasks,
        registry: RegistryDep,
        revalidator: RevalidatorDep,
        _: AdminDep,
    ) -> dict[str, object]:
        service_for(registry).delete_record(record_id)
        schedule_revalidation(background_tasks, revalidator)
        return {"success": True}

    if definition.supports_duplicate:

        @router.post("/{record_id}/duplicate", status_code=201, summary=f"Duplicate {definition.label}")
        def duplicate_entity(
            record_id: str,
            background_tasks: BackgroundTasks,
            registry: RegistryDep,
            revalidator: RevalidatorDep,
            _: AdminDep,
        ) -> dict[str, Any]:
            created = service_for(registry).duplicate_record(record_id)
            schedule_revalidation(background_tasks, revalidator)
            return created

    return router


def build_entity_routers() -> list[APIRouter]:
    return [build_entity_router(definition) for definition in ENTITY_DEFINITIONS]
