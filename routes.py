"""
API routers.

Every endpoint is one store call. `run_store_call` is the single place
where store errors become HTTP responses:

    ValidationError -> 400
    NotFoundError   -> 404
    StoreError      -> 500

Each response body on failure is `{"message": "<human readable text>"}`.
"""

from typing import Any, Callable

from fastapi import APIRouter, Body
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from database import MongoStore
from errors import NotFoundError, StoreError, ValidationError
from logging_config import get_logger
from schemas import Entity

logger = get_logger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def run_store_call(
    operation: Callable[[], Any],
    *,
    entity: Entity,
    action: str,
    failure_message: str,
    status_code: int = 200,
) -> JSONResponse:
    """Run `operation` and serialize its result, or translate its error."""
    event = f"{entity.name.lower()}_{action}_failed"
    try:
        result = operation()
    except NotFoundError as exc:
        logger.info(event, error=str(exc))
        return error_response(404, str(exc))
    except ValidationError as exc:
        logger.warning(event, error=str(exc), errors=exc.errors)
        return error_response(400, failure_message)
    except StoreError as exc:
        logger.error(event, error=str(exc))
        return error_response(500, failure_message)
    try:
        return JSONResponse(status_code=status_code, content=jsonable_encoder(result))
    except ValueError as exc:
        # Documents written elsewhere may hold NaN/Infinity, which JSON cannot carry.
        logger.error(event, error=f"Response is not valid JSON: {exc}")
        return error_response(500, failure_message)


def create_entity_router(
    store: MongoStore,
    entity: Entity,
    *,
    update_method: str = "PUT",
    update_not_found: bool = True,
    allow_delete: bool = False,
) -> APIRouter:
    """Build the CRUD router for one entity under /api/<collection>.

    Args:
        store: connected document store
        entity: entity definition (collection, schema, sort field)
        update_method: "PUT" or "PATCH" for the item update route
        update_not_found: answer 404 when the update matches nothing;
            otherwise the route answers 200 with a JSON null
        allow_delete: expose DELETE on the item route
    """
    router = APIRouter(prefix=f"/api/{entity.collection}")
    singular = entity.name.lower()
    plural = entity.collection

    def list_documents():
        return run_store_call(
            lambda: store.list_all(entity),
            entity=entity,
            action="fetch",
            failure_message=f"Failed to fetch {plural}",
        )

    def create_document(payload: Any = Body(None)):
        return run_store_call(
            lambda: store.insert(entity, {} if payload is None else payload),
            entity=entity,
            action="save",
            failure_message=f"Failed to save {singular}",
            status_code=201,
        )

    def update_document(document_id: str, payload: Any = Body(None)):
        def operation():
            updated = store.update_by_id(
                entity,
                document_id,
                {} if payload is None else payload,
                return_updated=True,
                validate=True,
            )
            if updated is None and update_not_found:
                raise NotFoundError(f"{entity.name} not found")
            return updated

        return run_store_call(
            operation,
            entity=entity,
            action="update",
            failure_message=f"Failed to update {singular}",
        )

    def delete_document(document_id: str):
        def operation():
            if not store.delete_by_id(entity, document_id):
                raise NotFoundError(f"{entity.name} not found")
            return {"message": f"{entity.name} deleted successfully"}

        return run_store_call(
            operation,
            entity=entity,
            action="delete",
            failure_message=f"Failed to delete {singular}",
        )

    router.add_api_route("", list_documents, methods=["GET"], name=f"list_{plural}")
    router.add_api_route("", create_document, methods=["POST"], name=f"create_{singular}")
    router.add_api_route(
        "/{document_id}", update_document, methods=[update_method], name=f"update_{singular}"
    )
    if allow_delete:
        router.add_api_route(
            "/{document_id}", delete_document, methods=["DELETE"], name=f"delete_{singular}"
        )
    return router


def create_health_router(store: MongoStore) -> APIRouter:
    router = APIRouter()

    @router.get("/api/health")
    def health() -> dict:
        return {
            "backend": "running",
            "database": "connected" if store.is_connected else "disconnected",
        }

    return router


def create_api_router(store: MongoStore, project: Entity, message: Entity) -> APIRouter:
    """Projects get PUT and DELETE; messages get PATCH only and no DELETE."""
    router = APIRouter()
    router.include_router(
        create_entity_router(store, project, update_method="PUT", allow_delete=True),
        tags=["projects"],
    )
    router.include_router(
        create_entity_router(store, message, update_method="PATCH", update_not_found=False),
        tags=["messages"],
    )
    router.include_router(create_health_router(store), tags=["health"])
    return router
