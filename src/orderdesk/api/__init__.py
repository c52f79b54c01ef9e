from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from orderdesk.api.routes import allocation_router, catalog_router, inventory_router, order_router
from orderdesk.errors import ConcurrencyConflict

__all__ = [
    "allocation_router",
    "catalog_router",
    "inventory_router",
    "order_router",
    "register_error_handlers",
]


async def _concurrency_conflict_handler(request: Request, exc: ConcurrencyConflict) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses."""
    register_exception_handlers(app)
    app.add_exception_handler(ConcurrencyConflict, _concurrency_conflict_handler)
