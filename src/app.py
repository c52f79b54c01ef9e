"""OrderDesk FastAPI application.

Processes commands synchronously via HTTP. Every request under a known
prefix runs inside the OrderDesk domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (handlers fire in the request)
#   - "production" → event_processing = "async" (handlers fire via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from orderdesk.domain import orderdesk
from orderdesk.utils.logging import configure_logging

configure_logging()
orderdesk.init()

_DOMAIN_PREFIXES = ("/orders", "/inventory", "/allocations", "/catalog")

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="OrderDesk API",
    description="B2B order fulfillment — ingestion, order status, stock ledger, allocations",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the OrderDesk domain context for domain routes."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with orderdesk.domain_context():
            return await call_next(request)
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from orderdesk.api import (  # noqa: E402
    allocation_router,
    catalog_router,
    inventory_router,
    order_router,
    register_error_handlers,
)

app.include_router(order_router)
app.include_router(inventory_router)
app.include_router(allocation_router)
app.include_router(catalog_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": orderdesk.name})
