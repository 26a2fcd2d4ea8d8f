"""Storefront fulfillment FastAPI application.

Processes checkout and order lifecycle commands synchronously via HTTP.
Each request runs inside the ordering domain context; notifications are
handed to the background dispatcher and flushed on shutdown.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notifications.dispatcher import reset_dispatcher
from ordering.domain import ordering
from shared.api import register_exception_handlers
from shared.logging import bind_request, configure_logging, unbind_request

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it. Without a
# domain.toml Protean uses in-memory providers.
configure_logging()
ordering.init()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Storefront API starting", domain=ordering.name)
    yield
    # Wait for scheduled notifications before the process exits.
    reset_dispatcher()
    logger.info("Storefront API stopped")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Fulfillment API",
    description="Checkout, payment confirmation, order lifecycle and customer notification",
    lifespan=lifespan,
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
    """Push the Protean domain context and bind request log fields."""
    bind_request(
        request_id=request.headers.get("X-Request-Id") or uuid4().hex,
        method=request.method,
        path=request.url.path,
        user_id=request.headers.get("X-User-Id"),
    )
    try:
        with ordering.domain_context():
            response = await call_next(request)
    finally:
        unbind_request()
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from inventory.api import inventory_router  # noqa: E402
from ordering.api import order_router  # noqa: E402
from payments.api import payment_router  # noqa: E402

app.include_router(order_router)
app.include_router(payment_router)
app.include_router(inventory_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "ordering": {"name": ordering.name},
            },
        }
    )
