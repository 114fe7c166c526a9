# storefront/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.data.database import Base, engine
from storefront.api.routers import (
    analytics,
    carts,
    health,
    orders,
    products,
    reports,
    users,
    webhooks,
)
from storefront.domain.errors import (
    AuthenticityError,
    ConcurrencyExhausted,
    ConflictError,
    GatewayError,
    NotFoundError,
    StorefrontError,
    ValidationError,
)
from storefront.utils.settings import APP_NAME
from storefront.utils.logging import get_logger

# IMPORT WSZYSTKICH MODELI PRZED CREATE_ALL
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)

_STATUS_CODES = (
    (ValidationError, 400),
    (AuthenticityError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (GatewayError, 502),
    (ConcurrencyExhausted, 503),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:
        logger.exception("Failed to create database tables")
        raise
    logger.info("Database tables ready")
    yield


async def storefront_error_handler(request: Request, exc: StorefrontError):
    # routery tlumacza bledy same, tu laduje tylko to co przeoczyly
    status_code = next((code for cls, code in _STATUS_CODES if isinstance(exc, cls)), 500)
    logger.warning(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
    detail = str(exc) if status_code < 500 else "Service temporarily unavailable, please try again"
    return JSONResponse(status_code=status_code, content={"detail": detail})


def create_app() -> FastAPI:
    app = FastAPI(
        title=APP_NAME,
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(StorefrontError, storefront_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(webhooks.router)
    app.include_router(analytics.router)
    app.include_router(reports.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
