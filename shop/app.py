"""
Main FastAPI application for the shop service.

This file wires together all layers:
- Models: Order entity graph and its invariants
- Repositories: Data access and association loading
- Services: Use cases and order listing strategies
- Routers: HTTP endpoints
"""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import settings
from .database import init_db
from .domain.exceptions import (
    AssociationNotLoadedException,
    ConcurrentModificationException,
    DuplicateMemberException,
    EntityNotFoundException,
    NotEnoughStockException,
    OrderAlreadyCancelledException,
    OrderAlreadyDeliveredException,
    ShopServiceException,
    ValidationException,
)
from .logging_config import setup_logging
from .metrics import metrics_endpoint, track_request_metrics
from .metrics_middleware import PrometheusMiddleware
from .routers import (
    health_router,
    item_router,
    member_router,
    order_api_router,
    order_router,
    order_simple_api_router,
)

setup_logging(settings.LOG_LEVEL, settings.APP_NAME)
logger = structlog.get_logger(__name__)

# Domain exception -> (HTTP status, error code)
EXCEPTION_STATUS = {
    NotEnoughStockException: (status.HTTP_400_BAD_REQUEST, "not_enough_stock"),
    ValidationException: (status.HTTP_400_BAD_REQUEST, "validation_error"),
    EntityNotFoundException: (status.HTTP_404_NOT_FOUND, "not_found"),
    DuplicateMemberException: (status.HTTP_409_CONFLICT, "duplicate_member"),
    OrderAlreadyDeliveredException: (status.HTTP_409_CONFLICT, "order_already_delivered"),
    OrderAlreadyCancelledException: (status.HTTP_409_CONFLICT, "order_already_cancelled"),
    ConcurrentModificationException: (status.HTTP_409_CONFLICT, "concurrent_modification"),
    AssociationNotLoadedException: (status.HTTP_500_INTERNAL_SERVER_ERROR, "association_not_loaded"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting shop service", version=__version__)

    try:
        init_db()
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    logger.info("Shop service started successfully")

    yield

    logger.info("Shop service shut down complete")


# Create FastAPI app
app = FastAPI(
    title="Shop Service",
    description="Members, items and orders, with side-by-side order query strategies",
    version=__version__,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware
app.add_middleware(PrometheusMiddleware, track_func=track_request_metrics)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID for distributed tracing."""
    request_id = request.headers.get("X-Request-ID") or f"req-{uuid.uuid4().hex[:12]}"

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


# Include routers
app.include_router(health_router.router)
app.include_router(member_router.router)
app.include_router(item_router.router)
app.include_router(order_router.router)
app.include_router(order_api_router.router)
app.include_router(order_simple_api_router.router)

# Prometheus metrics endpoint
app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": settings.APP_NAME,
        "version": __version__,
        "status": "operational",
        "docs": "/api/docs",
        "health": "/api/health",
        "ready": "/api/ready",
    }


@app.exception_handler(ShopServiceException)
async def shop_exception_handler(request: Request, exc: ShopServiceException):
    """Translate domain exceptions into error responses."""
    status_code, error = next(
        (mapped for exc_type, mapped in EXCEPTION_STATUS.items() if isinstance(exc, exc_type)),
        (status.HTTP_500_INTERNAL_SERVER_ERROR, "shop_error"),
    )

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Request failed",
        path=request.url.path,
        method=request.method,
        error=error,
        message=exc.message,
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": exc.message,
            "details": exc.details,
        },
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "details": {},
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "shop.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
