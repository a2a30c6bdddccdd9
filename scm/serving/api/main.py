"""
FastAPI Application Factory

Creates and configures the API application: middleware, error mapping
and routers.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from scm.config import get_settings
from scm.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    SCMError,
    TransactionFailureError,
)
from scm.serving.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from scm.serving.api.routes import (
    analytics_router,
    dashboard_router,
    health_router,
    orders_router,
    products_router,
    suppliers_router,
)

settings = get_settings()
logger = structlog.get_logger(__name__)


# =============================================================================
# ERROR MAPPING
# =============================================================================

async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=exc.to_dict())


async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    logger.info("Rejected invalid input", path=request.url.path, error=exc.code, detail=exc.message)
    return JSONResponse(status_code=400, content=exc.to_dict())


async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    logger.info("Rejected conflicting request", path=request.url.path, detail=exc.message)
    return JSONResponse(status_code=409, content=exc.to_dict())


async def transaction_failure_handler(request: Request, exc: TransactionFailureError) -> JSONResponse:
    logger.error("Transaction failure", path=request.url.path, operation=exc.operation, reason=exc.reason)
    return JSONResponse(status_code=503, content=exc.to_dict(), headers={"Retry-After": "1"})


async def scm_error_handler(request: Request, exc: SCMError) -> JSONResponse:
    logger.error("Unhandled service error", path=request.url.path, error=exc.code, detail=exc.message)
    return JSONResponse(status_code=500, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Map the service error hierarchy to HTTP responses."""
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(InvalidInputError, invalid_input_handler)
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(TransactionFailureError, transaction_failure_handler)
    app.add_exception_handler(SCMError, scm_error_handler)


# =============================================================================
# FACTORY
# =============================================================================

def create_api_app(lifespan: Optional[object] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        lifespan: Optional lifespan context manager (startup/shutdown)

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Supply-Chain Order API",
        description="Purchase orders, inventory and financial reporting for a supply-chain operation",
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.security.rate_limit_requests,
        window_seconds=settings.security.rate_limit_window_seconds,
    )

    register_exception_handlers(app)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(suppliers_router, prefix="/api/v1/suppliers", tags=["Suppliers"])
    app.include_router(products_router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])
    app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])

    return app
