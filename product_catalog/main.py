"""Product catalog service main application module.

This module initializes the FastAPI application and configures
core middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from product_catalog.api.allergens import router as allergens_router
from product_catalog.api.categories import router as categories_router
from product_catalog.api.health import router as health_router
from product_catalog.api.middleware import setup_middleware
from product_catalog.api.products import router as products_router
from product_catalog.domain.exceptions import CatalogError
from product_catalog.infrastructure.config import settings
from product_catalog.infrastructure.database import dispose_engine
from product_catalog.infrastructure.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    # Startup
    configure_logging()
    logger.info(
        "Starting product catalog service",
        version=settings.api_version,
        debug=settings.debug,
        store_backend=settings.store_backend,
        classifier_configured=bool(settings.gemini_api_key),
    )

    yield

    # Shutdown
    logger.info("Shutting down product catalog service")
    if settings.store_backend == "sql":
        await dispose_engine()


app = FastAPI(
    title="Product Catalog",
    description="Multi-tenant product catalog with AI-assisted classification",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(products_router)
app.include_router(categories_router)
app.include_router(allergens_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def _error_content(
    request: Request, error_code: str, message: str, details: object
) -> dict[str, object]:
    return {
        "error_code": error_code,
        "message": message,
        "details": details,
        "request_id": getattr(request.state, "request_id", None),
    }


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Render catalog errors with their status code."""
    if exc.status_code >= 500:
        logger.error(
            "Catalog operation failed",
            path=request.url.path,
            error_code=exc.error_code,
            error=exc.message,
        )
    else:
        logger.info(
            "Catalog request rejected",
            path=request.url.path,
            error_code=exc.error_code,
            error=exc.message,
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, exc.error_code, exc.message, exc.details),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", [])
    else:
        error_code = "ERROR"
        message = str(detail)
        details = []

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, error_code, message, details),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )

    return JSONResponse(
        status_code=500,
        content=_error_content(
            request, "INTERNAL_ERROR", "An internal error occurred", []
        ),
    )
