"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str
    timestamp: str


@router.get("/health", response_model=HealthResponse, summary="products.health")
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name, version and current time.
    """
    from product_catalog.infrastructure.config import settings

    return HealthResponse(
        status="ok",
        service="product-catalog",
        version=settings.api_version,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/ready")
async def readiness_check() -> dict[str, str]:
    """Check if service is ready to accept requests.

    Returns:
        Readiness status.
    """
    return {"status": "ready"}
