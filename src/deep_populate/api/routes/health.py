from fastapi import APIRouter, Depends, Response, status

from deep_populate.api.dependencies import get_database
from deep_populate.api.schemas import HealthResponse, ReadinessResponse
from deep_populate.core.ports.database import ContentDatabase

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@router.get("/healthz/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse()


@router.get("/healthz/ready", response_model=ReadinessResponse)
async def readiness(
    response: Response,
    db: ContentDatabase = Depends(get_database),
) -> ReadinessResponse:
    """Readiness probe that checks DB connectivity."""
    if await db.ping():
        return ReadinessResponse(status="ok", database="up")
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="degraded", database="down")
