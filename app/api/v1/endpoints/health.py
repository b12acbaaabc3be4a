"""Health check endpoints."""

from fastapi import APIRouter, Request, status
from pydantic import BaseModel

from app.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response model."""

    status: str
    version: str
    environment: str
    mongodb: str
    rabbitmq: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Detailed health check",
)
async def detailed_health_check(request: Request) -> DetailedHealthResponse:
    """
    Detailed health check with MongoDB and RabbitMQ status.

    Components that are not configured for this run (in-memory storage,
    publishing disabled) are reported as "disabled".

    Returns:
        Detailed health status including dependencies
    """
    mongo_client = getattr(request.app.state, "mongo_client", None)
    rabbitmq_client = getattr(request.app.state, "rabbitmq_client", None)

    mongodb = "disabled"
    if mongo_client is not None:
        mongodb = "healthy" if await mongo_client.health_check() else "unhealthy"

    rabbitmq = "disabled"
    if rabbitmq_client is not None:
        rabbitmq = "healthy" if await rabbitmq_client.health_check() else "unhealthy"

    return DetailedHealthResponse(
        status="degraded" if "unhealthy" in (mongodb, rabbitmq) else "healthy",
        version=settings.app_version,
        environment=settings.environment,
        mongodb=mongodb,
        rabbitmq=rabbitmq,
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """
    Simple ping endpoint.

    Returns:
        Pong response
    """
    return {"message": "pong"}
