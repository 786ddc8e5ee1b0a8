from fastapi import APIRouter

from ctiengine.core.config import settings

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check() -> dict:
    """
    Simple liveness / readiness check.
    """
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }
