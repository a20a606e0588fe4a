"""Health check endpoint for the Seafile proxy."""

from fastapi import APIRouter

from seafile_proxy.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Does not call Seafile; the session was verified at startup.

    Returns:
        dict: Health status response with status, service, and version fields
    """
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
    }
