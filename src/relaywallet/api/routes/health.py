"""Health check endpoints."""

from fastapi import APIRouter, Request

from relaywallet import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "relaywallet"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Detailed health check with configuration info."""
    settings = request.app.state.settings
    service = request.app.state.wallet_service
    return {
        "status": "healthy",
        "service": "relaywallet",
        "version": __version__,
        "transfers_enabled": service.can_transfer,
        "config": settings.get_safe_dict(),
    }
