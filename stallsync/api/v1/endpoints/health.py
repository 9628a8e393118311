"""Health check endpoint. No authentication; used for liveness probes."""

from fastapi import APIRouter, Request

from stallsync.core.config import get_settings
from stallsync.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Return ok plus whether Firebase-backed routes are available."""
    return HealthResponse(
        version=get_settings().app_version,
        firebase_configured=getattr(request.app.state, "firebase", None) is not None,
    )
