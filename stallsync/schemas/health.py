"""Health check API schemas."""

from pydantic import Field

from stallsync.schemas.common import CamelModel


class HealthResponse(CamelModel):
    """Response for GET /health (liveness)."""

    status: str = Field(default="ok", description="Service status")
    version: str
    firebase_configured: bool = Field(..., description="Whether Firestore-backed routes are available")
