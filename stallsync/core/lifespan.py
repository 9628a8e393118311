"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (Firebase handle, shared HTTP
client, WebSocket manager, live query subscriber, telemetry).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from stallsync.api.websocket import ConnectionManager
from stallsync.core.config import get_settings
from stallsync.infrastructure.firebase.client import close_firebase, init_firebase
from stallsync.infrastructure.firebase.services.listeners import PollingQuerySubscriber
from stallsync.shared.telemetry.logging import setup_logging
from stallsync.shared.telemetry.telemetry import TelemetryConfig, get_telemetry, set_telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, Firebase handle (None when not configured),
    shared OAuth HTTP client, WebSocket manager, telemetry (if enabled).
    Shutdown closes them in reverse.
    """
    settings = get_settings()

    # ---- Startup ----
    setup_logging()
    app.state.firebase = init_firebase()
    # Shared HTTP client for Google OAuth token calls (connection reuse).
    app.state.oauth_http_client = httpx.AsyncClient(timeout=30.0)
    app.state.ws_manager = ConnectionManager()
    app.state.stock_subscriber = PollingQuerySubscriber(settings.live_query_poll_seconds)

    if settings.telemetry_enabled:
        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.telemetry_environment,
        )
        telemetry.setup(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument(app)
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    await app.state.ws_manager.close_all()
    logger.info("Live stock subscriptions stopped")

    if getattr(app.state, "oauth_http_client", None) is not None:
        await app.state.oauth_http_client.aclose()
        app.state.oauth_http_client = None
        logger.info("OAuth HTTP client closed")

    await close_firebase()
    app.state.firebase = None

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
        logger.info("Telemetry shutdown complete")
