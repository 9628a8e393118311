"""Pytest configuration and fixtures for stallsync.

HTTP tests run the app in-process through ``httpx.ASGITransport``; Firestore
and Firebase Auth are served by the in-memory fakes in ``firestore_fake``
so the real REST clients are exercised. ID tokens are ``token-<uid>``.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-stallsync")
os.environ.setdefault("ENCRYPTION_SALT", "test-encryption-salt")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from firestore_fake import FakeFirebase, FakeFirestore  # noqa: E402
from stallsync.api.websocket import ConnectionManager  # noqa: E402
from stallsync.core.config import get_settings  # noqa: E402
from stallsync.infrastructure.firebase.client import FirebaseHandle  # noqa: E402
from stallsync.infrastructure.firebase.services.listeners import (  # noqa: E402
    PollingQuerySubscriber,
)
from stallsync.main import create_app  # noqa: E402

get_settings.cache_clear()


def _verify_test_token(token, request, audience):
    if not token.startswith("token-"):
        raise ValueError("Token used too late or malformed")
    uid = token.removeprefix("token-")
    return {"user_id": uid, "sub": uid, "aud": audience}


@pytest.fixture(autouse=True)
def fake_token_verification(monkeypatch: pytest.MonkeyPatch) -> None:
    """Accept ``token-<uid>`` as a valid Firebase ID token for uid."""
    monkeypatch.setattr(
        "stallsync.infrastructure.firebase.identity.google_id_token.verify_firebase_token",
        _verify_test_token,
    )


@pytest.fixture
def fake_firebase() -> FakeFirebase:
    return FakeFirebase()


@pytest.fixture
def firestore(fake_firebase: FakeFirebase) -> FakeFirestore:
    """Direct access to the stored documents for arranging and asserting."""
    return fake_firebase.firestore


@pytest.fixture
async def handle(fake_firebase: FakeFirebase) -> FirebaseHandle:
    yield fake_firebase.handle()
    await fake_firebase.aclose()


@pytest.fixture
def app(handle: FirebaseHandle) -> FastAPI:
    application = create_app()
    application.state.firebase = handle
    application.state.ws_manager = ConnectionManager()
    application.state.stock_subscriber = PollingQuerySubscriber(0.01)
    application.state.oauth_http_client = None
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
