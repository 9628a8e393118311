"""Hungerbox mailbox listing with the caller's stored Google tokens."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from factories import add_user
from firestore_fake import FakeFirestore
from stallsync.api.v1.dependencies.services import get_hungerbox_use_case
from stallsync.application.dtos.imports import MailMessageSummary
from stallsync.application.dtos.oauth import GoogleTokens
from stallsync.application.services.google_oauth_service import GoogleOAuthService
from stallsync.application.services.oauth_state import build_state_id
from stallsync.application.use_cases.imports import ListHungerboxEmailsUseCase
from stallsync.infrastructure.external.google import CredentialEncryptor, OAuthStateManager
from stallsync.infrastructure.firebase.client import FirebaseHandle
from stallsync.infrastructure.firebase.repositories import FirestoreGoogleTokenRepository
from stallsync.shared.utils.datetime import utc_now

QUERY = "from:noreply@hungerbox.com subject:sales"


class _Driver:
    def build_authorization_url(self, state: str) -> str:
        return f"https://accounts.google.com/o/oauth2/v2/auth?state={state}"

    async def exchange_code_for_tokens(self, code: str) -> GoogleTokens:
        return GoogleTokens("gmail-access", "gmail-refresh", "Bearer", "gmail.readonly", utc_now() + timedelta(hours=1))

    async def refresh_access_token(self, refresh_token: str) -> GoogleTokens:
        raise AssertionError("tokens are still fresh")


class StubMailbox:
    """Stands in for Gmail; remembers the tokens and queries it was given."""

    def __init__(self) -> None:
        self.tokens: list[GoogleTokens] = []
        self.queries: list[tuple[str, int]] = []
        self.messages = [
            MailMessageSummary(
                "msg-1", "thread-1", "Hungerbox sales report 01-05-2024", "noreply@hungerbox.com",
                datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc), "Total orders: 42",
            ),
        ]

    def __call__(self, tokens: GoogleTokens) -> "StubMailbox":
        self.tokens.append(tokens)
        return self

    async def list_messages(self, query: str, limit: int = 50) -> list[MailMessageSummary]:
        self.queries.append((query, limit))
        return self.messages[:limit]


@pytest.fixture
def signer() -> OAuthStateManager:
    return OAuthStateManager(secret_key="hungerbox-test-secret")


@pytest.fixture
def oauth(handle: FirebaseHandle, signer: OAuthStateManager) -> GoogleOAuthService:
    tokens = FirestoreGoogleTokenRepository(handle.firestore)
    return GoogleOAuthService(_Driver(), signer, CredentialEncryptor(), tokens, "https://ui.example", 600)


@pytest.fixture
def mailbox(app: FastAPI, oauth: GoogleOAuthService) -> StubMailbox:
    stub = StubMailbox()
    app.dependency_overrides[get_hungerbox_use_case] = lambda: ListHungerboxEmailsUseCase(oauth, stub, QUERY)
    yield stub
    app.dependency_overrides.clear()


async def test_lists_emails_with_stored_tokens(
    client: AsyncClient,
    firestore: FakeFirestore,
    oauth: GoogleOAuthService,
    signer: OAuthStateManager,
    mailbox: StubMailbox,
) -> None:
    headers = add_user(firestore, "staff-1")
    await oauth.handle_callback("code-1", signer.create_signed_state(build_state_id("staff-1")))

    response = await client.post("/api/v1/imports/gmail/hungerbox", params={"limit": 10}, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == QUERY
    assert body["count"] == 1
    assert body["messages"][0]["threadId"] == "thread-1"
    assert body["messages"][0]["subject"].startswith("Hungerbox sales report")
    assert mailbox.queries == [(QUERY, 10)]
    assert mailbox.tokens[0].access_token == "gmail-access"


async def test_without_google_connection_returns_404(
    client: AsyncClient, firestore: FakeFirestore, mailbox: StubMailbox
) -> None:
    headers = add_user(firestore, "staff-1")

    response = await client.post("/api/v1/imports/gmail/hungerbox", headers=headers)

    assert response.status_code == 404
    assert mailbox.queries == []
