"""Signed OAuth state: OAuthStateManager and the uid:issued_at:nonce id."""

from datetime import datetime, timedelta, timezone

import pytest

from stallsync.application.services.oauth_state import (
    StateExpiredError,
    build_state_id,
    parse_state_id,
)
from stallsync.infrastructure.external.google.state import OAuthStateManager


@pytest.fixture
def oauth_state_manager() -> OAuthStateManager:
    """OAuthStateManager with a fixed secret for deterministic tests."""
    return OAuthStateManager(secret_key="test-secret-key-for-oauth-state-signing")


def test_create_signed_state_and_verify_roundtrip(oauth_state_manager: OAuthStateManager) -> None:
    signed = oauth_state_manager.create_signed_state("simple-state-id")
    assert oauth_state_manager.verify_and_extract(signed) == "simple-state-id"


def test_state_id_containing_colon_roundtrip(oauth_state_manager: OAuthStateManager) -> None:
    """state_id may contain colons; verify_and_extract uses rsplit so it still works."""
    state_id = build_state_id("user-1")
    signed = oauth_state_manager.create_signed_state(state_id)
    assert oauth_state_manager.verify_and_extract(signed) == state_id


def test_verify_and_extract_invalid_format_rejects(oauth_state_manager: OAuthStateManager) -> None:
    with pytest.raises(ValueError, match="Invalid state format"):
        oauth_state_manager.verify_and_extract("no-colon-here")


def test_tampered_signature_rejects(oauth_state_manager: OAuthStateManager) -> None:
    signed = oauth_state_manager.create_signed_state("user-1:1700000000:nonce")
    with pytest.raises(ValueError, match="Invalid state signature"):
        oauth_state_manager.verify_and_extract(signed[:-1] + ("0" if signed[-1] != "0" else "1"))


def test_state_signed_with_other_secret_rejects(oauth_state_manager: OAuthStateManager) -> None:
    other = OAuthStateManager(secret_key="a-different-secret")
    with pytest.raises(ValueError):
        oauth_state_manager.verify_and_extract(other.create_signed_state("user-1:1:n"))


def test_parse_state_id_returns_uid_within_max_age() -> None:
    issued = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    state_id = build_state_id("user-1", issued_at=issued)

    parsed = parse_state_id(state_id, 600, now=issued + timedelta(seconds=599))

    assert parsed.uid == "user-1"
    assert parsed.issued_at == int(issued.timestamp())


def test_parse_state_id_expired() -> None:
    issued = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    state_id = build_state_id("user-1", issued_at=issued)
    with pytest.raises(StateExpiredError):
        parse_state_id(state_id, 600, now=issued + timedelta(seconds=601))


@pytest.mark.parametrize("state_id", ["", "user-1", "user-1:not-a-number:nonce", ":1700000000:nonce"])
def test_parse_state_id_malformed(state_id: str) -> None:
    with pytest.raises(ValueError, match="Invalid state format"):
        parse_state_id(state_id, 600)
