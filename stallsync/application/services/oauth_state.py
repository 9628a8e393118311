"""OAuth state ids: ``uid:issued_at:nonce``, signed by an IStateSigner."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime

from stallsync.shared.utils.datetime import utc_now


class StateExpiredError(ValueError):
    """Signature is valid but the state is older than the allowed age."""


@dataclass(frozen=True)
class OAuthState:
    uid: str
    issued_at: int
    nonce: str


def build_state_id(uid: str, issued_at: datetime | None = None) -> str:
    issued = int((issued_at or utc_now()).timestamp())
    return f"{uid}:{issued}:{secrets.token_urlsafe(16)}"


def parse_state_id(state_id: str, max_age_seconds: int, now: datetime | None = None) -> OAuthState:
    """Split a verified state id; ValueError when malformed, StateExpiredError when too old."""
    try:
        uid, issued_raw, nonce = state_id.rsplit(":", 2)
        issued_at = int(issued_raw)
    except ValueError as e:
        raise ValueError("Invalid state format") from e
    if not uid or not nonce:
        raise ValueError("Invalid state format")
    age = int((now or utc_now()).timestamp()) - issued_at
    if age < 0 or age > max_age_seconds:
        raise StateExpiredError("OAuth state has expired")
    return OAuthState(uid=uid, issued_at=issued_at, nonce=nonce)
