"""Signed OAuth state for the Google connect flow (implements IStateSigner).

The value sent to Google is ``state_id:signature``, an HMAC-SHA256 over the
state id with a key derived from SECRET_KEY.
"""

from __future__ import annotations

import hashlib
import hmac

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from stallsync.core.config import get_settings

_OAUTH_STATE_KEY_INFO = b"stallsync-oauth-state-v1"


class OAuthStateManager:
    """Signed OAuth state (state_id:signature) for CSRF protection."""

    def __init__(self, secret_key: str | None = None) -> None:
        secret = secret_key if secret_key is not None else get_settings().secret_key.get_secret_value()
        self._signing_key = self._derive_signing_key(secret)

    @staticmethod
    def _derive_signing_key(secret: str) -> bytes:
        """Derive a purpose-specific HMAC key from the master secret."""
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=None,
            info=_OAUTH_STATE_KEY_INFO,
        )
        return hkdf.derive(secret.encode())

    def _sign(self, state_id: str) -> str:
        return hmac.new(self._signing_key, state_id.encode(), hashlib.sha256).hexdigest()

    def create_signed_state(self, state_id: str) -> str:
        return f"{state_id}:{self._sign(state_id)}"

    def verify_and_extract(self, signed_state: str) -> str:
        """Verify the signature and return the state id.

        Splits on the last colon so the state id may contain colons.

        Raises:
            ValueError: Invalid format or signature.
        """
        parts = signed_state.rsplit(":", 1)
        if len(parts) != 2 or not parts[0]:
            raise ValueError("Invalid state format")
        state_id, signature = parts
        if not hmac.compare_digest(self._sign(state_id), signature):
            raise ValueError("Invalid state signature")
        return state_id
