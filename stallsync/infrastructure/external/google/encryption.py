"""Token encryption at rest (Fernet, key derived from SECRET_KEY + ENCRYPTION_SALT)."""

import base64
import json
from typing import Any, cast

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from stallsync.core.config import get_settings

DECRYPTION_ERROR_MSG = "Failed to decrypt tokens - invalid or corrupted data"


class CredentialEncryptor:
    """Encrypt/decrypt OAuth token bundles for storage in Firestore."""

    def __init__(self) -> None:
        self._fernet = Fernet(self._get_encryption_key())

    def _get_encryption_key(self) -> bytes:
        """Derive 32-byte key via PBKDF2-HMAC-SHA256."""
        settings = get_settings()
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=settings.encryption_salt.get_secret_value().encode(),
            iterations=100_000,
        )
        derived = kdf.derive(settings.secret_key.get_secret_value().encode())
        return base64.urlsafe_b64encode(derived)

    def encrypt(self, payload: dict[str, Any]) -> str:
        return self._fernet.encrypt(json.dumps(payload).encode()).decode()

    def decrypt(self, token: str) -> dict[str, Any]:
        """Decrypt a stored bundle.

        Raises:
            ValueError: Token invalid, tampered with, or not a JSON object.
        """
        try:
            result = json.loads(self._fernet.decrypt(token.encode()).decode())
        except InvalidToken as e:
            raise ValueError(DECRYPTION_ERROR_MSG) from e
        except json.JSONDecodeError as e:
            raise ValueError("Decrypted tokens are not valid JSON") from e
        if not isinstance(result, dict):
            raise ValueError("Decrypted tokens must be a dictionary")
        return cast(dict[str, Any], result)
