"""Process-wide Firebase handle (Firestore REST client + Identity admin).

Initialized once at app startup from GOOGLE_APPLICATION_CREDENTIALS_JSON /
FIREBASE_SERVICE_ACCOUNT_KEY (JSON string) or GOOGLE_APPLICATION_CREDENTIALS /
FIREBASE_SERVICE_ACCOUNT_PATH (file path). Collaborators receive the handle
through FastAPI dependencies; nothing else re-initializes Firebase.
"""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from stallsync.core.config import get_settings
from stallsync.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    _get_credentials,
)
from stallsync.infrastructure.firebase.identity import FirebaseIdentityAdmin

logger = logging.getLogger(__name__)


@dataclass
class FirebaseHandle:
    """Shared clients for one Firebase project."""

    project_id: str
    firestore: FirestoreRESTClient
    identity: FirebaseIdentityAdmin

    async def aclose(self) -> None:
        await self.firestore.aclose()
        await self.identity.aclose()


_handle: FirebaseHandle | None = None
_init_lock = threading.Lock()


def _load_key_dict() -> dict | None:
    """Return service account dict from env key or file path."""
    settings = get_settings()
    key_json = (
        settings.firebase_service_account_key.get_secret_value()
        if settings.firebase_service_account_key
        else None
    )
    if key_json:
        try:
            return json.loads(key_json)
        except json.JSONDecodeError as e:
            raise ValueError("GOOGLE_APPLICATION_CREDENTIALS_JSON is not valid JSON") from e
    path = settings.firebase_service_account_path
    if path:
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            logger.warning(
                "Service account path set but file not found: %s (resolved: %s)",
                path,
                resolved,
            )
            return None
        with open(resolved, encoding="utf-8") as f:
            return json.load(f)
    return None


def init_firebase() -> FirebaseHandle | None:
    """Create the process-wide Firebase handle once.

    Safe to call when no credentials are configured (returns None and the
    app runs with Firebase-backed routes answering 503). Idempotent: later
    calls return the existing handle. On malformed credentials the error is
    logged and None is returned so the app can still start.
    """
    global _handle
    with _init_lock:
        if _handle is not None:
            return _handle
        try:
            key_dict = _load_key_dict()
            if not key_dict:
                logger.warning("Firebase credentials not configured; Firebase features disabled")
                return None
            project_id = key_dict.get("project_id")
            if not project_id:
                logger.error("Firebase service account JSON missing 'project_id'")
                return None
            credentials = _get_credentials(key_dict)
        except (ValueError, OSError):
            logger.exception("Firebase initialization failed")
            return None
        _handle = FirebaseHandle(
            project_id=project_id,
            firestore=FirestoreRESTClient(project_id, credentials),
            identity=FirebaseIdentityAdmin(project_id, credentials),
        )
        logger.info("Firebase initialized for project %s", project_id)
        return _handle


def get_firebase_handle() -> FirebaseHandle | None:
    """Return the initialized handle, or None if Firebase is not configured."""
    return _handle


async def close_firebase() -> None:
    """Close the handle's HTTP connection pools. Call from app shutdown."""
    global _handle
    with _init_lock:
        handle, _handle = _handle, None
    if handle is not None:
        await handle.aclose()
        logger.info("Firebase HTTP clients closed")
