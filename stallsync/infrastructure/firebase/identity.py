"""Firebase Authentication admin operations over the Identity Toolkit REST API.

Uses the same service-account credentials as Firestore (cloud-platform
scope). ID tokens are verified with google-auth against Google's public
Firebase certificates, with the project id as audience.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from stallsync.application.dtos.user import IdentityUser
from stallsync.domain.exceptions import (
    AuthenticationException,
    ResourceNotFoundException,
    UserAlreadyExistsException,
    ValidationException,
)
from stallsync.infrastructure.exceptions import (
    UpstreamPermissionException,
    UpstreamServiceException,
)
from stallsync.infrastructure.firebase._rest_client import _get_access_token

logger = logging.getLogger(__name__)

_IDENTITY_BASE = "https://identitytoolkit.googleapis.com/v1"
_SERVICE = "Firebase Authentication"

_VALIDATION_CODES = {
    "WEAK_PASSWORD": "password",
    "INVALID_PASSWORD": "password",
    "INVALID_EMAIL": "email",
    "MISSING_EMAIL": "email",
    "INVALID_DISPLAY_NAME": "displayName",
}
_PERMISSION_CODES = {"PERMISSION_DENIED", "INSUFFICIENT_PERMISSION", "UNAUTHENTICATED"}


def _parse_error(resp: httpx.Response) -> tuple[str, str]:
    """Return (code, detail) from an Identity Toolkit error body.

    Messages look like ``"WEAK_PASSWORD : Password should be at least 6 characters"``.
    """
    try:
        err = resp.json().get("error") or {}
    except (ValueError, AttributeError):
        return "UNKNOWN", resp.text[:200]
    message = str(err.get("message") or err.get("status") or "UNKNOWN")
    code, _, detail = message.partition(" : ")
    return code.strip(), detail.strip()


class FirebaseIdentityAdmin:
    """Create, delete and look up Firebase Auth users; verify ID tokens."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None
        self._token_request = google_requests.Request()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def verify_id_token(self, token: str) -> dict[str, Any]:
        """Verify a Firebase ID token and return its claims (``uid`` added).

        Raises:
            AuthenticationException: Token malformed, expired, or for another project.
            UpstreamServiceException: Google's signing certificates could not be fetched.
        """
        try:
            claims = await asyncio.to_thread(
                google_id_token.verify_firebase_token,
                token,
                self._token_request,
                self._project_id,
            )
        except google_auth_exceptions.TransportError as e:
            raise UpstreamServiceException(
                _SERVICE, "Could not fetch token signing certificates", reason=str(e)
            ) from e
        except (ValueError, google_auth_exceptions.GoogleAuthError) as e:
            logger.info("ID token rejected: %s", e)
            raise AuthenticationException("Invalid or expired ID token") from e
        uid = (claims or {}).get("user_id") or (claims or {}).get("sub")
        if not uid:
            raise AuthenticationException("ID token has no subject")
        return {**claims, "uid": uid}

    async def _call(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        token = await asyncio.to_thread(_get_access_token, self._credentials)
        try:
            resp = await self._http.post(
                f"{_IDENTITY_BASE}/projects/{self._project_id}/{path}",
                headers={"Authorization": f"Bearer {token}"},
                json=body,
            )
        except httpx.TransportError as e:
            raise UpstreamServiceException(
                _SERVICE, f"{_SERVICE} is unreachable", reason=type(e).__name__
            ) from e
        if resp.status_code == 200:
            return resp.json() if resp.content else {}
        code, detail = _parse_error(resp)
        if code in ("EMAIL_EXISTS", "DUPLICATE_EMAIL"):
            raise UserAlreadyExistsException(body.get("email"))
        if code == "USER_NOT_FOUND":
            raise ResourceNotFoundException("user", body.get("localId", ""))
        if code in _VALIDATION_CODES:
            raise ValidationException(detail or code, _VALIDATION_CODES[code])
        if resp.status_code in (401, 403) or code in _PERMISSION_CODES:
            raise UpstreamPermissionException(_SERVICE, code)
        logger.error("Identity Toolkit %s failed: status=%d code=%s", path, resp.status_code, code)
        raise UpstreamServiceException(
            _SERVICE,
            detail or f"Identity Toolkit request failed ({code})",
            status_code=resp.status_code,
            reason=code,
        )

    async def create_user(self, email: str, password: str, display_name: str) -> IdentityUser:
        """Create an email/password user; UserAlreadyExistsException on duplicate email."""
        out = await self._call(
            "accounts",
            {"email": email, "password": password, "displayName": display_name},
        )
        return IdentityUser(
            uid=out["localId"],
            email=out.get("email", email),
            display_name=out.get("displayName", display_name),
        )

    async def delete_user(self, uid: str) -> None:
        """Delete a user; ResourceNotFoundException if the uid is unknown."""
        await self._call("accounts:delete", {"localId": uid})

    async def set_disabled(self, uid: str, disabled: bool) -> None:
        """Enable or disable sign-in for a user (mirrors the profile's status)."""
        await self._call("accounts:update", {"localId": uid, "disableUser": disabled})
