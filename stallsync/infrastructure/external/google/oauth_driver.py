"""Google OAuth driver: authorization URL, token exchange, refresh."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, ClassVar
from urllib.parse import urlencode

import httpx

from stallsync.application.dtos.oauth import GoogleTokens
from stallsync.shared.telemetry.logging import get_logger
from stallsync.shared.utils.datetime import utc_now

logger = get_logger(__name__)

GMAIL_READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"


class GoogleOAuthDriver:
    """Authorization-code flow with offline access (refresh token) for Gmail and Sheets."""

    AUTHORIZATION_ENDPOINT: ClassVar[str] = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_ENDPOINT: ClassVar[str] = "https://oauth2.googleapis.com/token"
    _RESERVED: ClassVar[frozenset[str]] = frozenset(
        {"client_id", "redirect_uri", "response_type", "scope", "state", "access_type", "prompt"}
    )

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: list[str] | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes or [GMAIL_READONLY_SCOPE, SHEETS_SCOPE]
        self._http = http_client

    def build_authorization_url(self, state: str, **extra_params: Any) -> str:
        conflicts = self._RESERVED & set(extra_params)
        if conflicts:
            raise ValueError(f"Cannot override reserved OAuth params: {conflicts}")
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
            "access_type": "offline",
            "prompt": "consent",
            "include_granted_scopes": "true",
            **extra_params,
        }
        return f"{self.AUTHORIZATION_ENDPOINT}?{urlencode(params)}"

    async def _post_token(self, data: dict[str, str], action: str) -> dict[str, Any]:
        if self._http is not None:
            response = await self._http.post(self.TOKEN_ENDPOINT, data=data)
        else:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(self.TOKEN_ENDPOINT, data=data)
        if response.status_code != 200:
            logger.error("Google token %s failed: status=%d", action, response.status_code)
            raise ValueError(f"Token {action} failed with status {response.status_code}")
        return response.json()

    async def exchange_code_for_tokens(self, code: str) -> GoogleTokens:
        """Exchange an authorization code; ValueError when Google rejects it."""
        token_data = await self._post_token(
            {
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
            "exchange",
        )
        return self._normalize_token_response(token_data)

    async def refresh_access_token(self, refresh_token: str) -> GoogleTokens:
        """New access token; the refresh token is kept when Google omits a new one."""
        token_data = await self._post_token(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
            "refresh",
        )
        tokens = self._normalize_token_response(token_data)
        if not tokens.refresh_token:
            tokens = GoogleTokens(
                access_token=tokens.access_token,
                refresh_token=refresh_token,
                token_type=tokens.token_type,
                scope=tokens.scope,
                expires_at=tokens.expires_at,
            )
        return tokens

    def _normalize_token_response(self, token_data: dict[str, Any]) -> GoogleTokens:
        if not token_data.get("access_token"):
            raise ValueError("Token response has no access_token")
        expires_in = int(token_data.get("expires_in", 3600))
        return GoogleTokens(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token"),
            token_type=token_data.get("token_type", "Bearer"),
            scope=token_data.get("scope", " ".join(self.scopes)),
            expires_at=utc_now() + timedelta(seconds=expires_in),
        )
