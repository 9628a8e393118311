"""Google account connection: initiate, callback, status and token refresh."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from stallsync.application.dtos.oauth import GoogleConnectionStatus, GoogleTokens
from stallsync.application.interfaces.repositories import IGoogleTokenRepository
from stallsync.application.interfaces.services import IOAuthDriver, IStateSigner, ITokenCipher
from stallsync.application.services.oauth_state import (
    StateExpiredError,
    build_state_id,
    parse_state_id,
)
from stallsync.domain.exceptions import (
    ResourceNotFoundException,
    ServiceUnavailableException,
    StallSyncException,
    ValidationException,
)
from stallsync.shared.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

_REFRESH_MARGIN = timedelta(seconds=60)


class CallbackError:
    """Values of the ``error`` query parameter on the post-callback redirect."""

    ACCESS_DENIED = "access_denied"
    PROVIDER_ERROR = "provider_error"
    MISSING_CODE = "missing_code"
    MISSING_STATE = "missing_state"
    INVALID_STATE = "invalid_state"
    STATE_EXPIRED = "state_expired"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    TOKEN_STORAGE_FAILED = "token_storage_failed"
    NOT_CONFIGURED = "not_configured"


def with_query(url: str, **params: str) -> str:
    """Return url with params added to its query string."""
    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query))
    query.update(params)
    return urlunsplit(parts._replace(query=urlencode(query)))


def _tokens_from_bundle(bundle: dict) -> GoogleTokens:
    return GoogleTokens(
        access_token=bundle["access_token"],
        refresh_token=bundle.get("refresh_token"),
        token_type=bundle.get("token_type", "Bearer"),
        scope=bundle.get("scope", ""),
        expires_at=datetime.fromisoformat(bundle["expires_at"]),
    )


class GoogleOAuthService:
    """Connects a user's Google account and keeps its tokens encrypted at rest."""

    def __init__(
        self,
        driver: IOAuthDriver | None,
        signer: IStateSigner,
        cipher: ITokenCipher,
        tokens: IGoogleTokenRepository,
        ui_redirect_url: str,
        state_max_age_seconds: int = 600,
    ) -> None:
        self._driver = driver
        self._signer = signer
        self._cipher = cipher
        self._tokens = tokens
        self._ui_redirect_url = ui_redirect_url
        self._state_max_age = state_max_age_seconds

    def _require_driver(self) -> IOAuthDriver:
        if self._driver is None:
            raise ServiceUnavailableException("Google OAuth", "Google OAuth is not configured")
        return self._driver

    def authorization_url(self, uid: str) -> str:
        """Consent-screen URL carrying a signed state bound to uid."""
        driver = self._require_driver()
        state = self._signer.create_signed_state(build_state_id(uid))
        return driver.build_authorization_url(state)

    def _fail(self, code: str) -> str:
        return with_query(self._ui_redirect_url, error=code)

    async def handle_callback(
        self,
        code: str | None,
        state: str | None,
        error: str | None = None,
    ) -> str:
        """Finish the flow and return where to redirect the browser.

        Never raises for flow errors: each one yields a redirect with a
        distinct ``error`` value and nothing is stored.
        """
        if self._driver is None:
            return self._fail(CallbackError.NOT_CONFIGURED)
        if error:
            logger.info("Google OAuth provider returned error=%s", error)
            return self._fail(
                CallbackError.ACCESS_DENIED if error == "access_denied" else CallbackError.PROVIDER_ERROR
            )
        if not code:
            return self._fail(CallbackError.MISSING_CODE)
        if not state:
            return self._fail(CallbackError.MISSING_STATE)
        try:
            parsed = parse_state_id(self._signer.verify_and_extract(state), self._state_max_age)
        except StateExpiredError:
            return self._fail(CallbackError.STATE_EXPIRED)
        except ValueError:
            logger.warning("Rejected Google OAuth callback with an invalid state")
            return self._fail(CallbackError.INVALID_STATE)
        try:
            tokens = await self._driver.exchange_code_for_tokens(code)
        except (ValueError, httpx.HTTPError):
            logger.exception("Google token exchange failed for user %s", parsed.uid)
            return self._fail(CallbackError.TOKEN_EXCHANGE_FAILED)
        try:
            await self._store(parsed.uid, tokens)
        except (StallSyncException, httpx.HTTPError):
            logger.exception("Storing Google tokens failed for user %s", parsed.uid)
            return self._fail(CallbackError.TOKEN_STORAGE_FAILED)
        logger.info("Google account connected for user %s", parsed.uid)
        return with_query(self._ui_redirect_url, google="connected")

    async def _existing_refresh_token(self, uid: str) -> str | None:
        record = await self._tokens.get(uid)
        if not record or not record.get("encryptedTokens"):
            return None
        try:
            return self._cipher.decrypt(record["encryptedTokens"]).get("refresh_token")
        except ValueError:
            logger.warning("Stored Google tokens for %s could not be decrypted; replacing them", uid)
            return None

    async def _store(self, uid: str, tokens: GoogleTokens) -> None:
        refresh_token = tokens.refresh_token or await self._existing_refresh_token(uid)
        bundle = {
            "access_token": tokens.access_token,
            "refresh_token": refresh_token,
            "token_type": tokens.token_type,
            "scope": tokens.scope,
            "expires_at": ensure_utc(tokens.expires_at).isoformat(),
        }
        await self._tokens.save(uid, {
            "encryptedTokens": self._cipher.encrypt(bundle),
            "scope": tokens.scope,
            "tokenType": tokens.token_type,
            "expiresAt": tokens.expires_at,
            "updatedAt": utc_now(),
        })

    async def status(self, uid: str) -> GoogleConnectionStatus:
        record = await self._tokens.get(uid)
        if not record or not record.get("encryptedTokens"):
            return GoogleConnectionStatus(connected=False)
        return GoogleConnectionStatus(
            connected=True,
            scope=record.get("scope"),
            expires_at=record.get("expiresAt"),
            updated_at=record.get("updatedAt"),
        )

    async def get_valid_tokens(self, uid: str) -> GoogleTokens:
        """Stored tokens for uid, refreshed first when the access token is (nearly) expired."""
        driver = self._require_driver()
        record = await self._tokens.get(uid)
        if not record or not record.get("encryptedTokens"):
            raise ResourceNotFoundException("Google connection", uid)
        try:
            tokens = _tokens_from_bundle(self._cipher.decrypt(record["encryptedTokens"]))
        except (ValueError, KeyError) as e:
            raise ValidationException("Google account must be reconnected", "google") from e
        if ensure_utc(tokens.expires_at) - _REFRESH_MARGIN > utc_now():
            return tokens
        if not tokens.refresh_token:
            raise ValidationException("Google account must be reconnected", "google")
        try:
            refreshed = await driver.refresh_access_token(tokens.refresh_token)
        except (ValueError, httpx.HTTPError) as e:
            raise ServiceUnavailableException(
                "Google OAuth", "Could not refresh the Google access token"
            ) from e
        await self._store(uid, refreshed)
        return refreshed
