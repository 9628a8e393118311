"""Google account connection (Gmail read-only) for Hungerbox imports.

The callback never renders an error page: every outcome is a redirect to
the settings UI with ``google=connected`` or a distinct ``error`` value.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from stallsync.api.v1.dependencies import CurrentUser
from stallsync.api.v1.dependencies.services import (
    get_google_oauth_service,
    get_optional_google_oauth_service,
)
from stallsync.application.services.google_oauth_service import (
    CallbackError,
    GoogleOAuthService,
    with_query,
)
from stallsync.core.config import get_settings
from stallsync.core.limiter import limit_oauth
from stallsync.schemas.oauth import GoogleConnectionStatusResponse

router = APIRouter()

OAuth = Annotated[GoogleOAuthService, Depends(get_google_oauth_service)]


@router.get("/initiate", response_class=RedirectResponse, status_code=307)
@limit_oauth
async def initiate_google_oauth(
    request: Request, user: CurrentUser, oauth: OAuth
) -> RedirectResponse:
    """Redirect the browser to Google's consent screen."""
    return RedirectResponse(oauth.authorization_url(user.uid), status_code=307)


@router.get("/callback", response_class=RedirectResponse, status_code=307)
@limit_oauth
async def google_oauth_callback(
    request: Request,
    oauth: Annotated[GoogleOAuthService | None, Depends(get_optional_google_oauth_service)],
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    if oauth is None:
        target = with_query(get_settings().oauth_ui_redirect_url, error=CallbackError.NOT_CONFIGURED)
    else:
        target = await oauth.handle_callback(code, state, error)
    return RedirectResponse(target, status_code=307)


@router.get("/status", response_model=GoogleConnectionStatusResponse)
async def google_connection_status(user: CurrentUser, oauth: OAuth) -> GoogleConnectionStatusResponse:
    return GoogleConnectionStatusResponse.model_validate(await oauth.status(user.uid))
