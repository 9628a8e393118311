"""Application service and use-case dependencies (composition root).

Routes depend on these and never build infrastructure themselves.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from stallsync.api.v1.dependencies.firebase import (
    get_firestore_client,
    get_identity_provider,
    get_optional_firebase_handle,
)
from stallsync.api.v1.dependencies.repositories import (
    get_food_repo,
    get_sale_repo,
    get_site_repo,
    get_stall_repo,
    get_stock_repo,
    get_user_repo,
)
from stallsync.application.dtos.oauth import GoogleTokens
from stallsync.application.services.collection_reset_service import CollectionResetService
from stallsync.application.services.google_oauth_service import GoogleOAuthService
from stallsync.application.services.user_admin_service import UserAdminService
from stallsync.application.use_cases.google_sheets import GoogleSheetsUseCase
from stallsync.application.use_cases.imports import (
    CsvImportUseCase,
    ListHungerboxEmailsUseCase,
)
from stallsync.core.config import get_settings
from stallsync.domain.exceptions import ServiceUnavailableException
from stallsync.infrastructure.external.google import (
    CredentialEncryptor,
    GmailClient,
    GoogleOAuthDriver,
    OAuthStateManager,
    SheetsClient,
)
from stallsync.infrastructure.firebase._rest_client import FirestoreRESTClient
from stallsync.infrastructure.firebase.client import FirebaseHandle
from stallsync.infrastructure.firebase.identity import FirebaseIdentityAdmin
from stallsync.infrastructure.firebase.repositories import (
    FirestoreFoodRepository,
    FirestoreGoogleTokenRepository,
    FirestoreSaleRepository,
    FirestoreSiteRepository,
    FirestoreStallRepository,
    FirestoreStockRepository,
    FirestoreUserRepository,
)
from stallsync.infrastructure.firebase.services import (
    FirestoreCollectionPurger,
    FirestoreStockLedger,
)


def get_stock_ledger(
    client: Annotated[FirestoreRESTClient, Depends(get_firestore_client)],
) -> FirestoreStockLedger:
    return FirestoreStockLedger(client, max_attempts=get_settings().stock_transaction_max_attempts)


def get_collection_reset_service(
    client: Annotated[FirestoreRESTClient, Depends(get_firestore_client)],
) -> CollectionResetService:
    return CollectionResetService(
        FirestoreCollectionPurger(client), batch_size=get_settings().reset_batch_size
    )


def get_user_admin_service(
    identity: Annotated[FirebaseIdentityAdmin, Depends(get_identity_provider)],
    users: Annotated[FirestoreUserRepository, Depends(get_user_repo)],
) -> UserAdminService:
    return UserAdminService(identity, users)


def get_csv_import_use_case(
    sites: Annotated[FirestoreSiteRepository, Depends(get_site_repo)],
    stalls: Annotated[FirestoreStallRepository, Depends(get_stall_repo)],
    ledger: Annotated[FirestoreStockLedger, Depends(get_stock_ledger)],
    food: Annotated[FirestoreFoodRepository, Depends(get_food_repo)],
    sales: Annotated[FirestoreSaleRepository, Depends(get_sale_repo)],
) -> CsvImportUseCase:
    return CsvImportUseCase(
        sites, stalls, ledger, food, sales, batch_size=get_settings().import_batch_size
    )


def get_google_oauth_driver(conn: HTTPConnection) -> GoogleOAuthDriver | None:
    """Driver with the app's shared HTTP client; None when Google OAuth is not configured."""
    settings = get_settings()
    if not settings.google_oauth_configured:
        return None
    return GoogleOAuthDriver(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret.get_secret_value(),
        redirect_uri=settings.google_redirect_uri,
        http_client=getattr(conn.app.state, "oauth_http_client", None),
    )


def get_optional_google_oauth_service(
    handle: Annotated[FirebaseHandle | None, Depends(get_optional_firebase_handle)],
    driver: Annotated[GoogleOAuthDriver | None, Depends(get_google_oauth_driver)],
) -> GoogleOAuthService | None:
    """OAuth service, or None without Firebase (the callback must still redirect)."""
    if handle is None:
        return None
    settings = get_settings()
    return GoogleOAuthService(
        driver=driver,
        signer=OAuthStateManager(),
        cipher=CredentialEncryptor(),
        tokens=FirestoreGoogleTokenRepository(handle.firestore),
        ui_redirect_url=settings.oauth_ui_redirect_url,
        state_max_age_seconds=settings.oauth_state_max_age_seconds,
    )


def get_google_oauth_service(
    service: Annotated[GoogleOAuthService | None, Depends(get_optional_google_oauth_service)],
) -> GoogleOAuthService:
    if service is None:
        raise ServiceUnavailableException("Firebase")
    return service


def _google_client_credentials() -> tuple[str, str]:
    settings = get_settings()
    client_secret = (
        settings.google_client_secret.get_secret_value() if settings.google_client_secret else ""
    )
    return settings.google_client_id or "", client_secret


def get_hungerbox_use_case(
    oauth: Annotated[GoogleOAuthService, Depends(get_google_oauth_service)],
) -> ListHungerboxEmailsUseCase:
    settings = get_settings()
    client_id, client_secret = _google_client_credentials()

    def _mail_reader(tokens: GoogleTokens) -> GmailClient:
        return GmailClient(tokens, client_id, client_secret)

    return ListHungerboxEmailsUseCase(oauth, _mail_reader, settings.hungerbox_gmail_query)


def get_google_sheets_use_case(
    oauth: Annotated[GoogleOAuthService, Depends(get_google_oauth_service)],
    stock: Annotated[FirestoreStockRepository, Depends(get_stock_repo)],
    sales: Annotated[FirestoreSaleRepository, Depends(get_sale_repo)],
    importer: Annotated[CsvImportUseCase, Depends(get_csv_import_use_case)],
) -> GoogleSheetsUseCase:
    client_id, client_secret = _google_client_credentials()

    def _sheets_client(tokens: GoogleTokens) -> SheetsClient:
        return SheetsClient(tokens, client_id, client_secret)

    return GoogleSheetsUseCase(oauth, _sheets_client, stock, sales, importer)
