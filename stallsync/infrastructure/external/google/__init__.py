"""Google integration: OAuth driver, signed state, token encryption, Gmail, Sheets."""

from stallsync.infrastructure.external.google.encryption import CredentialEncryptor
from stallsync.infrastructure.external.google.gmail_client import GmailClient
from stallsync.infrastructure.external.google.oauth_driver import (
    GMAIL_READONLY_SCOPE,
    SHEETS_SCOPE,
    GoogleOAuthDriver,
)
from stallsync.infrastructure.external.google.sheets_client import SheetsClient
from stallsync.infrastructure.external.google.state import OAuthStateManager

__all__ = [
    "GMAIL_READONLY_SCOPE",
    "SHEETS_SCOPE",
    "CredentialEncryptor",
    "GmailClient",
    "GoogleOAuthDriver",
    "OAuthStateManager",
    "SheetsClient",
]
