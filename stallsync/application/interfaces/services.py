"""Service interfaces (ports) for identity, OAuth, bulk deletion, live queries and Google APIs."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from stallsync.application.dtos.imports import MailMessageSummary
    from stallsync.application.dtos.oauth import GoogleTokens
    from stallsync.application.dtos.stock import StockItemDraft, StockOperationResult
    from stallsync.application.dtos.user import Actor, IdentityUser
    from stallsync.application.services.access_scope import AccessScope


class IIdentityProvider(Protocol):
    """Firebase Authentication admin operations."""

    async def verify_id_token(self, token: str) -> dict[str, Any]:
        """Return verified claims including ``uid``; AuthenticationException otherwise."""

    async def create_user(self, email: str, password: str, display_name: str) -> IdentityUser:
        """Create an auth user; UserAlreadyExistsException on duplicate email."""

    async def delete_user(self, uid: str) -> None:
        """Delete an auth user; ResourceNotFoundException if unknown."""

    async def set_disabled(self, uid: str, disabled: bool) -> None:
        """Enable or disable sign-in."""


class ICollectionPurger(Protocol):
    """Deletes one page of a collection per call."""

    async def delete_page(self, collection: str, limit: int) -> int:
        """Delete up to limit documents in one commit; return how many were deleted."""


class IOAuthDriver(Protocol):
    """Authorization-code flow against one provider."""

    def build_authorization_url(self, state: str) -> str: ...

    async def exchange_code_for_tokens(self, code: str) -> GoogleTokens: ...

    async def refresh_access_token(self, refresh_token: str) -> GoogleTokens: ...


class IStateSigner(Protocol):
    def create_signed_state(self, state_id: str) -> str: ...

    def verify_and_extract(self, signed_state: str) -> str: ...


class ITokenCipher(Protocol):
    def encrypt(self, payload: dict[str, Any]) -> str: ...

    def decrypt(self, token: str) -> dict[str, Any]: ...


class Subscription(Protocol):
    """Handle returned by a subscribe call; cancel() stops delivery."""

    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


ChangeCallback = Callable[[Any], Awaitable[None]]


class IQuerySubscriber(Protocol):
    """Observer over a datastore query (replacement for client-side live listeners)."""

    def subscribe(self, query: Any, on_change: ChangeCallback) -> Subscription:
        """Start delivering change sets for query to on_change until cancelled."""


class IStockLedger(Protocol):
    """Quantity changes committed together with their movement logs."""

    async def create_item(
        self,
        scope: AccessScope,
        actor: Actor,
        draft: StockItemDraft,
        notes: str | None = None,
    ) -> StockOperationResult: ...

    async def update_item(
        self,
        scope: AccessScope,
        actor: Actor,
        item_id: str,
        changes: dict[str, Any],
        new_quantity: int | None = None,
        notes: str | None = None,
    ) -> StockOperationResult: ...


class IMailReader(Protocol):
    async def list_messages(self, query: str, limit: int = 50) -> list[MailMessageSummary]: ...


MailReaderFactory = Callable[["GoogleTokens"], IMailReader]


class ISpreadsheetClient(Protocol):
    async def read_values(self, spreadsheet_id: str, sheet_name: str) -> list[list[Any]]: ...

    async def create_spreadsheet(self, title: str, sheet_name: str) -> str: ...

    async def write_values(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        values: list[list[Any]],
        clear: bool = True,
    ) -> None: ...


SpreadsheetClientFactory = Callable[["GoogleTokens"], ISpreadsheetClient]
