"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill.
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from stallsync.application.dtos.food import FoodDailySaleDraft
    from stallsync.application.dtos.sale import SaleResult
    from stallsync.application.dtos.site import SiteResult, StallResult
    from stallsync.application.dtos.stock import StockItemResult
    from stallsync.application.dtos.user import Actor, UserProfile
    from stallsync.domain.enums import UserStatus


class IUserRepository(Protocol):
    """Profiles stored at users/{uid}."""

    async def get(self, uid: str) -> UserProfile | None:
        """Return the profile or None."""

    async def create(self, profile: UserProfile) -> UserProfile:
        """Write a new profile document."""

    async def delete(self, uid: str) -> None:
        """Delete the profile document (idempotent)."""

    async def update(self, uid: str, fields: dict[str, Any]) -> UserProfile:
        """Merge fields; ResourceNotFoundException when missing."""

    async def set_status(self, uid: str, status: UserStatus, actor: Actor) -> UserProfile:
        """Change status and append a USER_STATUS_CHANGED staff activity entry atomically."""


class IGoogleTokenRepository(Protocol):
    """Encrypted Google OAuth tokens keyed by uid."""

    async def get(self, uid: str) -> dict[str, Any] | None:
        """Return the stored record (encrypted bundle + metadata) or None."""

    async def save(self, uid: str, record: dict[str, Any]) -> None:
        """Merge-write the record for uid."""


class ISiteRepository(Protocol):
    async def list(self, site_ids: list[str] | None = None) -> list[SiteResult]:
        """All sites, or only those in site_ids."""


class IStallRepository(Protocol):
    async def list(self, filters: list[tuple[str, str, Any]]) -> list[StallResult]:
        """Stalls matching the AND of filters."""


class IFoodImportRepository(Protocol):
    """Bulk writes for food-stall CSV imports."""

    async def import_expenses(
        self,
        actor: Actor,
        records: Sequence[tuple[str, str, dict[str, Any]]],
        batch_size: int = 400,
    ) -> int:
        """Create expenses in batches and log one EXPENSE_BULK_IMPORTED per stall."""

    async def import_daily_sales(
        self,
        actor: Actor,
        drafts: Sequence[FoodDailySaleDraft],
        batch_size: int = 400,
    ) -> int:
        """Merge daily sales in batches and log one SALE_BULK_IMPORTED per stall."""


class ISaleImportRepository(Protocol):
    """Historical retail sales written by an import (stock is not touched)."""

    async def get(self, sale_id: str) -> SaleResult | None:
        """Return the sale or None."""

    async def import_sales(
        self,
        records: Sequence[tuple[str | None, dict[str, Any]]],
        batch_size: int = 400,
    ) -> int:
        """Create one sale per (id or None, fields) record in batches."""


class IStockItemReader(Protocol):
    async def list(
        self, filters: list[tuple[str, str, Any]], category: str | None = None
    ) -> list[StockItemResult]:
        """Items matching the AND of filters, ordered by name."""


class ISaleReader(Protocol):
    async def list(
        self,
        filters: list[tuple[str, str, Any]],
        start: datetime | None = None,
        end: datetime | None = None,
        include_deleted: bool = False,
        limit: int | None = 200,
    ) -> list[SaleResult]:
        """Sales newest first."""
