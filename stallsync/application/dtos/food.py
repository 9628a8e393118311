"""DTOs for food-stall expenses, daily sales and their activity log."""

from dataclasses import dataclass, field
from datetime import datetime

from stallsync.domain.enums import MealType, SalePaymentChannel


@dataclass(frozen=True)
class FoodExpenseResult:
    id: str
    site_id: str
    stall_id: str
    item_name: str
    category: str
    quantity: float
    unit: str
    price_per_unit: float
    total_cost: float
    purchase_date: str
    vendor: str | None
    notes: str | None
    recorded_by_uid: str
    recorded_by_name: str | None
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class PaymentBreakdown:
    hungerbox: float = 0.0
    upi: float = 0.0
    other: float = 0.0

    @property
    def total(self) -> float:
        return self.hungerbox + self.upi + self.other

    def amount(self, channel: SalePaymentChannel) -> float:
        return getattr(self, channel.value)

    def to_dict(self) -> dict[str, float]:
        return {"hungerbox": self.hungerbox, "upi": self.upi, "other": self.other}


@dataclass(frozen=True)
class FoodDailySaleResult:
    id: str
    sale_date: str
    site_id: str
    stall_id: str
    meals: dict[MealType, PaymentBreakdown]
    total_amount: float
    notes: str | None
    recorded_by_uid: str
    recorded_by_name: str | None
    created_at: datetime | None
    updated_at: datetime | None


@dataclass(frozen=True)
class FoodSalesSummary:
    """Totals over a set of daily sales, by payment channel and by meal."""

    days: int
    total_amount: float
    by_payment_channel: dict[str, float] = field(default_factory=dict)
    by_meal: dict[str, float] = field(default_factory=dict)
    by_meal_and_channel: dict[str, dict[str, float]] = field(default_factory=dict)


@dataclass(frozen=True)
class FoodActivityLogResult:
    id: str
    site_id: str
    stall_id: str
    user_id: str
    user_name: str | None
    timestamp: datetime
    type: str
    related_document_id: str
    details: dict


@dataclass(frozen=True)
class FoodDailySaleDraft:
    """One stall's sales for one day, as parsed from an import."""

    site_id: str
    stall_id: str
    sale_date: str
    meals: dict[MealType, PaymentBreakdown]
    notes: str | None = None
