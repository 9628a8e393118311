"""Food-stall expense, daily sales and activity log API schemas."""

from datetime import date, datetime
from typing import Any

from pydantic import Field, field_validator, model_validator

from stallsync.application.dtos.food import FoodDailySaleResult, PaymentBreakdown
from stallsync.domain.enums import FoodExpenseCategory, MealType
from stallsync.schemas.common import CamelModel, PartialUpdateModel


def _day(value: Any) -> Any:
    return value.isoformat() if isinstance(value, date) else value


class FoodExpenseCreateRequest(CamelModel):
    site_id: str = Field(..., min_length=1)
    stall_id: str = Field(..., min_length=1)
    item_name: str = Field(..., min_length=1, max_length=100)
    category: FoodExpenseCategory
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    price_per_unit: float = Field(..., ge=0)
    total_cost: float | None = Field(default=None, ge=0, description="Defaults to quantity x pricePerUnit")
    purchase_date: date
    vendor: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _default_total(self) -> "FoodExpenseCreateRequest":
        if self.total_cost is None:
            self.total_cost = round(self.quantity * self.price_per_unit, 2)
        return self


class FoodExpenseUpdateRequest(PartialUpdateModel):
    nullable_fields = frozenset({"vendor", "notes"})

    item_name: str | None = Field(default=None, min_length=1, max_length=100)
    category: FoodExpenseCategory | None = None
    quantity: float | None = Field(default=None, gt=0)
    unit: str | None = Field(default=None, min_length=1, max_length=20)
    price_per_unit: float | None = Field(default=None, ge=0)
    total_cost: float | None = Field(default=None, ge=0)
    purchase_date: date | None = None
    vendor: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)


class FoodExpenseResponse(CamelModel):
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
    vendor: str | None = None
    notes: str | None = None
    recorded_by_uid: str
    recorded_by_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("purchase_date", mode="before")
    @classmethod
    def _purchase_date(cls, v: Any) -> Any:
        return _day(v)


class PaymentBreakdownModel(CamelModel):
    hungerbox: float = Field(default=0.0, ge=0)
    upi: float = Field(default=0.0, ge=0)
    other: float = Field(default=0.0, ge=0)

    def to_dto(self) -> PaymentBreakdown:
        return PaymentBreakdown(hungerbox=self.hungerbox, upi=self.upi, other=self.other)


class FoodDailySaleUpsertRequest(CamelModel):
    """Meals that are omitted keep their stored amounts."""

    site_id: str = Field(..., min_length=1)
    stall_id: str = Field(..., min_length=1)
    sale_date: date
    breakfast: PaymentBreakdownModel | None = None
    lunch: PaymentBreakdownModel | None = None
    dinner: PaymentBreakdownModel | None = None
    snacks: PaymentBreakdownModel | None = None
    notes: str | None = Field(default=None, max_length=500)

    def meals(self) -> dict[MealType, PaymentBreakdown]:
        sent = {meal: getattr(self, meal.value) for meal in MealType}
        return {meal: model.to_dto() for meal, model in sent.items() if model is not None}


class FoodDailySaleResponse(CamelModel):
    id: str
    sale_date: str
    site_id: str
    stall_id: str
    breakfast: PaymentBreakdownModel
    lunch: PaymentBreakdownModel
    dinner: PaymentBreakdownModel
    snacks: PaymentBreakdownModel
    total_amount: float
    notes: str | None = None
    recorded_by_uid: str
    recorded_by_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_result(cls, sale: FoodDailySaleResult) -> "FoodDailySaleResponse":
        meals = {
            meal.value: PaymentBreakdownModel(**sale.meals.get(meal, PaymentBreakdown()).to_dict())
            for meal in MealType
        }
        return cls(
            id=sale.id,
            sale_date=sale.sale_date,
            site_id=sale.site_id,
            stall_id=sale.stall_id,
            total_amount=sale.total_amount,
            notes=sale.notes,
            recorded_by_uid=sale.recorded_by_uid,
            recorded_by_name=sale.recorded_by_name,
            created_at=sale.created_at,
            updated_at=sale.updated_at,
            **meals,
        )


class FoodSalesSummaryResponse(CamelModel):
    days: int
    total_amount: float
    by_payment_channel: dict[str, float]
    by_meal: dict[str, float]
    by_meal_and_channel: dict[str, dict[str, float]]


class FoodActivityLogResponse(CamelModel):
    id: str
    site_id: str
    stall_id: str
    user_id: str
    user_name: str | None = None
    timestamp: datetime
    type: str
    related_document_id: str
    details: dict[str, Any] = Field(default_factory=dict)
