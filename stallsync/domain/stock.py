"""Stock rules shared by the ledger, the API and imports."""

from stallsync.domain.enums import StockStatus
from stallsync.domain.exceptions import InsufficientStockException, ValidationException


def derive_stock_status(quantity: int, low_stock_threshold: int) -> StockStatus:
    """Return the display status for a quantity and its low-stock threshold.

    out-of-stock iff quantity == 0; low-stock iff 0 < quantity <= threshold.
    """
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= low_stock_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def apply_quantity_change(item_id: str, quantity_before: int, delta: int) -> int:
    """Return quantity after applying delta; never below zero.

    Raises:
        InsufficientStockException: If the result would be negative.
    """
    quantity_after = quantity_before + delta
    if quantity_after < 0:
        raise InsufficientStockException(item_id, quantity_before, -delta)
    return quantity_after


def require_positive_quantity(quantity: int, field: str = "quantity") -> int:
    if quantity <= 0:
        raise ValidationException(f"{field} must be a positive whole number", field)
    return quantity
