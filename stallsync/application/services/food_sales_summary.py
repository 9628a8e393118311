"""Aggregation of food-stall daily sales by payment channel and meal."""

from __future__ import annotations

from collections.abc import Iterable

from stallsync.application.dtos.food import FoodDailySaleResult, FoodSalesSummary
from stallsync.domain.enums import MealType, SalePaymentChannel


def summarize_food_sales(sales: Iterable[FoodDailySaleResult]) -> FoodSalesSummary:
    """Totals over ``sales``; every meal and channel appears, zero when absent.

    ``days`` counts distinct sale dates, so two stalls selling on the same
    day count once.
    """
    by_meal_and_channel = {
        meal.value: {channel.value: 0.0 for channel in SalePaymentChannel} for meal in MealType
    }
    dates: set[str] = set()
    for sale in sales:
        dates.add(sale.sale_date)
        for meal, breakdown in sale.meals.items():
            cell = by_meal_and_channel[meal.value]
            for channel in SalePaymentChannel:
                cell[channel.value] += breakdown.amount(channel)

    by_meal_and_channel = {
        meal: {channel: round(amount, 2) for channel, amount in cells.items()}
        for meal, cells in by_meal_and_channel.items()
    }
    by_channel = {
        channel.value: round(sum(cells[channel.value] for cells in by_meal_and_channel.values()), 2)
        for channel in SalePaymentChannel
    }
    by_meal = {meal: round(sum(cells.values()), 2) for meal, cells in by_meal_and_channel.items()}
    return FoodSalesSummary(
        days=len(dates),
        total_amount=round(sum(by_channel.values()), 2),
        by_payment_channel=by_channel,
        by_meal=by_meal,
        by_meal_and_channel=by_meal_and_channel,
    )
