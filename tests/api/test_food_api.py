"""Food stall expenses and daily sales through the HTTP API."""

import pytest
from httpx import AsyncClient

from factories import add_site, add_stall, add_user
from firestore_fake import FakeFirestore


@pytest.fixture
def food_court(firestore: FakeFirestore) -> FakeFirestore:
    add_site(firestore, "site-1")
    add_stall(firestore, "stall-f", "site-1", "Food Court")
    add_stall(firestore, "stall-g", "site-1", "Juice Bar")
    return firestore


async def test_daily_sale_upsert_merges_meals(client: AsyncClient, food_court: FakeFirestore) -> None:
    headers = add_user(food_court, "staff-1", default_site_id="site-1", default_stall_id="stall-f")
    first = await client.put(
        "/api/v1/food/sales",
        json={"siteId": "site-1", "stallId": "stall-f", "saleDate": "2024-05-01",
              "lunch": {"hungerbox": 100, "upi": 50}},
        headers=headers,
    )
    second = await client.put(
        "/api/v1/food/sales",
        json={"siteId": "site-1", "stallId": "stall-f", "saleDate": "2024-05-01",
              "dinner": {"other": 25}},
        headers=headers,
    )

    assert first.status_code == 200
    assert second.status_code == 200
    body = second.json()
    assert body["id"] == "2024-05-01_stall-f"
    assert body["lunch"]["hungerbox"] == 100
    assert body["dinner"]["other"] == 25
    assert body["totalAmount"] == 175
    assert food_court.count("foodSaleTransactions") == 1
    logs = food_court.all("foodStallActivityLogs").values()
    assert [log["type"] for log in logs] == ["SALE_RECORDED_OR_UPDATED"] * 2


async def test_daily_sale_summary(client: AsyncClient, food_court: FakeFirestore) -> None:
    headers = add_user(food_court, "admin-1", "admin")
    for stall, day, amount in [("stall-f", "2024-05-01", 100), ("stall-g", "2024-05-01", 40),
                               ("stall-f", "2024-05-02", 60)]:
        await client.put(
            "/api/v1/food/sales",
            json={"siteId": "site-1", "stallId": stall, "saleDate": day, "lunch": {"upi": amount}},
            headers=headers,
        )

    response = await client.get(
        "/api/v1/food/sales/summary",
        params={"site_id": "site-1", "start_date": "2024-05-01", "end_date": "2024-05-01"},
        headers=headers,
    )

    assert response.status_code == 200
    summary = response.json()
    assert summary["days"] == 1
    assert summary["totalAmount"] == 140
    assert summary["byPaymentChannel"]["upi"] == 140


async def test_expense_total_defaults_to_quantity_times_price(
    client: AsyncClient, food_court: FakeFirestore
) -> None:
    headers = add_user(food_court, "manager-1", "manager", managed_site_ids=["site-1"])
    response = await client.post(
        "/api/v1/food/expenses",
        json={"siteId": "site-1", "stallId": "stall-f", "itemName": "Tomatoes",
              "category": "Vegetables", "quantity": 2.5, "unit": "kg", "pricePerUnit": 40,
              "purchaseDate": "2024-05-01"},
        headers=headers,
    )

    assert response.status_code == 201
    expense = response.json()
    assert expense["totalCost"] == 100
    assert expense["recordedByUid"] == "manager-1"

    deleted = await client.delete(f"/api/v1/food/expenses/{expense['id']}", headers=headers)
    assert deleted.status_code == 204
    assert food_court.count("foodItemExpenses") == 0
    types = sorted(log["type"] for log in food_court.all("foodStallActivityLogs").values())
    assert types == ["EXPENSE_DELETED", "EXPENSE_RECORDED"]


async def test_unknown_expense_category_is_rejected(client: AsyncClient, food_court: FakeFirestore) -> None:
    headers = add_user(food_court, "admin-1", "admin")
    response = await client.post(
        "/api/v1/food/expenses",
        json={"siteId": "site-1", "stallId": "stall-f", "itemName": "Gadget",
              "category": "Electronics", "quantity": 1, "unit": "pc", "pricePerUnit": 10,
              "purchaseDate": "2024-05-01"},
        headers=headers,
    )
    assert response.status_code == 400


async def test_expense_update_rejects_null_total(client: AsyncClient, food_court: FakeFirestore) -> None:
    headers = add_user(food_court, "admin-1", "admin")
    created = await client.post(
        "/api/v1/food/expenses",
        json={"siteId": "site-1", "stallId": "stall-f", "itemName": "Rice",
              "category": "Groceries", "quantity": 5, "unit": "kg", "pricePerUnit": 60,
              "purchaseDate": "2024-05-01", "vendor": "Local Mart"},
        headers=headers,
    )
    expense_id = created.json()["id"]

    rejected = await client.patch(
        f"/api/v1/food/expenses/{expense_id}", json={"totalCost": None}, headers=headers
    )
    cleared = await client.patch(
        f"/api/v1/food/expenses/{expense_id}", json={"vendor": None}, headers=headers
    )

    assert rejected.status_code == 400
    assert cleared.status_code == 200
    stored = food_court.get("foodItemExpenses", expense_id)
    assert stored["totalCost"] == 300
    assert stored["vendor"] is None
