"""Site and stall hierarchy: admin writes, scoped reads, restrict-on-delete."""

from httpx import AsyncClient

from factories import add_item, add_site, add_stall, add_user
from firestore_fake import FakeFirestore


async def test_admin_creates_site_and_stall(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "admin-1", "admin")

    site = await client.post("/api/v1/sites", json={"name": "North Campus"}, headers=headers)
    assert site.status_code == 201
    site_id = site.json()["id"]

    stall = await client.post(
        "/api/v1/stalls",
        json={"siteId": site_id, "name": "Snack Bar", "stallType": "Food Stall"},
        headers=headers,
    )
    assert stall.status_code == 201
    assert firestore.get("stalls", stall.json()["id"])["siteId"] == site_id


async def test_stall_for_unknown_site_returns_404(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "admin-1", "admin")
    response = await client.post(
        "/api/v1/stalls",
        json={"siteId": "missing", "name": "Snack Bar", "stallType": "Food Stall"},
        headers=headers,
    )
    assert response.status_code == 404


async def test_non_admin_cannot_create_site(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "manager-1", "manager", managed_site_ids=["site-1"])
    response = await client.post("/api/v1/sites", json={"name": "Rogue Site"}, headers=headers)
    assert response.status_code == 403


async def test_stalls_listing_follows_scope(client: AsyncClient, firestore: FakeFirestore) -> None:
    add_site(firestore, "site-1")
    add_site(firestore, "site-2")
    add_stall(firestore, "stall-a", "site-1")
    add_stall(firestore, "stall-b", "site-1")
    add_stall(firestore, "stall-x", "site-2")
    pinned = add_user(firestore, "staff-1", default_site_id="site-1", default_stall_id="stall-a")
    manager = add_user(firestore, "manager-1", "manager", managed_site_ids=["site-1"])

    mine = await client.get("/api/v1/stalls", headers=pinned)
    managed = await client.get("/api/v1/stalls", headers=manager)

    assert [s["id"] for s in mine.json()] == ["stall-a"]
    assert sorted(s["id"] for s in managed.json()) == ["stall-a", "stall-b"]


async def test_stall_with_stock_cannot_be_deleted(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "admin-1", "admin")
    add_site(firestore, "site-1")
    add_stall(firestore, "stall-a", "site-1")
    add_item(firestore, "item-1", "site-1", "stall-a", quantity=2)

    blocked = await client.delete("/api/v1/stalls/stall-a", headers=headers)
    assert blocked.status_code == 409
    assert firestore.get("stalls", "stall-a") is not None

    firestore.delete("stockItems", "item-1")
    removed = await client.delete("/api/v1/stalls/stall-a", headers=headers)
    assert removed.status_code == 204
    assert firestore.get("stalls", "stall-a") is None


async def test_site_with_stalls_cannot_be_deleted(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "admin-1", "admin")
    add_site(firestore, "site-1")
    add_stall(firestore, "stall-a", "site-1")

    response = await client.delete("/api/v1/sites/site-1", headers=headers)

    assert response.status_code == 409
    assert response.json()["error"] == "RESOURCE_CONFLICT"


async def test_site_name_cannot_be_nulled(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "admin-1", "admin")
    add_site(firestore, "site-1", "North Campus")

    rejected = await client.patch("/api/v1/sites/site-1", json={"name": None}, headers=headers)
    cleared = await client.patch("/api/v1/sites/site-1", json={"location": None}, headers=headers)

    assert rejected.status_code == 400
    assert rejected.json()["error"] == "VALIDATION_ERROR"
    assert cleared.status_code == 200
    assert firestore.get("sites", "site-1")["name"] == "North Campus"


async def test_stall_type_cannot_be_nulled(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "admin-1", "admin")
    add_site(firestore, "site-1")
    add_stall(firestore, "stall-a", "site-1")

    response = await client.patch(
        "/api/v1/stalls/stall-a", json={"name": "Kiosk", "stallType": None}, headers=headers
    )

    assert response.status_code == 400
    stored = firestore.get("stalls", "stall-a")
    assert stored["stallType"] == "Retail Counter"
    assert stored["name"] == "Stall-A"
