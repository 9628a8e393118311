"""User profile edits through the HTTP API."""

from httpx import AsyncClient

from factories import add_site, add_stall, add_user
from firestore_fake import FakeFirestore


async def test_admin_clears_default_stall(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "admin-1", "admin")
    add_site(firestore, "site-1")
    add_stall(firestore, "stall-a", "site-1")
    add_user(firestore, "staff-1", default_site_id="site-1", default_stall_id="stall-a")

    response = await client.patch(
        "/api/v1/users/staff-1", json={"defaultStallId": None}, headers=headers
    )

    assert response.status_code == 200
    stored = firestore.get("users", "staff-1")
    assert stored["defaultStallId"] is None
    assert stored["defaultSiteId"] == "site-1"


async def test_null_role_is_rejected(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "admin-1", "admin")
    add_user(firestore, "staff-1")

    response = await client.patch("/api/v1/users/staff-1", json={"role": None}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
    assert firestore.get("users", "staff-1")["role"] == "staff"
