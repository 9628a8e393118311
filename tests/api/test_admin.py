"""Admin API: user provisioning and typed-phrase data resets."""

import pytest
from httpx import AsyncClient

from factories import add_item, add_site, add_user
from firestore_fake import FakeFirebase, FakeFirestore


@pytest.fixture
def admin_headers(firestore: FakeFirestore) -> dict[str, str]:
    return add_user(firestore, "admin-1", "admin")


async def test_create_user_creates_auth_account_and_profile(
    client: AsyncClient, fake_firebase: FakeFirebase, admin_headers: dict[str, str]
) -> None:
    add_site(fake_firebase.firestore, "site-1")
    response = await client.post(
        "/api/v1/admin/create-user",
        json={
            "email": "new.staff@example.com",
            "password": "secret123",
            "displayName": "New Staff",
            "role": "staff",
            "defaultSiteId": "site-1",
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    uid = response.json()["uid"]
    assert fake_firebase.auth.users[uid]["email"] == "new.staff@example.com"
    profile = fake_firebase.firestore.get("users", uid)
    assert profile["role"] == "staff"
    assert profile["defaultSiteId"] == "site-1"
    assert profile["status"] == "active"


async def test_create_user_requires_admin(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "manager-1", "manager", managed_site_ids=["site-1"])
    response = await client.post(
        "/api/v1/admin/create-user",
        json={"email": "x@example.com", "password": "secret123", "displayName": "X Y"},
        headers=headers,
    )
    assert response.status_code == 403


async def test_create_user_with_existing_email_returns_409(
    client: AsyncClient, fake_firebase: FakeFirebase, admin_headers: dict[str, str]
) -> None:
    fake_firebase.auth.add("existing", "taken@example.com", "Taken")
    response = await client.post(
        "/api/v1/admin/create-user",
        json={"email": "taken@example.com", "password": "secret123", "displayName": "Taken Again"},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "USER_ALREADY_EXISTS"


@pytest.mark.parametrize(
    "body",
    [
        {"email": "not-an-email", "password": "secret123", "displayName": "Bad Email"},
        {"email": "short@example.com", "password": "123", "displayName": "Short Pw"},
        {"email": "pinned@example.com", "password": "secret123", "displayName": "Pinned",
         "defaultStallId": "stall-a"},
    ],
)
async def test_create_user_invalid_input_returns_400(
    client: AsyncClient, fake_firebase: FakeFirebase, admin_headers: dict[str, str], body: dict
) -> None:
    response = await client.post("/api/v1/admin/create-user", json=body, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
    assert fake_firebase.auth.users == {}


async def test_delete_user_removes_account_and_profile(
    client: AsyncClient, fake_firebase: FakeFirebase, admin_headers: dict[str, str]
) -> None:
    fake_firebase.auth.add("staff-1", "staff-1@example.com")
    add_user(fake_firebase.firestore, "staff-1")

    response = await client.delete("/api/v1/admin/delete-user/staff-1", headers=admin_headers)

    assert response.status_code == 200
    assert "staff-1" not in fake_firebase.auth.users
    assert fake_firebase.firestore.get("users", "staff-1") is None


async def test_admin_cannot_delete_self(
    client: AsyncClient, fake_firebase: FakeFirebase, admin_headers: dict[str, str]
) -> None:
    fake_firebase.auth.add("admin-1", "admin-1@example.com")
    response = await client.delete("/api/v1/admin/delete-user/admin-1", headers=admin_headers)
    assert response.status_code == 403
    assert "admin-1" in fake_firebase.auth.users


async def test_delete_unknown_user_returns_404(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    response = await client.delete("/api/v1/admin/delete-user/nobody", headers=admin_headers)
    assert response.status_code == 404


async def test_missing_iam_permission_is_reported_as_403(
    client: AsyncClient, fake_firebase: FakeFirebase, admin_headers: dict[str, str]
) -> None:
    fake_firebase.auth.deny_permissions = True
    response = await client.delete("/api/v1/admin/delete-user/staff-1", headers=admin_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "UPSTREAM_PERMISSION_DENIED"


async def test_reset_with_wrong_phrase_returns_400_and_deletes_nothing(
    client: AsyncClient, firestore: FakeFirestore, admin_headers: dict[str, str]
) -> None:
    add_site(firestore, "site-1")
    response = await client.post(
        "/api/v1/admin/reset-data", json={"confirmation": "reset data"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "CONFIRMATION_MISMATCH"
    assert firestore.count("sites") == 1


async def test_reset_data_wipes_business_collections_only(
    client: AsyncClient, firestore: FakeFirestore, admin_headers: dict[str, str]
) -> None:
    add_site(firestore, "site-1")
    add_item(firestore, "item-1", "site-1", quantity=3)
    firestore.put("staffAttendance", "2024-05-01_staff-1", {"status": "Present"})

    response = await client.post(
        "/api/v1/admin/reset-data", json={"confirmation": "RESET DATA"}, headers=admin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["errors"] == 0
    assert body["documentsDeleted"] == 2
    assert firestore.count("sites") == 0
    assert firestore.count("stockItems") == 0
    assert firestore.count("staffAttendance") == 1
    assert firestore.get("users", "admin-1") is not None


async def test_reset_staff_data(
    client: AsyncClient, firestore: FakeFirestore, admin_headers: dict[str, str]
) -> None:
    add_site(firestore, "site-1")
    firestore.put("staffAttendance", "2024-05-01_staff-1", {"status": "Present"})
    firestore.put("advances", "adv-1", {"amount": 500})

    response = await client.post(
        "/api/v1/admin/reset-staff-data",
        json={"confirmation": "RESET STAFF DATA"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert firestore.count("staffAttendance") == 0
    assert firestore.count("advances") == 0
    assert firestore.count("sites") == 1


async def test_reset_requires_admin(client: AsyncClient, firestore: FakeFirestore) -> None:
    headers = add_user(firestore, "staff-1", "staff", default_site_id="site-1")
    response = await client.post(
        "/api/v1/admin/reset-data", json={"confirmation": "RESET DATA"}, headers=headers
    )
    assert response.status_code == 403
