"""Staff HR records: attendance, advances, payments and who may see them."""

import pytest
from httpx import AsyncClient

from factories import add_site, add_user
from firestore_fake import FakeFirestore


@pytest.fixture
def crew(firestore: FakeFirestore) -> dict[str, dict[str, str]]:
    add_site(firestore, "site-1")
    add_site(firestore, "site-2")
    return {
        "manager": add_user(firestore, "manager-1", "manager", managed_site_ids=["site-1"]),
        "alice": add_user(firestore, "alice", default_site_id="site-1"),
        "bob": add_user(firestore, "bob", default_site_id="site-1"),
    }


async def test_manager_marks_attendance_once_per_day(
    client: AsyncClient, firestore: FakeFirestore, crew: dict[str, dict[str, str]]
) -> None:
    for status in ("Present", "Half-day"):
        response = await client.post(
            "/api/v1/staff/attendance",
            json={"staffUid": "alice", "siteId": "site-1", "date": "2024-05-01", "status": status},
            headers=crew["manager"],
        )
        assert response.status_code == 200

    assert response.json()["id"] == "2024-05-01_alice"
    assert firestore.count("staffAttendance") == 1
    assert firestore.get("staffAttendance", "2024-05-01_alice")["status"] == "Half-day"
    logs = firestore.all("staffActivityLogs").values()
    assert [log["type"] for log in logs] == ["ATTENDANCE_MARKED"] * 2


async def test_staff_cannot_mark_attendance(
    client: AsyncClient, crew: dict[str, dict[str, str]]
) -> None:
    response = await client.post(
        "/api/v1/staff/attendance",
        json={"staffUid": "alice", "siteId": "site-1", "date": "2024-05-01", "status": "Present"},
        headers=crew["alice"],
    )
    assert response.status_code == 403


async def test_manager_cannot_write_for_unmanaged_site(
    client: AsyncClient, crew: dict[str, dict[str, str]]
) -> None:
    response = await client.post(
        "/api/v1/staff/advances",
        json={"staffUid": "alice", "siteId": "site-2", "amount": 500, "date": "2024-05-03",
              "forMonth": 5, "forYear": 2024},
        headers=crew["manager"],
    )
    assert response.status_code == 403


async def test_staff_only_see_their_own_records(
    client: AsyncClient, crew: dict[str, dict[str, str]]
) -> None:
    for uid in ("alice", "bob"):
        created = await client.post(
            "/api/v1/staff/advances",
            json={"staffUid": uid, "siteId": "site-1", "amount": 250, "date": "2024-05-03",
                  "forMonth": 5, "forYear": 2024},
            headers=crew["manager"],
        )
        assert created.status_code == 201

    own = await client.get("/api/v1/staff/advances", headers=crew["alice"])
    other = await client.get("/api/v1/staff/advances", params={"staff_uid": "bob"}, headers=crew["alice"])
    everyone = await client.get("/api/v1/staff/advances", headers=crew["manager"])

    assert [a["staffUid"] for a in own.json()] == ["alice"]
    assert other.status_code == 403
    assert sorted(a["staffUid"] for a in everyone.json()) == ["alice", "bob"]


async def test_salary_payment_is_recorded_and_logged(
    client: AsyncClient, firestore: FakeFirestore, crew: dict[str, dict[str, str]]
) -> None:
    response = await client.post(
        "/api/v1/staff/payments",
        json={"staffUid": "bob", "siteId": "site-1", "amountPaid": 12000, "paymentDate": "2024-06-01",
              "forMonth": 5, "forYear": 2024},
        headers=crew["manager"],
    )

    assert response.status_code == 201
    payment = response.json()
    assert payment["amountPaid"] == 12000
    assert payment["recordedByUid"] == "manager-1"
    logs = list(firestore.all("staffActivityLogs").values())
    assert logs[0]["type"] == "SALARY_PAID"


async def test_staff_details_roundtrip(
    client: AsyncClient, crew: dict[str, dict[str, str]]
) -> None:
    saved = await client.put(
        "/api/v1/staff/alice/details",
        json={"phoneNumber": "+91 98765 43210", "salary": 15000, "joiningDate": "2023-01-15"},
        headers=crew["manager"],
    )
    own = await client.get("/api/v1/staff/alice/details", headers=crew["alice"])
    peer = await client.get("/api/v1/staff/alice/details", headers=crew["bob"])

    assert saved.status_code == 200
    assert own.status_code == 200
    assert own.json()["salary"] == 15000
    assert own.json()["joiningDate"] == "2023-01-15"
    assert peer.status_code == 403
