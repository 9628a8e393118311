"""Documents and auth headers for arranging test scenarios."""

from firestore_fake import FakeFirestore


def bearer(uid: str) -> dict[str, str]:
    return {"Authorization": f"Bearer token-{uid}"}


def add_user(
    firestore: FakeFirestore,
    uid: str,
    role: str = "staff",
    *,
    default_site_id: str | None = None,
    default_stall_id: str | None = None,
    managed_site_ids: list[str] | None = None,
    status: str = "active",
) -> dict[str, str]:
    """Store a users/{uid} profile and return auth headers for it."""
    firestore.put("users", uid, {
        "email": f"{uid}@example.com",
        "displayName": uid.title(),
        "role": role,
        "status": status,
        "defaultSiteId": default_site_id,
        "defaultStallId": default_stall_id,
        "managedSiteIds": managed_site_ids or [],
    })
    return bearer(uid)


def add_site(firestore: FakeFirestore, site_id: str, name: str | None = None) -> str:
    firestore.put("sites", site_id, {"name": name or site_id.title(), "location": None})
    return site_id


def add_stall(
    firestore: FakeFirestore, stall_id: str, site_id: str, name: str | None = None
) -> str:
    firestore.put("stalls", stall_id, {
        "siteId": site_id,
        "name": name or stall_id.title(),
        "stallType": "Retail Counter",
    })
    return stall_id


def add_item(
    firestore: FakeFirestore,
    item_id: str,
    site_id: str,
    stall_id: str | None = None,
    *,
    quantity: int = 0,
    name: str = "Water Bottle",
    master_id: str | None = None,
    price: float = 20.0,
    threshold: int = 5,
) -> str:
    firestore.put("stockItems", item_id, {
        "siteId": site_id,
        "stallId": stall_id,
        "originalMasterItemId": master_id,
        "name": name,
        "category": "Beverages",
        "unit": "pcs",
        "quantity": quantity,
        "price": price,
        "costPrice": price / 2,
        "lowStockThreshold": threshold,
    })
    return item_id
