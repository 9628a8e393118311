"""Activity log documents written in the same batch as the change they describe."""

from typing import Any

from stallsync.application.dtos.food import FoodActivityLogResult
from stallsync.application.dtos.staff import StaffActivityLogResult
from stallsync.application.dtos.user import Actor
from stallsync.domain.enums import FoodStallActivityType, StaffActivityType
from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot
from stallsync.shared.utils.datetime import utc_now


def food_activity_entry(
    actor: Actor,
    activity: FoodStallActivityType,
    site_id: str,
    stall_id: str,
    related_document_id: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "siteId": site_id,
        "stallId": stall_id,
        "userId": actor.uid,
        "userName": actor.name,
        "timestamp": utc_now(),
        "type": activity.value,
        "relatedDocumentId": related_document_id,
        "details": details or {},
    }


def staff_activity_entry(
    actor: Actor,
    activity: StaffActivityType,
    related_staff_uid: str,
    site_id: str | None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "siteId": site_id,
        "userId": actor.uid,
        "userName": actor.name,
        "timestamp": utc_now(),
        "type": activity.value,
        "relatedStaffUid": related_staff_uid,
        "details": details or {},
    }


def food_activity_from_snapshot(snap: DocumentSnapshot) -> FoodActivityLogResult:
    d = snap.to_dict()
    return FoodActivityLogResult(
        id=snap.id,
        site_id=d.get("siteId", ""),
        stall_id=d.get("stallId", ""),
        user_id=d.get("userId", ""),
        user_name=d.get("userName"),
        timestamp=d.get("timestamp"),
        type=d.get("type", ""),
        related_document_id=d.get("relatedDocumentId", ""),
        details=d.get("details") or {},
    )


def staff_activity_from_snapshot(snap: DocumentSnapshot) -> StaffActivityLogResult:
    d = snap.to_dict()
    return StaffActivityLogResult(
        id=snap.id,
        site_id=d.get("siteId"),
        user_id=d.get("userId", ""),
        user_name=d.get("userName"),
        timestamp=d.get("timestamp"),
        type=d.get("type", ""),
        related_staff_uid=d.get("relatedStaffUid", ""),
        details=d.get("details") or {},
    )
