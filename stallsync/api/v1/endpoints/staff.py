"""Staff HR API: details, attendance, salary advances and payments.

Staff see only their own records, managers the records of their managed
sites, admins everything. Writes need an admin or a manager of the site.
"""

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request

from stallsync.api.v1.dependencies import CurrentActor, CurrentUser, ManagerOrAdmin, Scope
from stallsync.api.v1.dependencies.repositories import get_staff_repo, get_user_repo
from stallsync.application.dtos.user import UserProfile
from stallsync.application.services.access_scope import AccessScope, FieldFilter
from stallsync.core.limiter import limit_writes
from stallsync.domain.enums import UserRole
from stallsync.domain.exceptions import AuthorizationException, ResourceNotFoundException
from stallsync.infrastructure.firebase.repositories import (
    FirestoreStaffRepository,
    FirestoreUserRepository,
)
from stallsync.schemas.staff import (
    AdvanceRequest,
    AdvanceResponse,
    AttendanceRequest,
    AttendanceResponse,
    SalaryPaymentRequest,
    SalaryPaymentResponse,
    StaffActivityLogResponse,
    StaffDetailsRequest,
    StaffDetailsResponse,
)

router = APIRouter()

Staff = Annotated[FirestoreStaffRepository, Depends(get_staff_repo)]
Users = Annotated[FirestoreUserRepository, Depends(get_user_repo)]


def _hr_filters(
    user: UserProfile,
    scope: AccessScope,
    site_id: str | None,
    staff_uid: str | None,
    *,
    staff_field: str = "staffUid",
) -> list[FieldFilter] | None:
    """List filters for HR records; None when nothing is visible."""
    if user.role == UserRole.STAFF:
        if staff_uid not in (None, user.uid):
            raise AuthorizationException("staff record", "read")
        filters: list[FieldFilter] = [(staff_field, "==", user.uid)]
        if site_id is not None:
            filters.append(("siteId", "==", site_id))
        return filters
    filters = scope.query_filters(site_id, stall_field=None)
    if filters is not None and staff_uid is not None:
        filters.append((staff_field, "==", staff_uid))
    return filters


async def _require_staff_access(
    user: UserProfile, scope: AccessScope, users: FirestoreUserRepository, uid: str, action: str
) -> UserProfile:
    """Load the target profile and check the caller may act on it."""
    target = await users.get(uid)
    if target is None:
        raise ResourceNotFoundException("user", uid)
    if user.uid == uid and action == "read":
        return target
    if user.role == UserRole.STAFF:
        raise AuthorizationException("staff record", action)
    if not scope.unrestricted and not scope.permits_site(target.default_site_id):
        raise AuthorizationException("staff record", action)
    return target


@router.get("/{uid}/details", response_model=StaffDetailsResponse)
async def get_staff_details(
    uid: str, user: CurrentUser, scope: Scope, users: Users, staff: Staff
) -> StaffDetailsResponse:
    await _require_staff_access(user, scope, users, uid, "read")
    return StaffDetailsResponse.model_validate(await staff.get_details(uid))


@router.put("/{uid}/details", response_model=StaffDetailsResponse)
@limit_writes
async def save_staff_details(
    request: Request,
    uid: str,
    body: StaffDetailsRequest,
    user: ManagerOrAdmin,
    scope: Scope,
    actor: CurrentActor,
    users: Users,
    staff: Staff,
) -> StaffDetailsResponse:
    target = await _require_staff_access(user, scope, users, uid, "update")
    fields = body.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude={"site_id"})
    site_id = body.site_id or target.default_site_id
    return StaffDetailsResponse.model_validate(await staff.save_details(actor, uid, site_id, fields))


@router.get("/attendance", response_model=list[AttendanceResponse])
async def list_attendance(
    user: CurrentUser,
    scope: Scope,
    staff: Staff,
    site_id: str | None = None,
    staff_uid: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[AttendanceResponse]:
    filters = _hr_filters(user, scope, site_id, staff_uid)
    if filters is None:
        return []
    found = await staff.list_attendance(
        filters,
        start_date.isoformat() if start_date else None,
        end_date.isoformat() if end_date else None,
    )
    return [AttendanceResponse.model_validate(a) for a in found]


@router.post("/attendance", response_model=AttendanceResponse)
@limit_writes
async def mark_attendance(
    request: Request,
    body: AttendanceRequest,
    _: ManagerOrAdmin,
    scope: Scope,
    actor: CurrentActor,
    staff: Staff,
) -> AttendanceResponse:
    """Mark (or overwrite) one staff member's attendance for a day."""
    scope.require(body.site_id, resource="attendance", action="write")
    record = await staff.mark_attendance(
        actor, body.staff_uid, body.site_id, body.date.isoformat(), body.status, body.notes
    )
    return AttendanceResponse.model_validate(record)


def _record_fields(body: Any) -> dict[str, Any]:
    return body.model_dump(mode="json", by_alias=True, exclude={"staff_uid", "site_id"})


@router.get("/advances", response_model=list[AdvanceResponse])
async def list_advances(
    user: CurrentUser,
    scope: Scope,
    staff: Staff,
    site_id: str | None = None,
    staff_uid: str | None = None,
) -> list[AdvanceResponse]:
    filters = _hr_filters(user, scope, site_id, staff_uid)
    if filters is None:
        return []
    return [AdvanceResponse.model_validate(a) for a in await staff.list_advances(filters)]


@router.post("/advances", response_model=AdvanceResponse, status_code=201)
@limit_writes
async def record_advance(
    request: Request,
    body: AdvanceRequest,
    _: ManagerOrAdmin,
    scope: Scope,
    actor: CurrentActor,
    staff: Staff,
) -> AdvanceResponse:
    scope.require(body.site_id, resource="salary advance", action="create")
    record = await staff.record_advance(actor, body.staff_uid, body.site_id, _record_fields(body))
    return AdvanceResponse.model_validate(record)


@router.get("/payments", response_model=list[SalaryPaymentResponse])
async def list_payments(
    user: CurrentUser,
    scope: Scope,
    staff: Staff,
    site_id: str | None = None,
    staff_uid: str | None = None,
) -> list[SalaryPaymentResponse]:
    filters = _hr_filters(user, scope, site_id, staff_uid)
    if filters is None:
        return []
    return [SalaryPaymentResponse.model_validate(p) for p in await staff.list_payments(filters)]


@router.post("/payments", response_model=SalaryPaymentResponse, status_code=201)
@limit_writes
async def record_payment(
    request: Request,
    body: SalaryPaymentRequest,
    _: ManagerOrAdmin,
    scope: Scope,
    actor: CurrentActor,
    staff: Staff,
) -> SalaryPaymentResponse:
    scope.require(body.site_id, resource="salary payment", action="create")
    record = await staff.record_payment(actor, body.staff_uid, body.site_id, _record_fields(body))
    return SalaryPaymentResponse.model_validate(record)


@router.get("/activity-logs", response_model=list[StaffActivityLogResponse])
async def list_staff_activity(
    user: CurrentUser,
    scope: Scope,
    staff: Staff,
    site_id: str | None = None,
    staff_uid: str | None = None,
    limit: int = Query(default=200, ge=1, le=1000),
) -> list[StaffActivityLogResponse]:
    filters = _hr_filters(user, scope, site_id, staff_uid, staff_field="relatedStaffUid")
    if filters is None:
        return []
    found = await staff.list_activity(filters, limit)
    return [StaffActivityLogResponse.model_validate(a) for a in found]
