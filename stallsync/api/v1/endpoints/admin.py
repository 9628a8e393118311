"""Admin API: user provisioning and the typed-phrase data resets."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from stallsync.api.v1.dependencies import AdminUser
from stallsync.api.v1.dependencies.services import (
    get_collection_reset_service,
    get_user_admin_service,
)
from stallsync.application.dtos.reset import ResetReport
from stallsync.application.services.collection_reset_service import (
    RESET_DATA_PHRASE,
    RESET_STAFF_DATA_PHRASE,
    CollectionResetService,
)
from stallsync.application.services.user_admin_service import UserAdminService
from stallsync.core.limiter import limit_admin
from stallsync.infrastructure.firebase.collections import (
    RESET_DATA_COLLECTIONS,
    RESET_STAFF_DATA_COLLECTIONS,
)
from stallsync.schemas.admin import (
    CollectionResetResponse,
    CreateUserRequest,
    CreateUserResponse,
    ResetRequest,
    ResetResponse,
)
from stallsync.schemas.common import MessageResponse

router = APIRouter()

ResetService = Annotated[CollectionResetService, Depends(get_collection_reset_service)]


@router.post("/create-user", response_model=CreateUserResponse, status_code=201)
@limit_admin
async def create_user(
    request: Request,
    body: CreateUserRequest,
    _: AdminUser,
    service: Annotated[UserAdminService, Depends(get_user_admin_service)],
) -> CreateUserResponse:
    """Create the Firebase Auth account and its users/{uid} profile (409 on duplicate email)."""
    created = await service.create_user(
        email=body.email,
        password=body.password,
        display_name=body.display_name,
        role=body.role,
        default_site_id=body.default_site_id,
        default_stall_id=body.default_stall_id,
        managed_site_ids=body.managed_site_ids,
    )
    return CreateUserResponse(uid=created.uid, email=created.email, display_name=created.display_name)


@router.delete("/delete-user/{uid}", response_model=MessageResponse)
@limit_admin
async def delete_user(
    request: Request,
    uid: str,
    caller: AdminUser,
    service: Annotated[UserAdminService, Depends(get_user_admin_service)],
) -> MessageResponse:
    """Delete a user's auth account and profile; admins cannot delete themselves (403)."""
    await service.delete_user(caller, uid)
    return MessageResponse(message=f"User {uid} deleted")


def _reset_response(report: ResetReport, label: str) -> JSONResponse:
    """200 when every collection was wiped, 207 when some failed, 500 when all failed."""
    if report.errors == 0:
        code, message = status.HTTP_200_OK, f"{label} completed"
    elif report.successes == 0:
        code, message = status.HTTP_500_INTERNAL_SERVER_ERROR, f"{label} failed for every collection"
    else:
        code = status.HTTP_207_MULTI_STATUS
        message = f"{label} completed with errors in {report.errors} collection(s)"
    body = ResetResponse(
        message=message,
        successes=report.successes,
        errors=report.errors,
        documents_deleted=report.documents_deleted,
        outcomes=[CollectionResetResponse.model_validate(o) for o in report.outcomes],
    )
    return JSONResponse(status_code=code, content=body.model_dump(mode="json", by_alias=True))


@router.post(
    "/reset-data",
    response_model=ResetResponse,
    responses={207: {"model": ResetResponse}, 500: {"model": ResetResponse}},
)
@limit_admin
async def reset_data(
    request: Request,
    body: ResetRequest,
    _: AdminUser,
    service: ResetService,
) -> JSONResponse:
    """Wipe inventory, sales, sites, stalls and food data. Body must say ``RESET DATA``."""
    report = await service.reset(RESET_DATA_COLLECTIONS, body.confirmation, RESET_DATA_PHRASE)
    return _reset_response(report, "Data reset")


@router.post(
    "/reset-staff-data",
    response_model=ResetResponse,
    responses={207: {"model": ResetResponse}, 500: {"model": ResetResponse}},
)
@limit_admin
async def reset_staff_data(
    request: Request,
    body: ResetRequest,
    _: AdminUser,
    service: ResetService,
) -> JSONResponse:
    """Wipe attendance, advances, salary payments and the staff activity log."""
    report = await service.reset(
        RESET_STAFF_DATA_COLLECTIONS, body.confirmation, RESET_STAFF_DATA_PHRASE
    )
    return _reset_response(report, "Staff data reset")
