"""User profile API: current user, listing, role/scope and status changes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from stallsync.api.v1.dependencies import AdminUser, CurrentUser, Scope
from stallsync.api.v1.dependencies.repositories import get_user_repo
from stallsync.api.v1.dependencies.services import get_user_admin_service
from stallsync.application.services.user_admin_service import UserAdminService
from stallsync.core.limiter import limit_admin
from stallsync.domain.enums import UserRole
from stallsync.domain.exceptions import AuthorizationException
from stallsync.infrastructure.firebase.repositories import FirestoreUserRepository
from stallsync.schemas.user import UserProfileResponse, UserStatusRequest, UserUpdateRequest

router = APIRouter()

Users = Annotated[FirestoreUserRepository, Depends(get_user_repo)]


@router.get("/me", response_model=UserProfileResponse)
async def get_me(user: CurrentUser) -> UserProfileResponse:
    return UserProfileResponse.model_validate(user)


@router.get("", response_model=list[UserProfileResponse])
async def list_users(
    user: CurrentUser,
    scope: Scope,
    users: Users,
    role: UserRole | None = None,
    site_id: str | None = None,
) -> list[UserProfileResponse]:
    """Admins see everyone; managers see users whose default site they manage."""
    if user.role == UserRole.STAFF:
        raise AuthorizationException("user", "list")
    filters = scope.query_filters(site_id, site_field="defaultSiteId", stall_field=None)
    if filters is None:
        return []
    profiles = await users.list(filters, role=role)
    return [UserProfileResponse.model_validate(p) for p in profiles]


@router.patch("/{uid}", response_model=UserProfileResponse)
@limit_admin
async def update_user(
    request: Request,
    uid: str,
    body: UserUpdateRequest,
    _: AdminUser,
    service: Annotated[UserAdminService, Depends(get_user_admin_service)],
) -> UserProfileResponse:
    """Change display name, role or default/managed sites (admin)."""
    changes = body.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return UserProfileResponse.model_validate(await service.update_profile(uid, changes))


@router.patch("/{uid}/status", response_model=UserProfileResponse)
@limit_admin
async def set_user_status(
    request: Request,
    uid: str,
    body: UserStatusRequest,
    caller: AdminUser,
    service: Annotated[UserAdminService, Depends(get_user_admin_service)],
) -> UserProfileResponse:
    """Activate or deactivate a user; logged as USER_STATUS_CHANGED."""
    return UserProfileResponse.model_validate(await service.set_status(caller, uid, body.status))
