"""Admin user provisioning: auth account + profile kept in step."""

from __future__ import annotations

import logging
from typing import Any

from stallsync.application.dtos.user import Actor, IdentityUser, UserProfile
from stallsync.application.interfaces.repositories import IUserRepository
from stallsync.application.interfaces.services import IIdentityProvider
from stallsync.domain.enums import UserRole, UserStatus
from stallsync.domain.exceptions import (
    ResourceNotFoundException,
    SelfDeletionForbiddenException,
    StallSyncException,
    ValidationException,
)
from stallsync.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


def _check_scope_fields(
    role: UserRole,
    default_site_id: str | None,
    default_stall_id: str | None,
) -> None:
    if default_stall_id and not default_site_id:
        raise ValidationException(
            "defaultStallId requires defaultSiteId", "defaultStallId"
        )
    if role == UserRole.ADMIN and default_stall_id:
        raise ValidationException("Admins are not pinned to a stall", "defaultStallId")


class UserAdminService:
    """Create, delete and re-scope users on behalf of an admin."""

    def __init__(self, identity: IIdentityProvider, users: IUserRepository) -> None:
        self._identity = identity
        self._users = users

    async def create_user(
        self,
        email: str,
        password: str,
        display_name: str,
        role: UserRole = UserRole.STAFF,
        default_site_id: str | None = None,
        default_stall_id: str | None = None,
        managed_site_ids: list[str] | None = None,
    ) -> IdentityUser:
        """Create the Firebase Auth account, then the users/{uid} profile.

        If the profile write fails the new auth account is deleted again so
        no account exists without a profile.
        """
        _check_scope_fields(role, default_site_id, default_stall_id)
        created = await self._identity.create_user(email, password, display_name)
        profile = UserProfile(
            uid=created.uid,
            email=created.email,
            display_name=created.display_name,
            role=role,
            status=UserStatus.ACTIVE,
            default_site_id=default_site_id,
            default_stall_id=default_stall_id,
            managed_site_ids=tuple(managed_site_ids or ()) if role == UserRole.MANAGER else (),
            created_at=utc_now(),
        )
        try:
            await self._users.create(profile)
        except Exception:
            logger.exception("Profile write failed for new user %s; removing auth account", created.uid)
            try:
                await self._identity.delete_user(created.uid)
            except StallSyncException:
                logger.exception("Could not roll back auth account %s", created.uid)
            raise
        logger.info("Created user %s (%s) with role %s", created.uid, created.email, role.value)
        return created

    async def delete_user(self, caller: UserProfile, uid: str) -> None:
        """Delete another user's auth account and profile.

        Raises:
            SelfDeletionForbiddenException: uid is the caller's own uid.
            ResourceNotFoundException: no auth account with that uid.
        """
        if uid == caller.uid:
            raise SelfDeletionForbiddenException()
        await self._identity.delete_user(uid)
        await self._users.delete(uid)
        logger.info("User %s deleted by %s", uid, caller.uid)

    async def update_profile(self, uid: str, changes: dict[str, Any]) -> UserProfile:
        """Apply role/scope/display-name changes to a profile."""
        current = await self._users.get(uid)
        if current is None:
            raise ResourceNotFoundException("user", uid)
        role = UserRole(changes.get("role", current.role))
        site = changes.get("defaultSiteId", current.default_site_id)
        stall = changes.get("defaultStallId", current.default_stall_id)
        _check_scope_fields(role, site, stall)
        if role != UserRole.MANAGER and "managedSiteIds" not in changes:
            changes = {**changes, "managedSiteIds": []}
        return await self._users.update(uid, changes)

    async def set_status(self, caller: UserProfile, uid: str, status: UserStatus) -> UserProfile:
        """Activate or deactivate a user; sign-in is disabled while inactive."""
        if uid == caller.uid and status == UserStatus.INACTIVE:
            raise ValidationException("Admins cannot deactivate their own account", "status")
        updated = await self._users.set_status(uid, status, Actor.from_profile(caller))
        await self._identity.set_disabled(uid, status == UserStatus.INACTIVE)
        return updated
