"""Caller authentication, role checks and access scope (composition root)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stallsync.api.v1.dependencies.firebase import get_identity_provider
from stallsync.api.v1.dependencies.repositories import get_user_repo
from stallsync.application.dtos.user import Actor, UserProfile
from stallsync.application.interfaces.repositories import IUserRepository
from stallsync.application.interfaces.services import IIdentityProvider
from stallsync.application.services.access_scope import AccessScope, resolve_access_scope
from stallsync.domain.enums import UserRole, UserStatus
from stallsync.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    InactiveUserException,
)

_http_bearer = HTTPBearer(auto_error=False)


async def authenticate_token(
    token: str,
    identity: IIdentityProvider,
    users: IUserRepository,
) -> UserProfile:
    """Verify a Firebase ID token and load the caller's active profile.

    Raises:
        AuthenticationException: Token invalid or expired (401).
        AuthorizationException: No users/{uid} profile (403).
        InactiveUserException: Profile is inactive (403).
    """
    claims = await identity.verify_id_token(token)
    profile = await users.get(claims["uid"])
    if profile is None:
        raise AuthorizationException(message="No user profile exists for this account")
    if profile.status != UserStatus.ACTIVE:
        raise InactiveUserException(profile.uid)
    return profile


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    identity: Annotated[IIdentityProvider, Depends(get_identity_provider)],
    users: Annotated[IUserRepository, Depends(get_user_repo)],
    token: Annotated[
        str | None,
        Query(description="ID token for browser navigations that cannot set headers"),
    ] = None,
) -> UserProfile:
    """Caller from ``Authorization: Bearer <Firebase ID token>`` (or ``?token=``)."""
    raw = credentials.credentials if credentials else token
    if not raw:
        raise AuthenticationException("Not authenticated")
    return await authenticate_token(raw, identity, users)


def get_actor(user: Annotated[UserProfile, Depends(get_current_user)]) -> Actor:
    return Actor.from_profile(user)


def get_access_scope(user: Annotated[UserProfile, Depends(get_current_user)]) -> AccessScope:
    return resolve_access_scope(user)


def require_roles(*roles: UserRole):
    """Dependency factory: the caller must hold one of roles."""
    allowed = frozenset(roles)

    async def _require(
        user: Annotated[UserProfile, Depends(get_current_user)],
    ) -> UserProfile:
        if user.role not in allowed:
            names = " or ".join(sorted(r.value for r in allowed))
            raise AuthorizationException(message=f"This action requires the {names} role")
        return user

    return _require


require_admin = require_roles(UserRole.ADMIN)
require_manager_or_admin = require_roles(UserRole.ADMIN, UserRole.MANAGER)

CurrentUser = Annotated[UserProfile, Depends(get_current_user)]
AdminUser = Annotated[UserProfile, Depends(require_admin)]
ManagerOrAdmin = Annotated[UserProfile, Depends(require_manager_or_admin)]
Scope = Annotated[AccessScope, Depends(get_access_scope)]
CurrentActor = Annotated[Actor, Depends(get_actor)]
