"""FastAPI dependencies: Firebase handle, caller and scope, repositories, services."""

from stallsync.api.v1.dependencies.auth import (
    AdminUser,
    CurrentActor,
    CurrentUser,
    ManagerOrAdmin,
    Scope,
    authenticate_token,
    get_access_scope,
    get_actor,
    get_current_user,
    require_admin,
    require_manager_or_admin,
    require_roles,
)
from stallsync.api.v1.dependencies.firebase import (
    get_firebase_handle,
    get_firestore_client,
    get_identity_provider,
    get_optional_firebase_handle,
)

__all__ = [
    "AdminUser",
    "CurrentActor",
    "CurrentUser",
    "ManagerOrAdmin",
    "Scope",
    "authenticate_token",
    "get_access_scope",
    "get_actor",
    "get_current_user",
    "get_firebase_handle",
    "get_firestore_client",
    "get_identity_provider",
    "get_optional_firebase_handle",
    "require_admin",
    "require_manager_or_admin",
    "require_roles",
]
