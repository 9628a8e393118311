"""resolve_access_scope and AccessScope filtering."""

import pytest

from stallsync.application.dtos.user import UserProfile
from stallsync.application.services.access_scope import (
    NO_ACCESS,
    UNRESTRICTED,
    AccessScope,
    resolve_access_scope,
)
from stallsync.domain.enums import UserRole, UserStatus
from stallsync.domain.exceptions import AuthorizationException, InactiveUserException


def _profile(role: UserRole, **kwargs) -> UserProfile:
    return UserProfile(uid="u1", email="u1@example.com", display_name="U1", role=role, **kwargs)


def test_admin_is_unrestricted() -> None:
    scope = resolve_access_scope(_profile(UserRole.ADMIN, default_site_id="s1"))
    assert scope is UNRESTRICTED
    assert scope.permits("anything", "any-stall")
    assert scope.query_filters() == []


def test_manager_sees_union_of_managed_sites() -> None:
    scope = resolve_access_scope(_profile(UserRole.MANAGER, managed_site_ids=("s2", "s1", "")))
    assert scope.site_ids == frozenset({"s1", "s2"})
    assert scope.stall_id is None
    assert scope.query_filters() == [("siteId", "in", ["s1", "s2"])]


def test_manager_without_managed_sites_sees_nothing() -> None:
    scope = resolve_access_scope(_profile(UserRole.MANAGER))
    assert scope.is_empty
    assert scope.query_filters() is None


def test_staff_with_site_only_sees_master_and_all_stalls() -> None:
    scope = resolve_access_scope(_profile(UserRole.STAFF, default_site_id="s1"))
    assert scope.permits("s1", None)
    assert scope.permits("s1", "stall-a")
    assert not scope.permits("s2", None)
    assert scope.query_filters() == [("siteId", "==", "s1")]
    assert scope.query_filters(stall_filter="master") == [
        ("siteId", "==", "s1"),
        ("stallId", "==", None),
    ]


def test_staff_pinned_to_stall_sees_only_that_stall() -> None:
    scope = resolve_access_scope(
        _profile(UserRole.STAFF, default_site_id="s1", default_stall_id="stall-a")
    )
    assert scope.permits("s1", "stall-a")
    assert not scope.permits("s1", None)
    assert not scope.permits("s1", "stall-b")
    assert scope.query_filters() == [("siteId", "==", "s1"), ("stallId", "==", "stall-a")]
    with pytest.raises(AuthorizationException):
        scope.query_filters(stall_filter="stall-b")


def test_staff_without_default_site_has_no_access() -> None:
    assert resolve_access_scope(_profile(UserRole.STAFF)) is NO_ACCESS


def test_inactive_user_is_rejected() -> None:
    with pytest.raises(InactiveUserException):
        resolve_access_scope(_profile(UserRole.ADMIN, status=UserStatus.INACTIVE))


def test_requesting_site_outside_scope_raises() -> None:
    scope = AccessScope(site_ids=frozenset({"s1"}))
    with pytest.raises(AuthorizationException):
        scope.query_filters("s2")
    with pytest.raises(AuthorizationException):
        scope.require("s2", action="write")


def test_collections_without_stall_dimension_skip_stall_filter() -> None:
    scope = AccessScope(site_ids=frozenset({"s1"}), stall_id="stall-a")
    assert scope.query_filters(stall_field=None) == [("siteId", "==", "s1")]
