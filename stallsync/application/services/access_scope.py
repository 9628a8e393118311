"""Role/scope resolution.

``resolve_access_scope`` is the only place that turns a user's role and
profile into visibility. Every list query and single-document check goes
through the returned ``AccessScope``:

- admin: unrestricted.
- manager: the union of ``managedSiteIds`` (empty means nothing).
- staff with a default site and stall: that stall only.
- staff with a default site only: every record of the site, master stock
  included ("Master Stock" view).
- staff with no default site: nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from stallsync.application.dtos.user import UserProfile
from stallsync.domain.enums import UserRole, UserStatus
from stallsync.domain.exceptions import AuthorizationException, InactiveUserException

STALL_FILTER_ALL = "all"
STALL_FILTER_MASTER = "master"

FieldFilter = tuple[str, str, Any]


@dataclass(frozen=True)
class AccessScope:
    """Sites (and optionally one stall) a caller may see and write."""

    unrestricted: bool = False
    site_ids: frozenset[str] = field(default_factory=frozenset)
    stall_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.site_ids

    def permits_site(self, site_id: str | None) -> bool:
        if self.unrestricted:
            return True
        return site_id is not None and site_id in self.site_ids

    def permits(self, site_id: str | None, stall_id: str | None = None) -> bool:
        """True when a record at (site_id, stall_id) is visible to the caller."""
        if self.unrestricted:
            return True
        if not self.permits_site(site_id):
            return False
        return self.stall_id is None or stall_id == self.stall_id

    def require(
        self,
        site_id: str | None,
        stall_id: str | None = None,
        *,
        resource: str = "record",
        action: str = "read",
    ) -> None:
        """Raise AuthorizationException unless permits(site_id, stall_id)."""
        if not self.permits(site_id, stall_id):
            raise AuthorizationException(resource, action)

    def query_filters(
        self,
        site_id: str | None = None,
        stall_filter: str | None = None,
        *,
        site_field: str = "siteId",
        stall_field: str | None = "stallId",
    ) -> list[FieldFilter] | None:
        """Datastore filters for a list query narrowed to this scope.

        Args:
            site_id: Site requested by the caller (must be inside the scope).
            stall_filter: ``"all"`` / None (any stall), ``"master"`` (stallId is
                null) or a stall id.
            site_field: Field holding the site id on the queried collection.
            stall_field: Field holding the stall id; None when the collection
                has no stall dimension.

        Returns:
            The filters to AND together, or None when the scope admits no
            records at all (the caller should return an empty result).

        Raises:
            AuthorizationException: A requested site or stall lies outside the scope.
        """
        if site_id is not None and not self.permits_site(site_id):
            raise AuthorizationException("site", "read")
        if self.is_empty:
            return None
        filters: list[FieldFilter] = []
        if site_id is not None:
            filters.append((site_field, "==", site_id))
        elif not self.unrestricted:
            ids = sorted(self.site_ids)
            filters.append((site_field, "==", ids[0]) if len(ids) == 1 else (site_field, "in", ids))
        if stall_field is None:
            return filters
        requested = None if stall_filter in (None, "", STALL_FILTER_ALL) else stall_filter
        if self.stall_id is not None:
            if requested is not None and requested != self.stall_id:
                raise AuthorizationException("stall", "read")
            filters.append((stall_field, "==", self.stall_id))
        elif requested == STALL_FILTER_MASTER:
            filters.append((stall_field, "==", None))
        elif requested is not None:
            filters.append((stall_field, "==", requested))
        return filters


UNRESTRICTED = AccessScope(unrestricted=True)
NO_ACCESS = AccessScope()


def resolve_access_scope(user: UserProfile) -> AccessScope:
    """Compute the caller's visibility scope from their profile.

    Raises:
        InactiveUserException: The profile is inactive.
    """
    if user.status != UserStatus.ACTIVE:
        raise InactiveUserException(user.uid)
    if user.role == UserRole.ADMIN:
        return UNRESTRICTED
    if user.role == UserRole.MANAGER:
        return AccessScope(site_ids=frozenset(s for s in user.managed_site_ids if s))
    if user.default_site_id:
        return AccessScope(
            site_ids=frozenset({user.default_site_id}),
            stall_id=user.default_stall_id or None,
        )
    return NO_ACCESS
