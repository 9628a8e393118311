"""Site API. Reads are scoped to the caller; writes are admin only."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from stallsync.api.v1.dependencies import AdminUser, Scope
from stallsync.api.v1.dependencies.repositories import get_site_repo
from stallsync.core.limiter import limit_writes
from stallsync.domain.exceptions import ResourceNotFoundException
from stallsync.infrastructure.firebase.repositories import FirestoreSiteRepository
from stallsync.schemas.site import SiteCreateRequest, SiteResponse, SiteUpdateRequest

router = APIRouter()

Sites = Annotated[FirestoreSiteRepository, Depends(get_site_repo)]


@router.get("", response_model=list[SiteResponse])
async def list_sites(scope: Scope, sites: Sites) -> list[SiteResponse]:
    if scope.is_empty:
        return []
    found = await sites.list(None if scope.unrestricted else sorted(scope.site_ids))
    return [SiteResponse.model_validate(s) for s in found]


@router.post("", response_model=SiteResponse, status_code=201)
@limit_writes
async def create_site(
    request: Request, body: SiteCreateRequest, _: AdminUser, sites: Sites
) -> SiteResponse:
    return SiteResponse.model_validate(await sites.create(body.name, body.location))


@router.get("/{site_id}", response_model=SiteResponse)
async def get_site(site_id: str, scope: Scope, sites: Sites) -> SiteResponse:
    scope.require(site_id, resource="site")
    site = await sites.get(site_id)
    if site is None:
        raise ResourceNotFoundException("site", site_id)
    return SiteResponse.model_validate(site)


@router.patch("/{site_id}", response_model=SiteResponse)
@limit_writes
async def update_site(
    request: Request, site_id: str, body: SiteUpdateRequest, _: AdminUser, sites: Sites
) -> SiteResponse:
    changes = body.model_dump(by_alias=True, exclude_unset=True)
    return SiteResponse.model_validate(await sites.update(site_id, changes))


@router.delete("/{site_id}", status_code=204)
@limit_writes
async def delete_site(request: Request, site_id: str, _: AdminUser, sites: Sites) -> Response:
    """Delete a site; 409 while stalls still belong to it (no cascade)."""
    await sites.delete(site_id)
    return Response(status_code=204)
