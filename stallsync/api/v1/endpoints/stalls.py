"""Stall API. Reads are scoped to the caller; writes are admin only."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from stallsync.api.v1.dependencies import AdminUser, Scope
from stallsync.api.v1.dependencies.repositories import get_site_repo, get_stall_repo
from stallsync.core.limiter import limit_writes
from stallsync.domain.exceptions import ResourceNotFoundException
from stallsync.infrastructure.firebase.repositories import (
    FirestoreSiteRepository,
    FirestoreStallRepository,
)
from stallsync.schemas.site import StallCreateRequest, StallResponse, StallUpdateRequest

router = APIRouter()

Stalls = Annotated[FirestoreStallRepository, Depends(get_stall_repo)]


@router.get("", response_model=list[StallResponse])
async def list_stalls(
    scope: Scope,
    stalls: Stalls,
    site_id: str | None = None,
) -> list[StallResponse]:
    filters = scope.query_filters(site_id, stall_field=None)
    if filters is None:
        return []
    found = await stalls.list(filters)
    if scope.stall_id is not None:
        found = [s for s in found if s.id == scope.stall_id]
    return [StallResponse.model_validate(s) for s in found]


@router.post("", response_model=StallResponse, status_code=201)
@limit_writes
async def create_stall(
    request: Request,
    body: StallCreateRequest,
    _: AdminUser,
    stalls: Stalls,
    sites: Annotated[FirestoreSiteRepository, Depends(get_site_repo)],
) -> StallResponse:
    if await sites.get(body.site_id) is None:
        raise ResourceNotFoundException("site", body.site_id)
    stall = await stalls.create(body.site_id, body.name, body.stall_type.value)
    return StallResponse.model_validate(stall)


@router.get("/{stall_id}", response_model=StallResponse)
async def get_stall(stall_id: str, scope: Scope, stalls: Stalls) -> StallResponse:
    stall = await stalls.get(stall_id)
    if stall is None:
        raise ResourceNotFoundException("stall", stall_id)
    scope.require(stall.site_id, stall.id, resource="stall")
    return StallResponse.model_validate(stall)


@router.patch("/{stall_id}", response_model=StallResponse)
@limit_writes
async def update_stall(
    request: Request, stall_id: str, body: StallUpdateRequest, _: AdminUser, stalls: Stalls
) -> StallResponse:
    changes = body.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return StallResponse.model_validate(await stalls.update(stall_id, changes))


@router.delete("/{stall_id}", status_code=204)
@limit_writes
async def delete_stall(request: Request, stall_id: str, _: AdminUser, stalls: Stalls) -> Response:
    """Delete a stall; 409 while stock items still reference it."""
    await stalls.delete(stall_id)
    return Response(status_code=204)
