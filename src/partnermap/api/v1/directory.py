"""REST API endpoints for regions, partners, contacts and projects.

Reads are public. Every mutation requires an admin session token and ends
with a whole-document persist (cache write + background store write).
Unknown ids map to 404. An edit that blanks every identifying contact field
maps to 422.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.partnermap.api.deps import get_directory, require_admin
from src.partnermap.directory.errors import DirectoryNotFoundError, InvalidContactError
from src.partnermap.directory.schemas import (
    Contact,
    ContactCreate,
    ContactUpdate,
    Partner,
    PartnerCreate,
    PartnerUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
    Region,
    RegionSummary,
)
from src.partnermap.directory.service import DirectoryService

router = APIRouter(prefix="/regions", tags=["directory"])


def _not_found(exc: DirectoryNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


# ── Regions ──────────────────────────────────────────────────────────────────


@router.get("", response_model=list[RegionSummary])
async def list_regions(
    directory: DirectoryService = Depends(get_directory),
) -> list[RegionSummary]:
    """All catalog regions with their partner counts, in catalog order."""
    return directory.list_regions()


@router.get("/{region_id}", response_model=Region)
async def get_region(
    region_id: str,
    directory: DirectoryService = Depends(get_directory),
) -> Region:
    """A region with its partners, contacts and projects."""
    try:
        return directory.get_region(region_id)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)


# ── Partners ─────────────────────────────────────────────────────────────────


@router.get("/{region_id}/partners/{partner_id}", response_model=Partner)
async def get_partner(
    region_id: str,
    partner_id: str,
    directory: DirectoryService = Depends(get_directory),
) -> Partner:
    try:
        return directory.get_partner(region_id, partner_id)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)


@router.post(
    "/{region_id}/partners",
    response_model=Partner,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_partner(
    region_id: str,
    body: PartnerCreate,
    directory: DirectoryService = Depends(get_directory),
) -> Partner:
    try:
        return await directory.add_partner(region_id, body)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)


@router.patch(
    "/{region_id}/partners/{partner_id}",
    response_model=Partner,
    dependencies=[Depends(require_admin)],
)
async def update_partner(
    region_id: str,
    partner_id: str,
    body: PartnerUpdate,
    directory: DirectoryService = Depends(get_directory),
) -> Partner:
    try:
        return await directory.update_partner(region_id, partner_id, body)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)


@router.delete(
    "/{region_id}/partners/{partner_id}",
    status_code=204,
    dependencies=[Depends(require_admin)],
)
async def delete_partner(
    region_id: str,
    partner_id: str,
    directory: DirectoryService = Depends(get_directory),
) -> Response:
    try:
        await directory.delete_partner(region_id, partner_id)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


# ── Contacts ─────────────────────────────────────────────────────────────────


@router.post(
    "/{region_id}/partners/{partner_id}/contacts",
    response_model=Contact,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_contact(
    region_id: str,
    partner_id: str,
    body: ContactCreate,
    directory: DirectoryService = Depends(get_directory),
) -> Contact:
    try:
        return await directory.add_contact(region_id, partner_id, body)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)


@router.patch(
    "/{region_id}/partners/{partner_id}/contacts/{contact_id}",
    response_model=Contact,
    dependencies=[Depends(require_admin)],
)
async def update_contact(
    region_id: str,
    partner_id: str,
    contact_id: str,
    body: ContactUpdate,
    directory: DirectoryService = Depends(get_directory),
) -> Contact:
    try:
        return await directory.update_contact(region_id, partner_id, contact_id, body)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)
    except InvalidContactError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


@router.delete(
    "/{region_id}/partners/{partner_id}/contacts/{contact_id}",
    status_code=204,
    dependencies=[Depends(require_admin)],
)
async def delete_contact(
    region_id: str,
    partner_id: str,
    contact_id: str,
    directory: DirectoryService = Depends(get_directory),
) -> Response:
    try:
        await directory.delete_contact(region_id, partner_id, contact_id)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


# ── Projects ─────────────────────────────────────────────────────────────────


@router.post(
    "/{region_id}/partners/{partner_id}/projects",
    response_model=Project,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_project(
    region_id: str,
    partner_id: str,
    body: ProjectCreate,
    directory: DirectoryService = Depends(get_directory),
) -> Project:
    try:
        return await directory.add_project(region_id, partner_id, body)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)


@router.patch(
    "/{region_id}/partners/{partner_id}/projects/{project_id}",
    response_model=Project,
    dependencies=[Depends(require_admin)],
)
async def update_project(
    region_id: str,
    partner_id: str,
    project_id: str,
    body: ProjectUpdate,
    directory: DirectoryService = Depends(get_directory),
) -> Project:
    try:
        return await directory.update_project(region_id, partner_id, project_id, body)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)


@router.delete(
    "/{region_id}/partners/{partner_id}/projects/{project_id}",
    status_code=204,
    dependencies=[Depends(require_admin)],
)
async def delete_project(
    region_id: str,
    partner_id: str,
    project_id: str,
    directory: DirectoryService = Depends(get_directory),
) -> Response:
    try:
        await directory.delete_project(region_id, partner_id, project_id)
    except DirectoryNotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=204)
