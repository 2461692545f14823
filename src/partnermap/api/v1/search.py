"""Map-wide search endpoints for projects and named accounts."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from src.partnermap.api.deps import get_directory
from src.partnermap.directory.schemas import AccountHit, ProjectHit
from src.partnermap.directory.service import DirectoryService

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/projects", response_model=list[ProjectHit])
async def search_projects(
    q: str = Query("", description="Case-insensitive substring of the project name"),
    directory: DirectoryService = Depends(get_directory),
) -> list[ProjectHit]:
    return directory.search_projects(q)


@router.get("/accounts", response_model=list[AccountHit])
async def search_accounts(
    q: str = Query("", description="Case-insensitive substring of a named account"),
    directory: DirectoryService = Depends(get_directory),
) -> list[AccountHit]:
    """One hit per matching named account, with the owning contact and partner."""
    return directory.search_accounts(q)
