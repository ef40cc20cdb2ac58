from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from staff_directory.core.dependencies import (
    get_listing_service,
    get_locked_constraints,
    require_directory_access,
)
from staff_directory.models.directory import (
    ClientConfig,
    DirectoryQueryRequest,
    DirectorySettings,
    ListingResponse,
    LockedConstraints,
)
from staff_directory.models.employee import EmployeeCard
from staff_directory.services.listing_service import ListingService
from staff_directory.services.store import EmployeeStoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/directory", tags=["directory"])


def _lenient_int(value: str | None, default: int | None) -> int | None:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


@router.get("/employees", response_model=ListingResponse)
async def list_employees(
    search: str = "",
    department: str = "",
    sort: str = "",
    letter: str = "",
    page: str | None = None,
    per_page: str | None = None,
    role: list[str] = Query([]),  # noqa: B008
    locked: LockedConstraints = Depends(get_locked_constraints),  # noqa: B008
    directory_settings: DirectorySettings = Depends(require_directory_access),  # noqa: B008
    listing: ListingService = Depends(get_listing_service),  # noqa: B008
):
    request = DirectoryQueryRequest(
        search=search,
        department=department,
        letter=letter,
        sort=sort,
        page=_lenient_int(page, 1),
        per_page=_lenient_int(per_page, None),
        role_filter=set(role),
    )
    try:
        return await listing.list_employees(request, locked, directory_settings)
    except EmployeeStoreError as err:
        logger.exception("Failed to list employees")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to retrieve employees",
        ) from err


@router.get("/departments", response_model=list[str])
async def list_departments(
    directory_settings: DirectorySettings = Depends(require_directory_access),  # noqa: B008
    listing: ListingService = Depends(get_listing_service),  # noqa: B008
):
    try:
        return await listing.get_departments()
    except EmployeeStoreError as err:
        logger.exception("Failed to load departments")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to retrieve departments",
        ) from err


@router.get("/new-hires", response_model=list[EmployeeCard])
async def list_new_hires(
    directory_settings: DirectorySettings = Depends(require_directory_access),  # noqa: B008
    listing: ListingService = Depends(get_listing_service),  # noqa: B008
):
    try:
        return await listing.new_hires(directory_settings)
    except EmployeeStoreError as err:
        logger.exception("Failed to load new hires")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to retrieve new hires",
        ) from err


@router.get("/config", response_model=ClientConfig)
async def client_config():
    return ClientConfig()
