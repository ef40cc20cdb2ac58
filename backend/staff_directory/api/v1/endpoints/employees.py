from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from staff_directory.core.dependencies import get_listing_service, require_directory_access
from staff_directory.models.directory import DirectorySettings
from staff_directory.models.employee import EmployeeProfilePage
from staff_directory.services.listing_service import ListingService
from staff_directory.services.store import EmployeeStoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("/{slug}", response_model=EmployeeProfilePage)
async def get_employee(
    slug: str,
    directory_settings: DirectorySettings = Depends(require_directory_access),  # noqa: B008
    listing: ListingService = Depends(get_listing_service),  # noqa: B008
):
    try:
        employee = await listing.get_profile(slug, directory_settings)
    except EmployeeStoreError as err:
        logger.exception("Failed to get employee %s", slug)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to retrieve employee",
        ) from err

    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee '{slug}' not found",
        )

    return employee
