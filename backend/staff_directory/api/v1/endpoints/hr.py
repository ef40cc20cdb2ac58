"""HR administration endpoints. Every route requires one of ``settings.HR_ROLES``."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from staff_directory.core.config import settings
from staff_directory.core.dependencies import get_hr_service, require_hr
from staff_directory.core.locks import LockTokenError
from staff_directory.models.directory import (
    DirectoryQueryRequest,
    DirectorySettings,
    DirectorySettingsUpdate,
    LockRequest,
    LockTokenResponse,
)
from staff_directory.models.employee import EmployeeAdminView
from staff_directory.models.hr import StaffCreate, StaffListResponse, StaffUpdate
from staff_directory.services.hr_service import HRService, HRValidationError
from staff_directory.services.store import EmployeeNotFoundError, EmployeeStoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hr", tags=["hr"], dependencies=[Depends(require_hr)])


def _not_found(employee_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Employee '{employee_id}' not found",
    )


def _store_failure(action: str) -> HTTPException:
    logger.exception("HR %s failed", action)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Failed to {action}",
    )


@router.get("/employees", response_model=StaffListResponse)
async def list_staff(
    search: str = "",
    department: str = "",
    sort: str = "",
    letter: str = "",
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    role: list[str] = Query([]),  # noqa: B008
    hr: HRService = Depends(get_hr_service),  # noqa: B008
):
    request = DirectoryQueryRequest(
        search=search,
        department=department,
        sort=sort,
        letter=letter,
        page=page,
        per_page=per_page,
        role_filter=set(role),
    )
    try:
        return await hr.list_staff(request)
    except EmployeeStoreError as err:
        raise _store_failure("list employees") from err


@router.post("/employees", response_model=EmployeeAdminView, status_code=status.HTTP_201_CREATED)
async def create_staff(payload: StaffCreate, hr: HRService = Depends(get_hr_service)):  # noqa: B008
    try:
        return await hr.create_staff(payload)
    except HRValidationError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except EmployeeStoreError as err:
        raise _store_failure("create employee") from err


@router.get("/employees/{employee_id}", response_model=EmployeeAdminView)
async def get_staff(employee_id: str, hr: HRService = Depends(get_hr_service)):  # noqa: B008
    try:
        return await hr.get_staff(employee_id)
    except EmployeeNotFoundError as err:
        raise _not_found(employee_id) from err
    except EmployeeStoreError as err:
        raise _store_failure("retrieve employee") from err


@router.put("/employees/{employee_id}", response_model=EmployeeAdminView)
async def update_staff(
    employee_id: str,
    payload: StaffUpdate,
    hr: HRService = Depends(get_hr_service),  # noqa: B008
):
    try:
        return await hr.update_staff(employee_id, payload)
    except HRValidationError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except EmployeeNotFoundError as err:
        raise _not_found(employee_id) from err
    except EmployeeStoreError as err:
        raise _store_failure("update employee") from err


@router.post("/employees/{employee_id}/remove", response_model=EmployeeAdminView)
async def remove_from_directory(employee_id: str, hr: HRService = Depends(get_hr_service)):  # noqa: B008
    try:
        return await hr.set_listed(employee_id, False)
    except EmployeeNotFoundError as err:
        raise _not_found(employee_id) from err
    except EmployeeStoreError as err:
        raise _store_failure("remove employee") from err


@router.post("/employees/{employee_id}/restore", response_model=EmployeeAdminView)
async def restore_to_directory(employee_id: str, hr: HRService = Depends(get_hr_service)):  # noqa: B008
    try:
        return await hr.set_listed(employee_id, True)
    except EmployeeNotFoundError as err:
        raise _not_found(employee_id) from err
    except EmployeeStoreError as err:
        raise _store_failure("restore employee") from err


@router.get("/settings", response_model=DirectorySettings)
async def get_directory_settings(hr: HRService = Depends(get_hr_service)):  # noqa: B008
    try:
        return await hr.get_settings()
    except EmployeeStoreError as err:
        raise _store_failure("load settings") from err


@router.put("/settings", response_model=DirectorySettings)
async def update_directory_settings(
    update: DirectorySettingsUpdate,
    hr: HRService = Depends(get_hr_service),  # noqa: B008
):
    try:
        return await hr.update_settings(update)
    except EmployeeStoreError as err:
        raise _store_failure("save settings") from err


@router.post("/locks", response_model=LockTokenResponse)
async def mint_lock_token(request: LockRequest, hr: HRService = Depends(get_hr_service)):  # noqa: B008
    try:
        return hr.mint_lock(request, settings.LOCK_SIGNING_KEY)
    except LockTokenError as err:
        logger.error("Cannot mint lock token: %s", err)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Lock tokens are not configured",
        ) from err
