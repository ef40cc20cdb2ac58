from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, Query, status

from staff_directory.core.auth import extract_roles_from_token, validate_token
from staff_directory.core.config import settings
from staff_directory.core.locks import LockTokenError, decode_lock
from staff_directory.models.auth import UserInfo
from staff_directory.models.directory import DirectorySettings, LockedConstraints
from staff_directory.services.department_cache import department_cache
from staff_directory.services.employee_service import cosmos_employee_store
from staff_directory.services.hr_service import HRService
from staff_directory.services.listing_service import ListingService
from staff_directory.services.memory_store import memory_employee_store
from staff_directory.services.store import EmployeeStore, EmployeeStoreError

logger = logging.getLogger(__name__)

LOGIN_REQUIRED_DETAIL = "Login required to view the staff directory"


def _user_from_header(authorization: str) -> UserInfo:
    token = authorization.split(" ", 1)[1]
    try:
        payload = validate_token(token, settings.AUTH_TENANT_ID, settings.AUTH_CLIENT_ID)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Token validation error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return UserInfo(
        id=payload.get("oid") or payload.get("sub"),
        name=payload.get("name"),
        email=payload.get("preferred_username") or payload.get("email"),
        roles=extract_roles_from_token(payload),
    )


async def get_current_user(authorization: str | None = Header(None)) -> UserInfo:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _user_from_header(authorization)


async def get_optional_user(authorization: str | None = Header(None)) -> UserInfo | None:
    """The signed-in user, or ``None`` for anonymous requests. A bad token is still a 401."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return _user_from_header(authorization)


def require_role(*roles: str):
    async def _check_role(user: UserInfo = Depends(get_current_user)) -> UserInfo:
        if not user.has_any_role(roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {', '.join(roles)}",
            )
        return user

    return _check_role


async def require_hr(user: UserInfo = Depends(get_current_user)) -> UserInfo:
    return await require_role(*settings.HR_ROLES)(user=user)


def get_employee_store() -> EmployeeStore:
    if cosmos_employee_store.initialized:
        return cosmos_employee_store
    return memory_employee_store


def get_listing_service(store: EmployeeStore = Depends(get_employee_store)) -> ListingService:
    return ListingService(store, department_cache)


def get_hr_service(store: EmployeeStore = Depends(get_employee_store)) -> HRService:
    return HRService(store, department_cache)


async def get_directory_settings(store: EmployeeStore = Depends(get_employee_store)) -> DirectorySettings:
    try:
        return await store.load_settings()
    except EmployeeStoreError as err:
        logger.exception("Failed to load directory settings")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Staff directory is temporarily unavailable",
        ) from err


async def get_locked_constraints(lock: str | None = Query(None)) -> LockedConstraints:
    try:
        return decode_lock(lock, settings.LOCK_SIGNING_KEY)
    except LockTokenError as err:
        logger.warning("Rejected lock token: %s", err)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid lock token",
        ) from err


async def require_directory_access(
    directory_settings: DirectorySettings = Depends(get_directory_settings),
    user: UserInfo | None = Depends(get_optional_user),
) -> DirectorySettings:
    """Directory settings for a request that may view the directory."""
    if directory_settings.require_login and user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=LOGIN_REQUIRED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return directory_settings
