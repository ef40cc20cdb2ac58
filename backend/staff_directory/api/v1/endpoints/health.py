from __future__ import annotations

from fastapi import APIRouter, Depends

from staff_directory.core.config import settings
from staff_directory.core.dependencies import get_employee_store
from staff_directory.services.department_cache import department_cache
from staff_directory.services.store import EmployeeStore

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(store: EmployeeStore = Depends(get_employee_store)):  # noqa: B008
    services: dict[str, str] = {}

    if store.backend == "cosmos":
        try:
            services["cosmos_db"] = "ok" if await store.check_connection() else "error"
        except Exception:
            services["cosmos_db"] = "error"
    else:
        services["cosmos_db"] = "not_configured"

    services["department_cache"] = "warm" if department_cache.peek() is not None else "cold"

    all_ok = services["cosmos_db"] in ("ok", "not_configured")

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "store": store.backend,
        "services": services,
    }


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
