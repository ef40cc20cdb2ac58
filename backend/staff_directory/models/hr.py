"""Request/response models for the HR administration surface."""

from __future__ import annotations

from pydantic import BaseModel, Field

from staff_directory.models.directory import PaginationWindow
from staff_directory.models.employee import EmployeeAdminView
from staff_directory.models.profile import ProfileUpdate


class StaffStartDate(BaseModel):
    """Month/year selects of the HR form."""

    year: int | None = None
    month: int | None = None


class StaffCreate(BaseModel):
    username: str = Field(..., max_length=60)
    email: str = Field(..., max_length=254)
    first_name: str = ""
    last_name: str = ""
    roles: list[str] = Field(default_factory=list)
    profile: ProfileUpdate = Field(default_factory=ProfileUpdate)
    start: StaffStartDate | None = None


class StaffUpdate(BaseModel):
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    roles: list[str] | None = None
    profile: ProfileUpdate = Field(default_factory=ProfileUpdate)
    start: StaffStartDate | None = None


class StaffListResponse(BaseModel):
    items: list[EmployeeAdminView]
    total: int
    pagination: PaginationWindow
