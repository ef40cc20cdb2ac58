"""Listing request, locked constraints, settings and pagination models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from staff_directory.models.employee import EmployeeCard

MAX_PER_PAGE = 500
DEFAULT_PER_PAGE = 200

CARD_FIELDS = ("department", "job_title", "phone", "office", "bio", "linkedin_url", "start_date")
DEFAULT_VISIBLE_FIELDS = ["department", "job_title", "phone", "office", "bio"]

PHOTO_SIZES: dict[str, int] = {"small": 40, "medium": 64, "large": 96}


class SortKey(str, Enum):
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    START_DATE_DESC = "start_date_desc"
    DEPARTMENT_ASC = "department_asc"

    @classmethod
    def parse(cls, value: str | None) -> SortKey:
        try:
            return cls(value)
        except ValueError:
            return cls.NAME_ASC


class ViewMode(str, Enum):
    GRID = "grid"
    LIST = "list"
    VERTICAL = "vertical"


class DirectoryQueryRequest(BaseModel):
    """Runtime filter input as received from the client (not yet normalised)."""

    search: str = ""
    department: str = ""
    letter: str = ""
    sort: str = SortKey.NAME_ASC.value
    page: int = 1
    per_page: int | None = None
    role_filter: set[str] = Field(default_factory=set)


class LockedConstraints(BaseModel):
    """Values fixed by an embedding context; they always beat client input."""

    department: str = ""
    per_page: int = 0
    role: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.department or self.per_page > 0 or self.role)


class DirectorySettings(BaseModel):
    """HR-editable directory configuration, passed explicitly to services."""

    per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE)
    roles: list[str] = Field(default_factory=list)
    visible_fields: list[str] = Field(default_factory=lambda: list(DEFAULT_VISIBLE_FIELDS))
    require_login: bool = False
    new_hire_days: int = Field(default=30, ge=0)
    dept_colors: bool = True
    photo_size: str = Field(default="medium", pattern=r"^(small|medium|large)$")
    message_platform: str = Field(default="mailto", pattern=r"^(none|mailto|teams)$")
    avatar_style: str = Field(default="initials", pattern=r"^[a-z0-9-]+$")

    @field_validator("visible_fields")
    @classmethod
    def _known_fields(cls, v: list[str]) -> list[str]:
        return [f for f in dict.fromkeys(v) if f in CARD_FIELDS]


class DirectorySettingsUpdate(BaseModel):
    per_page: int | None = None
    roles: list[str] | None = None
    visible_fields: list[str] | None = None
    require_login: bool | None = None
    new_hire_days: int | None = None
    dept_colors: bool | None = None
    photo_size: str | None = None
    message_platform: str | None = None
    avatar_style: str | None = None


class PageButton(BaseModel):
    page_number: int | None = None
    is_current: bool = False
    is_ellipsis: bool = False


class PageLink(BaseModel):
    page: int
    disabled: bool


class PaginationWindow(BaseModel):
    current_page: int
    total_pages: int
    buttons: list[PageButton] = Field(default_factory=list)
    previous: PageLink | None = None
    next: PageLink | None = None


class ListingResponse(BaseModel):
    items: list[EmployeeCard]
    total: int
    pagination: PaginationWindow


class LockRequest(LockedConstraints):
    """HR request to mint a lock token for an embedded directory view."""


class LockTokenResponse(BaseModel):
    token: str
    locked: LockedConstraints


class ClientConfig(BaseModel):
    """Constants the front-end controller must honour."""

    debounce_ms: int = 300
    view_storage_key: str = "ed_view"
    sort_storage_key: str = "ed_sort"
    default_view: ViewMode = ViewMode.GRID
