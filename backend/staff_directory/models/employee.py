"""Employee models: the consumed account record and the rendered views."""

from __future__ import annotations

from pydantic import BaseModel, Field

from staff_directory.models.profile import Profile


class Account(BaseModel):
    """Platform user account as exposed by the account collection."""

    id: str
    login: str
    email: str = ""
    display_name: str = ""
    first_name: str = ""
    last_name: str = ""
    slug: str = ""
    roles: list[str] = Field(default_factory=list)
    listed: bool = True

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.display_name


class EmployeeRecord(BaseModel):
    """An account joined with its directory profile."""

    account: Account
    profile: Profile = Field(default_factory=Profile)


class SocialLink(BaseModel):
    platform: str
    label: str
    value: str
    url: str | None = None


class EmployeeCard(BaseModel):
    """One entry of a directory listing."""

    id: str
    slug: str
    name: str
    email: str
    avatar_url: str
    photo_size: int
    profile_url: str
    department: str | None = None
    job_title: str | None = None
    phone: str | None = None
    phone_link: str | None = None
    office: str | None = None
    bio: str | None = None
    linkedin_url: str | None = None
    tenure: str | None = None
    department_color: str | None = None
    message_url: str | None = None
    is_new_hire: bool = False


class EmployeeProfilePage(EmployeeCard):
    """Full profile page of one employee."""

    first_name: str = ""
    last_name: str = ""
    start_date: str | None = None
    social_links: list[SocialLink] = Field(default_factory=list)


class EmployeeAdminView(BaseModel):
    """HR view of an employee: raw account and profile, including unlisted staff."""

    account: Account
    profile: Profile
    tenure: str = ""
