"""Interface the directory expects from its storage collaborators."""

from __future__ import annotations

from typing import Any, Protocol

from staff_directory.models.directory import DirectorySettings
from staff_directory.models.employee import Account, EmployeeRecord
from staff_directory.models.profile import Profile
from staff_directory.services.query_builder import ConcreteQuery


class EmployeeStoreError(Exception):
    pass


class EmployeeNotFoundError(EmployeeStoreError):
    pass


class EmployeeStore(Protocol):
    backend: str

    async def query(self, query: ConcreteQuery) -> tuple[list[EmployeeRecord], int]:
        """Page of matching records in query order, plus the unpaged total."""
        ...

    async def distinct_departments(self) -> list[str]: ...

    async def get_record(self, employee_id: str) -> EmployeeRecord | None: ...

    async def get_record_by_slug(self, slug: str) -> EmployeeRecord | None: ...

    async def find_account(self, *, login: str = "", email: str = "") -> Account | None: ...

    async def create_account(self, account: Account, profile: Profile) -> EmployeeRecord: ...

    async def update_account(self, account: Account) -> EmployeeRecord: ...

    async def get_profile(self, employee_id: str) -> Profile: ...

    async def save_profile(self, employee_id: str, changes: dict[str, Any]) -> tuple[Profile, Profile]:
        """Merge already-sanitised ``changes``; returns (previous, current)."""
        ...

    async def load_settings(self) -> DirectorySettings: ...

    async def save_settings(self, directory_settings: DirectorySettings) -> None: ...

    async def check_connection(self) -> bool: ...
