"""In-memory employee store, used when Cosmos DB is not configured and in tests."""

from __future__ import annotations

import logging
from typing import Any

from staff_directory.models.directory import DirectorySettings
from staff_directory.models.employee import Account, EmployeeRecord
from staff_directory.models.profile import Profile, apply_profile_changes
from staff_directory.services.query_builder import (
    ConcreteQuery,
    DepartmentEquals,
    ListedOnly,
    NameStartsWith,
    Predicate,
    RoleIn,
    TextSearch,
    field_value,
    order_value,
)
from staff_directory.services.store import EmployeeNotFoundError

logger = logging.getLogger(__name__)


def matches(record: EmployeeRecord, predicate: Predicate) -> bool:
    account = record.account
    if isinstance(predicate, ListedOnly):
        return account.listed
    if isinstance(predicate, DepartmentEquals):
        return record.profile.department == predicate.department
    if isinstance(predicate, RoleIn):
        return bool(predicate.roles.intersection(account.roles))
    if isinstance(predicate, NameStartsWith):
        return account.display_name.casefold().startswith(predicate.letter.casefold())
    if isinstance(predicate, TextSearch):
        term = predicate.term.casefold()
        return any(term in field_value(record, f).casefold() for f in predicate.fields)
    raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")


class InMemoryEmployeeStore:
    backend = "memory"

    def __init__(
        self,
        accounts: list[Account] | None = None,
        profiles: dict[str, Profile] | None = None,
    ) -> None:
        self._accounts: dict[str, Account] = {}
        self._profiles: dict[str, Profile] = dict(profiles or {})
        self._settings = DirectorySettings()
        for account in accounts or []:
            self._accounts[account.id] = account

    def _record(self, account: Account) -> EmployeeRecord:
        return EmployeeRecord(account=account, profile=self._profiles.get(account.id, Profile()))

    async def query(self, query: ConcreteQuery) -> tuple[list[EmployeeRecord], int]:
        records = [
            record
            for record in (self._record(a) for a in self._accounts.values())
            if all(matches(record, p) for p in query.predicates)
        ]
        rule = query.order
        records.sort(
            key=lambda r: (order_value(rule, field_value(r, rule.field)), r.account.id),
            reverse=rule.descending,
        )
        return records[query.offset : query.offset + query.page_size], len(records)

    async def distinct_departments(self) -> list[str]:
        return sorted({p.department for p in self._profiles.values() if p.department})

    async def get_record(self, employee_id: str) -> EmployeeRecord | None:
        account = self._accounts.get(employee_id)
        return self._record(account) if account else None

    async def get_record_by_slug(self, slug: str) -> EmployeeRecord | None:
        for account in self._accounts.values():
            if account.slug == slug:
                return self._record(account)
        return None

    async def find_account(self, *, login: str = "", email: str = "") -> Account | None:
        for account in self._accounts.values():
            if login and account.login.lower() == login.lower():
                return account
            if email and account.email.lower() == email.lower():
                return account
        return None

    async def create_account(self, account: Account, profile: Profile) -> EmployeeRecord:
        self._accounts[account.id] = account
        self._profiles[account.id] = profile
        logger.info("Memory store: created employee %s <%s>", account.login, account.email)
        return self._record(account)

    async def update_account(self, account: Account) -> EmployeeRecord:
        if account.id not in self._accounts:
            raise EmployeeNotFoundError(account.id)
        self._accounts[account.id] = account
        return self._record(account)

    async def get_profile(self, employee_id: str) -> Profile:
        return self._profiles.get(employee_id, Profile())

    async def save_profile(self, employee_id: str, changes: dict[str, Any]) -> tuple[Profile, Profile]:
        previous = self._profiles.get(employee_id, Profile())
        current = apply_profile_changes(previous, changes)
        self._profiles[employee_id] = current
        return previous, current

    async def load_settings(self) -> DirectorySettings:
        return self._settings

    async def save_settings(self, directory_settings: DirectorySettings) -> None:
        self._settings = directory_settings

    async def check_connection(self) -> bool:
        return True


memory_employee_store = InMemoryEmployeeStore()
