"""HR administration: staff records, directory visibility and directory settings."""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable
from datetime import date

from staff_directory.core.locks import encode_lock
from staff_directory.models.directory import (
    MAX_PER_PAGE,
    DirectoryQueryRequest,
    DirectorySettings,
    DirectorySettingsUpdate,
    LockedConstraints,
    LockTokenResponse,
)
from staff_directory.models.employee import Account, EmployeeAdminView, EmployeeRecord
from staff_directory.models.hr import StaffCreate, StaffListResponse, StaffStartDate, StaffUpdate
from staff_directory.models.profile import Profile, ProfileUpdate, TextField, apply_profile_changes, sanitize_profile_update
from staff_directory.services import derived, pagination, query_builder
from staff_directory.services.department_cache import DepartmentCache
from staff_directory.services.store import EmployeeNotFoundError, EmployeeStore

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_LOGIN_RE = re.compile(r"[^a-z0-9_.@-]")
_ROLE_RE = re.compile(r"[^a-z0-9_-]")
_SLUG_RE = re.compile(r"[^a-z0-9]+")

_text = TextField()


class HRValidationError(Exception):
    pass


def sanitize_login(value: str) -> str:
    return _LOGIN_RE.sub("", value.strip().lower())


def sanitize_roles(roles: list[str]) -> list[str]:
    return [r for r in dict.fromkeys(_ROLE_RE.sub("", role.lower()) for role in roles) if r]


def slugify(value: str) -> str:
    return _SLUG_RE.sub("-", value.lower()).strip("-")


class HRService:
    def __init__(
        self,
        store: EmployeeStore,
        cache: DepartmentCache,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.cache = cache
        self._today = today

    def _view(self, record: EmployeeRecord) -> EmployeeAdminView:
        return EmployeeAdminView(
            account=record.account,
            profile=record.profile,
            tenure=derived.tenure(record.profile.start_date, self._today()),
        )

    async def list_staff(self, request: DirectoryQueryRequest) -> StaffListResponse:
        """Every employee, listed or not, with the regular filters applied."""
        query = query_builder.build(request, None, include_unlisted=True, default_per_page=MAX_PER_PAGE)
        records, total = await self.store.query(query)
        return StaffListResponse(
            items=[self._view(r) for r in records],
            total=total,
            pagination=pagination.compute(total, query.page_size, query.page),
        )

    async def get_staff(self, employee_id: str) -> EmployeeAdminView:
        record = await self.store.get_record(employee_id)
        if record is None:
            raise EmployeeNotFoundError(employee_id)
        return self._view(record)

    def _profile_changes(self, update: ProfileUpdate, start: StaffStartDate | None) -> dict:
        changes = sanitize_profile_update(update)
        if start is not None:
            changes["start_date"] = derived.start_date_from_parts(start.year, start.month, self._today())
        return changes

    async def create_staff(self, payload: StaffCreate) -> EmployeeAdminView:
        login = sanitize_login(payload.username)
        email = payload.email.strip().lower()
        if not login:
            raise HRValidationError("Username is required.")
        if not _EMAIL_RE.match(email):
            raise HRValidationError("Please enter a valid email address.")
        if await self.store.find_account(login=login):
            raise HRValidationError("That username is already taken.")
        if await self.store.find_account(email=email):
            raise HRValidationError("That email address is already registered.")

        first_name = _text.normalize(payload.first_name)
        last_name = _text.normalize(payload.last_name)
        slug = slugify(login)
        if await self.store.get_record_by_slug(slug):
            slug = f"{slug}-{uuid.uuid4().hex[:6]}"

        account = Account(
            id=uuid.uuid4().hex,
            login=login,
            email=email,
            first_name=first_name,
            last_name=last_name,
            display_name=f"{first_name} {last_name}".strip() or login,
            slug=slug,
            roles=sanitize_roles(payload.roles),
        )
        profile = apply_profile_changes(Profile(), self._profile_changes(payload.profile, payload.start))
        record = await self.store.create_account(account, profile)
        if profile.department:
            self._invalidate_departments()
        logger.info("HR created employee %s (%s)", account.login, account.id)
        return self._view(record)

    async def update_staff(self, employee_id: str, payload: StaffUpdate) -> EmployeeAdminView:
        record = await self.store.get_record(employee_id)
        if record is None:
            raise EmployeeNotFoundError(employee_id)

        updates: dict = {}
        if payload.email is not None:
            email = payload.email.strip().lower()
            if not _EMAIL_RE.match(email):
                raise HRValidationError("Please enter a valid email address.")
            other = await self.store.find_account(email=email)
            if other and other.id != employee_id:
                raise HRValidationError("That email address is already registered.")
            updates["email"] = email
        for name in ("first_name", "last_name", "display_name"):
            value = getattr(payload, name)
            if value is not None:
                updates[name] = _text.normalize(value)
        if payload.roles is not None:
            updates["roles"] = sanitize_roles(payload.roles)
        if updates:
            await self.store.update_account(record.account.model_copy(update=updates))

        await self.save_profile(employee_id, payload.profile, payload.start)
        return await self.get_staff(employee_id)

    async def save_profile(
        self,
        employee_id: str,
        update: ProfileUpdate,
        start: StaffStartDate | None = None,
    ) -> Profile:
        changes = self._profile_changes(update, start)
        if not changes:
            return await self.store.get_profile(employee_id)
        previous, current = await self.store.save_profile(employee_id, changes)
        if previous.department != current.department:
            self._invalidate_departments()
        return current

    def _invalidate_departments(self) -> None:
        try:
            self.cache.invalidate()
        except Exception:
            logger.exception("Department cache invalidation failed; list refreshes on expiry")

    async def set_listed(self, employee_id: str, listed: bool) -> EmployeeAdminView:
        record = await self.store.get_record(employee_id)
        if record is None:
            raise EmployeeNotFoundError(employee_id)
        if record.account.listed != listed:
            record = await self.store.update_account(record.account.model_copy(update={"listed": listed}))
            logger.info("HR %s employee %s", "restored" if listed else "removed", employee_id)
        return self._view(record)

    async def get_settings(self) -> DirectorySettings:
        return await self.store.load_settings()

    async def update_settings(self, update: DirectorySettingsUpdate) -> DirectorySettings:
        """Merge ``update`` over the stored settings.

        Out-of-range page sizes are clamped, unknown fields and roles dropped,
        and invalid enumerated choices keep their previous value.
        """
        current = await self.store.load_settings()
        data = current.model_dump()
        provided = update.model_dump(exclude_none=True)

        if "per_page" in provided:
            data["per_page"] = max(1, min(MAX_PER_PAGE, provided["per_page"]))
        if "roles" in provided:
            data["roles"] = sanitize_roles(provided["roles"])
        if "visible_fields" in provided:
            data["visible_fields"] = provided["visible_fields"]
        if "new_hire_days" in provided:
            data["new_hire_days"] = max(0, provided["new_hire_days"])
        for name in ("require_login", "dept_colors"):
            if name in provided:
                data[name] = provided[name]
        for name in ("photo_size", "message_platform", "avatar_style"):
            if name in provided:
                candidate = {**data, name: provided[name]}
                try:
                    DirectorySettings(**candidate)
                except ValueError:
                    logger.warning("Ignoring invalid directory setting %s=%r", name, provided[name])
                    continue
                data[name] = provided[name]

        saved = DirectorySettings(**data)
        await self.store.save_settings(saved)
        return saved

    def mint_lock(self, locked: LockedConstraints, signing_key: str) -> LockTokenResponse:
        roles = sanitize_roles([locked.role]) if locked.role else []
        clean = LockedConstraints(
            department=_text.normalize(locked.department),
            per_page=max(0, min(MAX_PER_PAGE, locked.per_page)),
            role=roles[0] if roles else "",
        )
        logger.info("Minted directory lock (department=%r per_page=%d role=%r)", clean.department, clean.per_page, clean.role)
        return LockTokenResponse(token=encode_lock(clean, signing_key), locked=clean)
