from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date

from staff_directory.models.directory import (
    CARD_FIELDS,
    MAX_PER_PAGE,
    PHOTO_SIZES,
    DirectoryQueryRequest,
    DirectorySettings,
    ListingResponse,
    LockedConstraints,
    SortKey,
)
from staff_directory.models.employee import EmployeeCard, EmployeeProfilePage, EmployeeRecord, SocialLink
from staff_directory.models.profile import SocialPlatform
from staff_directory.services import derived, pagination, query_builder
from staff_directory.services.department_cache import DepartmentCache
from staff_directory.services.query_builder import QueryTransform
from staff_directory.services.store import EmployeeStore

logger = logging.getLogger(__name__)


def profile_url(slug: str) -> str:
    return f"/staff/{slug}/"


class ListingService:
    """Answers directory listing requests. Never writes to the store or the cache."""

    def __init__(
        self,
        store: EmployeeStore,
        cache: DepartmentCache,
        transforms: Sequence[QueryTransform] = (),
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.cache = cache
        self.transforms = tuple(transforms)
        self._today = today

    async def list_employees(
        self,
        request: DirectoryQueryRequest,
        locked: LockedConstraints | None,
        directory_settings: DirectorySettings,
        *,
        include_unlisted: bool = False,
    ) -> ListingResponse:
        query = query_builder.build(
            request,
            locked,
            allowed_roles=directory_settings.roles,
            default_per_page=directory_settings.per_page,
            include_unlisted=include_unlisted,
            transforms=self.transforms,
        )
        records, total = await self.store.query(query)
        window = pagination.compute(total, query.page_size, query.page)

        # A page past the end is clamped; fetch the page the window points at.
        if window.current_page != query.page:
            query = query.model_copy(update={"page": window.current_page})
            records, total = await self.store.query(query)

        logger.debug(
            "Directory listing: %d of %d (page %d/%d, sort=%s)",
            len(records),
            total,
            window.current_page,
            window.total_pages,
            query.order.key.value,
        )
        today = self._today()
        return ListingResponse(
            items=[self.render_card(r, directory_settings, today) for r in records],
            total=total,
            pagination=window,
        )

    async def get_departments(self) -> list[str]:
        return await self.cache.get(self.store.distinct_departments)

    async def new_hires(self, directory_settings: DirectorySettings) -> list[EmployeeCard]:
        """Listed employees inside the new-hire window, newest first."""
        if directory_settings.new_hire_days <= 0:
            return []

        today = self._today()
        request = DirectoryQueryRequest(sort=SortKey.START_DATE_DESC.value, per_page=MAX_PER_PAGE)
        cards: list[EmployeeCard] = []
        page = 1
        while True:
            request.page = page
            query = query_builder.build(
                request,
                None,
                allowed_roles=directory_settings.roles,
                transforms=self.transforms,
            )
            records, total = await self.store.query(query)
            for record in records:
                start = derived.parse_start_date(record.profile.start_date)
                if start is None or (today - start).days > directory_settings.new_hire_days:
                    return cards
                if derived.is_new_hire(record.profile.start_date, directory_settings.new_hire_days, today):
                    cards.append(self.render_card(record, directory_settings, today))
            if query.offset + len(records) >= total or not records:
                return cards
            page += 1

    async def get_profile(self, slug: str, directory_settings: DirectorySettings) -> EmployeeProfilePage | None:
        record = await self.store.get_record_by_slug(slug)
        if record is None or not record.account.listed:
            return None
        return self.render_profile(record, directory_settings, self._today())

    def render_card(self, record: EmployeeRecord, directory_settings: DirectorySettings, today: date) -> EmployeeCard:
        account, profile = record.account, record.profile
        visible = set(directory_settings.visible_fields)

        def shown(field: str) -> str | None:
            value = getattr(profile, field)
            return value if value and field in visible else None

        tenure = derived.tenure(profile.start_date, today) if "start_date" in visible else ""
        phone = shown("phone")
        return EmployeeCard(
            id=account.id,
            slug=account.slug,
            name=account.full_name,
            email=account.email,
            avatar_url=derived.avatar_url(profile.photo_url, account.full_name, directory_settings.avatar_style),
            photo_size=PHOTO_SIZES.get(directory_settings.photo_size, 64),
            profile_url=profile_url(account.slug),
            department=shown("department"),
            job_title=shown("job_title"),
            phone=phone,
            phone_link=derived.phone_link(phone) if phone else None,
            office=shown("office"),
            bio=shown("bio"),
            linkedin_url=shown("linkedin_url"),
            tenure=tenure or None,
            department_color=(derived.department_color(profile.department) or None)
            if directory_settings.dept_colors
            else None,
            message_url=derived.message_url(directory_settings.message_platform, account.email) or None,
            is_new_hire=derived.is_new_hire(profile.start_date, directory_settings.new_hire_days, today),
        )

    def render_profile(
        self,
        record: EmployeeRecord,
        directory_settings: DirectorySettings,
        today: date,
    ) -> EmployeeProfilePage:
        account, profile = record.account, record.profile
        # The profile page shows every stored field; only per-user social hiding applies.
        all_fields = directory_settings.model_copy(
            update={"visible_fields": list(CARD_FIELDS)}
        )
        card = self.render_card(record, all_fields, today)

        hidden = set(profile.hidden_social_fields)
        links: list[SocialLink] = []
        for platform in SocialPlatform:
            value = profile.social.get(platform, "")
            if not value or platform in hidden:
                continue
            url, label = derived.social_link(platform, value)
            links.append(SocialLink(platform=platform.value, label=label, value=value, url=url))

        return EmployeeProfilePage(
            **card.model_dump(),
            first_name=account.first_name,
            last_name=account.last_name,
            start_date=profile.start_date or None,
            social_links=links,
        )
