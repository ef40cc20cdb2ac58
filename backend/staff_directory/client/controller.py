"""Interactive directory state: filters, paging, view mode and fetch bookkeeping.

All transitions run on one event loop. The only suspension point is the
listing fetch and the only scheduled operation is the search debounce.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from pydantic import BaseModel, Field

from staff_directory.client.api_client import DirectoryApiError, LoginRequiredError
from staff_directory.client.preferences import PreferenceStore, SafePreferences
from staff_directory.client.scheduling import AsyncioScheduler, Scheduler, TimerHandle
from staff_directory.models.directory import (
    ClientConfig,
    ListingResponse,
    PageButton,
    PageLink,
    PaginationWindow,
    SortKey,
    ViewMode,
)
from staff_directory.models.employee import EmployeeCard
from staff_directory.services.query_builder import normalize_letter

logger = logging.getLogger(__name__)


class ListingApi(Protocol):
    async def list_employees(self, params: dict[str, Any]) -> ListingResponse: ...


class DirectoryState(BaseModel):
    search: str = ""
    department: str = ""
    letter: str = ""
    sort: SortKey = SortKey.NAME_ASC
    page: int = 1
    view: ViewMode = ViewMode.GRID
    loading: bool = False
    login_required: bool = False
    items: list[EmployeeCard] = Field(default_factory=list)
    total: int = 0
    pagination: PaginationWindow | None = None


class DirectoryController:
    def __init__(
        self,
        api: ListingApi,
        *,
        config: ClientConfig | None = None,
        scheduler: Scheduler | None = None,
        preferences: PreferenceStore | None = None,
        on_scroll: Callable[[], None] | None = None,
        spawn: Callable[[Coroutine[Any, Any, bool]], Any] | None = None,
        roles: list[str] | None = None,
    ) -> None:
        self.api = api
        self.config = config or ClientConfig()
        self.scheduler = scheduler or AsyncioScheduler()
        self.preferences = SafePreferences(preferences)
        self.on_scroll = on_scroll
        self._spawn = spawn or asyncio.ensure_future
        self.roles = list(roles or [])
        self.state = DirectoryState(view=self.config.default_view)
        self._sequence = 0
        self._debounce: TimerHandle | None = None

    @property
    def sequence(self) -> int:
        return self._sequence

    def restore_preferences(self) -> None:
        view = self.preferences.get(self.config.view_storage_key, self.state.view.value)
        sort = self.preferences.get(self.config.sort_storage_key, self.state.sort.value)
        try:
            self.state.view = ViewMode(view)
        except ValueError:
            self.state.view = self.config.default_view
        self.state.sort = SortKey.parse(sort)

    async def start(self) -> bool:
        self.restore_preferences()
        return await self.fetch()

    def query_params(self) -> dict[str, Any]:
        return {
            "search": self.state.search,
            "department": self.state.department,
            "letter": self.state.letter,
            "sort": self.state.sort.value,
            "page": self.state.page,
            "role": self.roles,
        }

    def _cancel_debounce(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    def on_search_input(self, text: str) -> None:
        self.state.search = text
        self.state.letter = ""
        self.state.page = 1
        self._cancel_debounce()
        self._debounce = self.scheduler.call_later(self.config.debounce_ms / 1000, self._debounce_fired)

    def _debounce_fired(self) -> None:
        self._debounce = None
        self._spawn(self.fetch())

    async def on_letter_click(self, letter: str) -> bool:
        letter = normalize_letter(letter)
        self.state.letter = "" if letter == self.state.letter else letter
        self.state.search = ""
        self.state.page = 1
        self._cancel_debounce()
        return await self.fetch()

    async def on_department_change(self, department: str) -> bool:
        self.state.department = department
        self.state.page = 1
        self._cancel_debounce()
        return await self.fetch()

    async def on_sort_change(self, sort: str) -> bool:
        self.state.sort = SortKey.parse(sort)
        self.state.page = 1
        self._cancel_debounce()
        self.preferences.set(self.config.sort_storage_key, self.state.sort.value)
        return await self.fetch()

    async def on_page_click(self, target: PageButton | PageLink) -> bool:
        """Jump to a page; disabled, current and ellipsis buttons do nothing."""
        if isinstance(target, PageLink):
            if target.disabled:
                return False
            page = target.page
        else:
            if target.is_ellipsis or target.is_current or target.page_number is None:
                return False
            page = target.page_number
        if page == self.state.page:
            return False

        self.state.page = page
        ok = await self.fetch()
        if ok and self.on_scroll is not None:
            self.on_scroll()
        return ok

    def on_view_toggle(self, view: str) -> None:
        try:
            self.state.view = ViewMode(view)
        except ValueError:
            return
        self.preferences.set(self.config.view_storage_key, self.state.view.value)

    def fetch(self) -> Coroutine[Any, Any, bool]:
        """Dispatch a listing request for the current state.

        The request parameters and sequence number are taken at call time;
        awaiting the result applies the response unless a newer fetch was
        dispatched in the meantime.
        """
        self._sequence += 1
        self.state.loading = True
        return self._receive(self._sequence, self.query_params())

    async def _receive(self, sequence: int, params: dict[str, Any]) -> bool:
        try:
            response = await self.api.list_employees(params)
        except LoginRequiredError:
            if sequence == self._sequence:
                self.state.login_required = True
                self.state.items = []
                self.state.total = 0
                self.state.pagination = None
            return False
        except DirectoryApiError as e:
            logger.warning("Directory fetch failed: %s", e)
            return False
        finally:
            if sequence == self._sequence:
                self.state.loading = False

        if sequence != self._sequence:
            logger.debug("Discarding stale directory response %d (latest %d)", sequence, self._sequence)
            return False

        self.state.items = response.items
        self.state.total = response.total
        self.state.pagination = response.pagination
        self.state.page = response.pagination.current_page
        self.state.login_required = False
        return True
