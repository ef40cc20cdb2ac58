from __future__ import annotations

import pytest

from staff_directory.services.department_cache import DepartmentCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.anyio
async def test_loads_once_within_ttl():
    clock = FakeClock()
    cache = DepartmentCache(ttl_seconds=3600, clock=clock)
    calls = []

    async def loader():
        calls.append(1)
        return ["Sales", "", "Engineering", "Sales"]

    assert await cache.get(loader) == ["Engineering", "Sales"]
    clock.now = 3599
    assert await cache.get(loader) == ["Engineering", "Sales"]
    assert len(calls) == 1

    clock.now = 3600
    await cache.get(loader)
    assert len(calls) == 2


@pytest.mark.anyio
async def test_invalidate_forces_reload_and_is_idempotent():
    cache = DepartmentCache(clock=FakeClock())
    departments = ["Engineering"]

    async def loader():
        return list(departments)

    await cache.get(loader)
    departments.append("Finance")
    cache.invalidate()
    cache.invalidate()

    assert cache.peek() is None
    assert await cache.get(loader) == ["Engineering", "Finance"]


@pytest.mark.anyio
async def test_load_racing_an_invalidation_is_not_cached():
    cache = DepartmentCache(clock=FakeClock())

    async def loader():
        cache.invalidate()
        return ["Stale"]

    assert await cache.get(loader) == ["Stale"]
    assert cache.peek() is None
