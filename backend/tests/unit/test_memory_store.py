from __future__ import annotations

import pytest

from staff_directory.models.directory import DirectoryQueryRequest, LockedConstraints
from staff_directory.models.employee import Account
from staff_directory.models.profile import Profile
from staff_directory.services.memory_store import InMemoryEmployeeStore
from staff_directory.services.query_builder import build
from staff_directory.services.store import EmployeeNotFoundError


async def _names(store, request, locked=None, **kwargs):
    records, total = await store.query(build(request, locked, **kwargs))
    return [r.account.display_name for r in records], total


@pytest.mark.anyio
async def test_default_listing_is_case_insensitive_by_name(memory_store):
    names, total = await _names(memory_store, DirectoryQueryRequest())

    assert names == ["Alice Archer", "bob baker", "Carol Chen"]
    assert total == 3


@pytest.mark.anyio
async def test_name_descending(memory_store):
    names, _ = await _names(memory_store, DirectoryQueryRequest(sort="name_desc"))
    assert names == ["Carol Chen", "bob baker", "Alice Archer"]


@pytest.mark.anyio
async def test_search_matches_display_name_email_or_login(memory_store):
    assert (await _names(memory_store, DirectoryQueryRequest(search="CHEN")))[0] == ["Carol Chen"]
    assert (await _names(memory_store, DirectoryQueryRequest(search="bob@")))[0] == ["bob baker"]
    assert (await _names(memory_store, DirectoryQueryRequest(search="example.com")))[1] == 3


@pytest.mark.anyio
async def test_letter_filter(memory_store):
    assert (await _names(memory_store, DirectoryQueryRequest(letter="b")))[0] == ["bob baker"]


@pytest.mark.anyio
async def test_locked_department(memory_store):
    names, total = await _names(
        memory_store,
        DirectoryQueryRequest(department="Sales"),
        LockedConstraints(department="Engineering"),
    )
    assert names == ["Alice Archer", "Carol Chen"]
    assert total == 2


@pytest.mark.anyio
async def test_role_filter_and_disjoint_allowed_roles(memory_store):
    assert (await _names(memory_store, DirectoryQueryRequest(role_filter={"hr"})))[0] == ["Carol Chen"]
    names, total = await _names(
        memory_store,
        DirectoryQueryRequest(role_filter={"contractor"}),
        allowed_roles=["employee"],
    )
    assert (names, total) == ([], 0)


@pytest.mark.anyio
async def test_start_date_descending_puts_missing_dates_last(memory_store):
    names, _ = await _names(memory_store, DirectoryQueryRequest(sort="start_date_desc"))
    assert names == ["bob baker", "Alice Archer", "Carol Chen"]


@pytest.mark.anyio
async def test_department_sort_breaks_ties_by_id(memory_store):
    names, _ = await _names(memory_store, DirectoryQueryRequest(sort="department_asc"))
    assert names == ["Alice Archer", "Carol Chen", "bob baker"]


@pytest.mark.anyio
async def test_paging_and_totals(memory_store):
    names, total = await _names(memory_store, DirectoryQueryRequest(page=2, per_page=2))
    assert names == ["Carol Chen"]
    assert total == 3


@pytest.mark.anyio
async def test_unlisted_only_with_include_unlisted(memory_store):
    _, total = await _names(memory_store, DirectoryQueryRequest(), include_unlisted=True)
    assert total == 4


@pytest.mark.anyio
async def test_distinct_departments(memory_store):
    assert await memory_store.distinct_departments() == ["Engineering", "Finance", "Sales"]


@pytest.mark.anyio
async def test_save_profile_returns_previous_and_current(memory_store):
    previous, current = await memory_store.save_profile("u2", {"department": "Marketing"})

    assert previous.department == "Sales"
    assert current.department == "Marketing"
    assert (await memory_store.get_profile("u2")).department == "Marketing"


@pytest.mark.anyio
async def test_find_and_update_accounts():
    store = InMemoryEmployeeStore()
    await store.create_account(Account(id="n1", login="nina", email="Nina@Example.com"), Profile())

    assert (await store.find_account(email="nina@example.com")).id == "n1"
    assert await store.find_account(login="nobody") is None

    with pytest.raises(EmployeeNotFoundError):
        await store.update_account(Account(id="missing", login="x"))
