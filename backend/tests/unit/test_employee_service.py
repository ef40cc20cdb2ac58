from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.cosmos import exceptions

from staff_directory.core.config import Settings
from staff_directory.models.directory import DirectoryQueryRequest, DirectorySettings, LockedConstraints
from staff_directory.models.employee import Account, EmployeeRecord
from staff_directory.models.profile import Profile
from staff_directory.services.employee_service import (
    CosmosEmployeeStore,
    build_document,
    compile_query,
    record_from_document,
)
from staff_directory.services.query_builder import build
from staff_directory.services.store import EmployeeNotFoundError, EmployeeStoreError

SAMPLE_RECORD = EmployeeRecord(
    account=Account(
        id="u1",
        login="alice",
        email="alice@example.com",
        display_name="Alice Archer",
        first_name="Alice",
        last_name="Archer",
        slug="alice",
        roles=["employee"],
    ),
    profile=Profile(department="Engineering", start_date="2022-03"),
)


def _container_returning(*batches):
    """Container whose successive ``query_items`` calls yield the given batches."""
    container = MagicMock()
    calls = []
    pending = list(batches)

    def query_items(**kwargs):
        calls.append(kwargs)
        items = pending.pop(0) if pending else []

        async def _gen():
            for item in items:
                yield item

        return _gen()

    container.query_items = query_items
    container.calls = calls
    return container


def _store(container) -> CosmosEmployeeStore:
    store = CosmosEmployeeStore()
    store.initialized = True
    store.container = container
    return store


def test_document_round_trip_keeps_account_and_profile():
    doc = build_document(SAMPLE_RECORD)

    assert doc["type"] == "employee"
    assert doc["profile"]["department"] == "Engineering"
    assert doc["sort_keys"]["name_asc"] == "0alice archer"
    assert doc["sort_keys"]["start_date_desc"] == "12022-03"
    assert record_from_document(doc) == SAMPLE_RECORD


def test_compile_query_builds_parameterised_where_and_order():
    query = build(
        DirectoryQueryRequest(search="ali", role_filter={"employee"}, sort="name_desc", page=2, per_page=10),
        LockedConstraints(department="Engineering"),
    )
    items_sql, items_params, count_sql, count_params = compile_query(query)

    assert "c.listed = true" in items_sql
    assert "c.profile.department = @p0" in items_sql
    assert "ARRAY_CONTAINS(@p1, r)" in items_sql
    assert "CONTAINS(c.display_name, @p2, true)" in items_sql
    assert "CONTAINS(c.email, @p2, true)" in items_sql
    assert items_sql.endswith("ORDER BY c.sort_keys.name_desc DESC, c.id DESC OFFSET @p3 LIMIT @p4")
    values = {p["name"]: p["value"] for p in items_params}
    assert values["@p0"] == "Engineering"
    assert values["@p1"] == ["employee"]
    assert values["@p3"] == 10
    assert values["@p4"] == 10

    assert count_sql.startswith("SELECT VALUE COUNT(1) FROM c WHERE")
    assert "ORDER BY" not in count_sql
    assert {p["name"] for p in count_params} == {"@type", "@p0", "@p1", "@p2"}


def test_compile_query_letter_and_empty_roles():
    query = build(DirectoryQueryRequest(letter="c", role_filter={"x"}), allowed_roles=["employee"])
    items_sql, _, _, _ = compile_query(query)

    assert "STARTSWITH(c.display_name, @p0, true)" in items_sql
    assert " AND false" in items_sql


@pytest.mark.anyio
async def test_query_returns_records_and_total():
    container = _container_returning([build_document(SAMPLE_RECORD)], [7])
    store = _store(container)

    records, total = await store.query(build(DirectoryQueryRequest()))

    assert [r.account.login for r in records] == ["alice"]
    assert total == 7
    assert len(container.calls) == 2


@pytest.mark.anyio
async def test_query_wraps_cosmos_errors():
    container = MagicMock()

    def failing(**kwargs):
        raise exceptions.CosmosHttpResponseError(status_code=500, message="boom")

    container.query_items = failing
    with pytest.raises(EmployeeStoreError):
        await _store(container).query(build(DirectoryQueryRequest()))


@pytest.mark.anyio
async def test_not_initialized_store_raises():
    with pytest.raises(EmployeeStoreError):
        await CosmosEmployeeStore().query(build(DirectoryQueryRequest()))


@pytest.mark.anyio
async def test_get_record_by_slug_found_and_missing():
    store = _store(_container_returning([build_document(SAMPLE_RECORD)], []))

    found = await store.get_record_by_slug("alice")
    missing = await store.get_record_by_slug("nobody")

    assert found.account.id == "u1"
    assert missing is None


@pytest.mark.anyio
async def test_distinct_departments_sorted():
    store = _store(_container_returning(["Sales", "Engineering", ""]))
    assert await store.distinct_departments() == ["Engineering", "Sales"]


@pytest.mark.anyio
async def test_save_profile_upserts_and_returns_both_versions():
    container = MagicMock()
    container.read_item = AsyncMock(return_value=build_document(SAMPLE_RECORD))
    container.upsert_item = AsyncMock()
    store = _store(container)

    previous, current = await store.save_profile("u1", {"department": "Sales"})

    assert previous.department == "Engineering"
    assert current.department == "Sales"
    body = container.upsert_item.await_args.kwargs["body"]
    assert body["profile"]["department"] == "Sales"
    assert body["sort_keys"]["department_asc"] == "0Sales"


@pytest.mark.anyio
async def test_save_profile_for_unknown_employee():
    container = MagicMock()
    container.read_item = AsyncMock(
        side_effect=exceptions.CosmosResourceNotFoundError(status_code=404, message="missing")
    )
    with pytest.raises(EmployeeNotFoundError):
        await _store(container).save_profile("nope", {"department": "Sales"})


@pytest.mark.anyio
async def test_settings_default_when_missing_and_saved_under_fixed_id():
    container = MagicMock()
    container.read_item = AsyncMock(
        side_effect=exceptions.CosmosResourceNotFoundError(status_code=404, message="missing")
    )
    container.upsert_item = AsyncMock()
    store = _store(container)

    assert await store.load_settings() == DirectorySettings()
    await store.save_settings(DirectorySettings(per_page=50))
    body = container.upsert_item.await_args.kwargs["body"]
    assert body["id"] == "directory-settings"
    assert body["settings"]["per_page"] == 50


@pytest.mark.anyio
async def test_initialize_without_credentials_stays_uninitialized():
    store = CosmosEmployeeStore()
    await store.initialize(Settings(COSMOS_DB_ENDPOINT="", COSMOS_DB_KEY=""))

    assert store.initialized is False
    assert await store.check_connection() is False
