"""Cosmos DB employee store.

One document per employee holds the account fields, the ``profile``
attribute map and ``sort_keys``, the precomputed comparison key for each sort
option. Directory settings live in the same container under a fixed id.
"""

from __future__ import annotations

import logging
from typing import Any

from azure.cosmos import exceptions
from azure.cosmos.aio import CosmosClient

from staff_directory.core.config import Settings
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
    sort_keys,
)
from staff_directory.services.store import EmployeeNotFoundError, EmployeeStoreError

logger = logging.getLogger(__name__)

EMPLOYEE_TYPE = "employee"
SETTINGS_TYPE = "settings"
SETTINGS_ID = "directory-settings"

_ACCOUNT_FIELDS = tuple(Account.model_fields)


def _path(field: str) -> str:
    if field in _ACCOUNT_FIELDS:
        return f"c.{field}"
    return f"c.profile.{field}"


def build_document(record: EmployeeRecord) -> dict[str, Any]:
    doc: dict[str, Any] = record.account.model_dump()
    doc["type"] = EMPLOYEE_TYPE
    doc["profile"] = record.profile.model_dump(mode="json")
    doc["sort_keys"] = sort_keys(record)
    return doc


def record_from_document(doc: dict[str, Any]) -> EmployeeRecord:
    account = Account(**{k: doc[k] for k in _ACCOUNT_FIELDS if doc.get(k) is not None})
    return EmployeeRecord(account=account, profile=Profile(**(doc.get("profile") or {})))


class _SqlWhere:
    """Collects WHERE clauses with numbered parameters."""

    def __init__(self) -> None:
        self.clauses: list[str] = ["c.type = @type"]
        self.parameters: list[dict[str, Any]] = [{"name": "@type", "value": EMPLOYEE_TYPE}]

    def param(self, value: Any) -> str:
        name = f"@p{len(self.parameters) - 1}"
        self.parameters.append({"name": name, "value": value})
        return name

    def add(self, predicate: Predicate) -> None:
        if isinstance(predicate, ListedOnly):
            self.clauses.append("c.listed = true")
        elif isinstance(predicate, DepartmentEquals):
            self.clauses.append(f"{_path('department')} = {self.param(predicate.department)}")
        elif isinstance(predicate, RoleIn):
            if not predicate.roles:
                self.clauses.append("false")
            else:
                roles = self.param(sorted(predicate.roles))
                self.clauses.append(f"EXISTS(SELECT VALUE r FROM r IN c.roles WHERE ARRAY_CONTAINS({roles}, r))")
        elif isinstance(predicate, NameStartsWith):
            self.clauses.append(f"STARTSWITH({_path('display_name')}, {self.param(predicate.letter)}, true)")
        elif isinstance(predicate, TextSearch):
            term = self.param(predicate.term)
            ors = " OR ".join(f"CONTAINS({_path(f)}, {term}, true)" for f in predicate.fields)
            self.clauses.append(f"({ors})")
        else:
            raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")

    @property
    def sql(self) -> str:
        return " AND ".join(self.clauses)


def compile_query(query: ConcreteQuery) -> tuple[str, list[dict[str, Any]], str, list[dict[str, Any]]]:
    """(items SQL, items parameters, count SQL, count parameters) for a directory query."""
    where = _SqlWhere()
    for predicate in query.predicates:
        where.add(predicate)

    count_parameters = list(where.parameters)
    direction = "DESC" if query.order.descending else "ASC"
    order_by = f"c.sort_keys.{query.order.key.value} {direction}, c.id {direction}"
    offset = where.param(query.offset)
    limit = where.param(query.page_size)

    items_sql = f"SELECT * FROM c WHERE {where.sql} ORDER BY {order_by} OFFSET {offset} LIMIT {limit}"
    count_sql = f"SELECT VALUE COUNT(1) FROM c WHERE {where.sql}"
    return items_sql, where.parameters, count_sql, count_parameters


class CosmosEmployeeStore:
    backend = "cosmos"

    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.container: Any = None
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        endpoint = settings.COSMOS_DB_ENDPOINT
        key = settings.COSMOS_DB_KEY
        database_name = settings.COSMOS_DB_DATABASE
        container_name = settings.COSMOS_DB_EMPLOYEES_CONTAINER

        if not endpoint or not key:
            logger.warning("Cosmos DB credentials missing; employee store not initialized")
            return

        self.client = CosmosClient(endpoint, key)
        db = self.client.get_database_client(database_name)
        self.container = db.get_container_client(container_name)
        self.initialized = True
        logger.info("CosmosEmployeeStore initialized (container=%s)", container_name)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
            self.client = None
            self.container = None
            self.initialized = False

    def _require_container(self) -> Any:
        if not self.container:
            raise EmployeeStoreError("Cosmos DB employee store not initialized")
        return self.container

    async def _query(self, query: str, parameters: list[dict[str, Any]]) -> list[Any]:
        container = self._require_container()
        items: list[Any] = []
        try:
            async for item in container.query_items(query=query, parameters=parameters):
                items.append(item)
        except exceptions.CosmosHttpResponseError as err:
            raise EmployeeStoreError(f"Cosmos DB query failed: {err.message}") from err
        return items

    async def _read(self, item_id: str) -> dict[str, Any] | None:
        container = self._require_container()
        try:
            return await container.read_item(item=item_id, partition_key=item_id)
        except exceptions.CosmosResourceNotFoundError:
            return None
        except exceptions.CosmosHttpResponseError as err:
            raise EmployeeStoreError(f"Cosmos DB read failed: {err.message}") from err

    async def _upsert(self, record: EmployeeRecord) -> EmployeeRecord:
        container = self._require_container()
        try:
            await container.upsert_item(body=build_document(record))
        except exceptions.CosmosHttpResponseError as err:
            raise EmployeeStoreError(f"Cosmos DB write failed: {err.message}") from err
        return record

    async def query(self, query: ConcreteQuery) -> tuple[list[EmployeeRecord], int]:
        items_sql, items_parameters, count_sql, count_parameters = compile_query(query)
        docs = await self._query(items_sql, items_parameters)
        counts = await self._query(count_sql, count_parameters)
        total = int(counts[0]) if counts else 0
        return [record_from_document(d) for d in docs], total

    async def distinct_departments(self) -> list[str]:
        query = (
            "SELECT DISTINCT VALUE c.profile.department FROM c "
            'WHERE c.type = @type AND IS_STRING(c.profile.department) AND c.profile.department != ""'
        )
        values = await self._query(query, [{"name": "@type", "value": EMPLOYEE_TYPE}])
        return sorted({v for v in values if v})

    async def get_record(self, employee_id: str) -> EmployeeRecord | None:
        doc = await self._read(employee_id)
        if not doc or doc.get("type") != EMPLOYEE_TYPE:
            return None
        return record_from_document(doc)

    async def get_record_by_slug(self, slug: str) -> EmployeeRecord | None:
        docs = await self._query(
            "SELECT * FROM c WHERE c.type = @type AND c.slug = @slug",
            [{"name": "@type", "value": EMPLOYEE_TYPE}, {"name": "@slug", "value": slug}],
        )
        return record_from_document(docs[0]) if docs else None

    async def find_account(self, *, login: str = "", email: str = "") -> Account | None:
        clauses: list[str] = []
        parameters: list[dict[str, Any]] = [{"name": "@type", "value": EMPLOYEE_TYPE}]
        if login:
            clauses.append("LOWER(c.login) = @login")
            parameters.append({"name": "@login", "value": login.lower()})
        if email:
            clauses.append("LOWER(c.email) = @email")
            parameters.append({"name": "@email", "value": email.lower()})
        if not clauses:
            return None

        docs = await self._query(
            f"SELECT * FROM c WHERE c.type = @type AND ({' OR '.join(clauses)})",
            parameters,
        )
        return record_from_document(docs[0]).account if docs else None

    async def create_account(self, account: Account, profile: Profile) -> EmployeeRecord:
        container = self._require_container()
        record = EmployeeRecord(account=account, profile=profile)
        try:
            await container.create_item(body=build_document(record))
        except exceptions.CosmosResourceExistsError as err:
            raise EmployeeStoreError(f"Employee {account.id} already exists") from err
        except exceptions.CosmosHttpResponseError as err:
            raise EmployeeStoreError(f"Cosmos DB write failed: {err.message}") from err
        logger.info("Created employee %s <%s>", account.login, account.email)
        return record

    async def update_account(self, account: Account) -> EmployeeRecord:
        existing = await self.get_record(account.id)
        if existing is None:
            raise EmployeeNotFoundError(account.id)
        return await self._upsert(EmployeeRecord(account=account, profile=existing.profile))

    async def get_profile(self, employee_id: str) -> Profile:
        record = await self.get_record(employee_id)
        return record.profile if record else Profile()

    async def save_profile(self, employee_id: str, changes: dict[str, Any]) -> tuple[Profile, Profile]:
        existing = await self.get_record(employee_id)
        if existing is None:
            raise EmployeeNotFoundError(employee_id)
        current = apply_profile_changes(existing.profile, changes)
        await self._upsert(EmployeeRecord(account=existing.account, profile=current))
        return existing.profile, current

    async def load_settings(self) -> DirectorySettings:
        doc = await self._read(SETTINGS_ID)
        if not doc:
            return DirectorySettings()
        return DirectorySettings(**doc.get("settings", {}))

    async def save_settings(self, directory_settings: DirectorySettings) -> None:
        container = self._require_container()
        body = {"id": SETTINGS_ID, "type": SETTINGS_TYPE, "settings": directory_settings.model_dump()}
        try:
            await container.upsert_item(body=body)
        except exceptions.CosmosHttpResponseError as err:
            raise EmployeeStoreError(f"Cosmos DB write failed: {err.message}") from err

    async def check_connection(self) -> bool:
        if not self.container:
            return False
        try:
            async for _ in self.container.query_items(query="SELECT VALUE COUNT(1) FROM c"):
                return True
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False


cosmos_employee_store = CosmosEmployeeStore()
