"""Turns a directory request plus locked constraints into a concrete query.

The query is a plain description: page window, ordering rule and a
conjunction of predicates. Storage adapters interpret it; nothing here
performs I/O.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Union

from pydantic import BaseModel, ConfigDict

from staff_directory.models.directory import (
    DEFAULT_PER_PAGE,
    MAX_PER_PAGE,
    DirectoryQueryRequest,
    LockedConstraints,
    SortKey,
)
from staff_directory.models.employee import Account, EmployeeRecord

SEARCH_FIELDS: tuple[str, ...] = ("display_name", "email", "login")


class DepartmentEquals(BaseModel):
    model_config = ConfigDict(frozen=True)

    department: str


class RoleIn(BaseModel):
    """Account holds at least one of ``roles``. An empty set matches nobody."""

    model_config = ConfigDict(frozen=True)

    roles: frozenset[str]


class TextSearch(BaseModel):
    """Case-insensitive substring match OR-ed across ``fields``."""

    model_config = ConfigDict(frozen=True)

    term: str
    fields: tuple[str, ...] = SEARCH_FIELDS


class NameStartsWith(BaseModel):
    model_config = ConfigDict(frozen=True)

    letter: str


class ListedOnly(BaseModel):
    model_config = ConfigDict(frozen=True)


Predicate = Union[DepartmentEquals, RoleIn, TextSearch, NameStartsWith, ListedOnly]


class OrderRule(BaseModel):
    """Ordering over one account/profile field.

    ``empty_last`` keeps records without a value behind every record that has
    one, whatever the direction. Ties are broken by account id.
    """

    model_config = ConfigDict(frozen=True)

    key: SortKey
    field: str
    descending: bool = False
    case_insensitive: bool = False
    empty_last: bool = True


SORT_RULES: dict[SortKey, OrderRule] = {
    SortKey.NAME_ASC: OrderRule(key=SortKey.NAME_ASC, field="display_name", case_insensitive=True),
    SortKey.NAME_DESC: OrderRule(
        key=SortKey.NAME_DESC, field="display_name", descending=True, case_insensitive=True
    ),
    SortKey.START_DATE_DESC: OrderRule(key=SortKey.START_DATE_DESC, field="start_date", descending=True),
    SortKey.DEPARTMENT_ASC: OrderRule(key=SortKey.DEPARTMENT_ASC, field="department"),
}


def order_value(rule: OrderRule, raw: str | None) -> str:
    """Comparison key for ``raw`` under ``rule``.

    Plain string comparison in the rule's direction yields the documented
    order. Empty values are the smallest string, so a descending rule puts
    them last on its own; an ascending ``empty_last`` rule needs the prefix.
    """
    value = raw or ""
    if rule.case_insensitive:
        value = value.casefold()
    if not rule.empty_last:
        return value
    if rule.descending:
        return "1" + value if value else "0"
    return "0" + value if value else "1"


def field_value(record: EmployeeRecord, field: str) -> str:
    """Value of an account field, falling back to the profile attribute."""
    if field in Account.model_fields:
        return str(getattr(record.account, field) or "")
    return str(getattr(record.profile, field, "") or "")


def sort_keys(record: EmployeeRecord) -> dict[str, str]:
    """Precomputed comparison key of ``record`` for every sort option."""
    return {key.value: order_value(rule, field_value(record, rule.field)) for key, rule in SORT_RULES.items()}


class ConcreteQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int
    page_size: int
    order: OrderRule
    predicates: tuple[Predicate, ...] = ()

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def with_predicate(self, predicate: Predicate) -> ConcreteQuery:
        return self.model_copy(update={"predicates": (*self.predicates, predicate)})

    def find(self, kind: type[BaseModel]) -> list[Predicate]:
        return [p for p in self.predicates if isinstance(p, kind)]


# Pure transform applied after the base query is built; must not perform I/O.
QueryTransform = Callable[[ConcreteQuery], ConcreteQuery]


def normalize_letter(letter: str | None) -> str:
    """Single ASCII letter, upper-cased; anything else is dropped."""
    value = (letter or "").strip()
    if len(value) != 1 or not (value.isascii() and value.isalpha()):
        return ""
    return value.upper()


def effective_page_size(
    locked: LockedConstraints,
    requested: int | None,
    default: int = DEFAULT_PER_PAGE,
) -> int:
    if locked.per_page > 0:
        size = locked.per_page
    elif requested is not None and requested > 0:
        size = requested
    else:
        size = default
    return max(1, min(MAX_PER_PAGE, size))


def resolve_roles(
    locked: LockedConstraints,
    requested: Iterable[str],
    allowed: Iterable[str] = (),
) -> frozenset[str] | None:
    """Effective role set, or ``None`` when every role qualifies.

    An empty frozenset means the requested roles fall outside the allowed
    ones and nothing can match.
    """
    merged = {locked.role} if locked.role else {r for r in requested if r}
    allowed_set = {r for r in allowed if r}

    if not allowed_set:
        return frozenset(merged) if merged else None
    if not merged:
        return frozenset(allowed_set)
    return frozenset(allowed_set & merged)


def build(
    request: DirectoryQueryRequest,
    locked: LockedConstraints | None = None,
    *,
    allowed_roles: Iterable[str] = (),
    default_per_page: int = DEFAULT_PER_PAGE,
    include_unlisted: bool = False,
    transforms: Sequence[QueryTransform] = (),
) -> ConcreteQuery:
    locked = locked or LockedConstraints()
    predicates: list[Predicate] = []

    if not include_unlisted:
        predicates.append(ListedOnly())

    department = locked.department or request.department.strip()
    if department:
        predicates.append(DepartmentEquals(department=department))

    roles = resolve_roles(locked, request.role_filter, allowed_roles)
    if roles is not None:
        predicates.append(RoleIn(roles=roles))

    letter = normalize_letter(request.letter)
    if letter:
        predicates.append(NameStartsWith(letter=letter))
    else:
        term = request.search.strip()
        if term:
            predicates.append(TextSearch(term=term))

    query = ConcreteQuery(
        page=max(1, request.page),
        page_size=effective_page_size(locked, request.per_page, default_per_page),
        order=SORT_RULES[SortKey.parse(request.sort)],
        predicates=tuple(predicates),
    )

    for transform in transforms:
        query = transform(query)
    return query
