"""Declarative query specifications for the reporting read path.

Aggregators describe *what* they want to read as a frozen ``QuerySpec``;
a ``DocumentStore`` implementation decides how to run it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Protocol


class Collection(str, Enum):
    """Tenant-scoped record collections the engine can read."""

    SALES = "sales"
    REFUNDS = "refunds"
    INCOMES = "incomes"
    EXPENSES = "expenses"
    DEBTS = "debts"
    PURCHASES = "purchases"
    PRODUCTS = "products"
    CUSTOMERS = "customers"
    SUPPLIERS = "suppliers"
    ACTIVITY = "activity_feed"
    USERS = "users"


@dataclass(frozen=True)
class TimeRange:
    """Inclusive bounds on a timestamp field. ``None`` leaves a side open."""

    field: str
    start: datetime | None = None
    end: datetime | None = None

    def contains(self, value: datetime | None) -> bool:
        if value is None:
            return False
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


@dataclass(frozen=True)
class QuerySpec:
    """A scoped, filtered read against one collection."""

    collection: Collection
    store_id: str
    equals: tuple[tuple[str, Any], ...] = ()
    not_equals: tuple[tuple[str, Any], ...] = ()
    at_most: tuple[tuple[str, Any], ...] = ()
    time_range: TimeRange | None = None
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None
    label: str = field(default="", compare=False)

    def where(self, **filters: Any) -> QuerySpec:
        """Return a copy with extra equality filters."""
        return replace(self, equals=self.equals + tuple(filters.items()))

    def excluding(self, **filters: Any) -> QuerySpec:
        """Return a copy with extra inequality filters."""
        return replace(self, not_equals=self.not_equals + tuple(filters.items()))

    def capped(self, **filters: Any) -> QuerySpec:
        """Return a copy with extra ``field <= value`` filters."""
        return replace(self, at_most=self.at_most + tuple(filters.items()))

    def between(self, field_name: str, start: datetime | None, end: datetime | None) -> QuerySpec:
        return replace(self, time_range=TimeRange(field_name, start, end))

    def ordered(self, field_name: str, *, descending: bool = False, limit: int | None = None) -> QuerySpec:
        return replace(self, order_by=field_name, descending=descending, limit=limit)

    def describe(self) -> str:
        """Short name used in log lines."""
        return self.label or self.collection.value


@dataclass(frozen=True)
class UserIdentity:
    """Who a token belongs to and which store they act for."""

    id: str
    store_id: str | None
    role: str


@dataclass(frozen=True)
class CachedReportSnapshot:
    """Read-side view of a store's cached report document."""

    store_id: str
    payload: dict[str, Any]
    updated_at: datetime | None


class DocumentStore(Protocol):
    """Query surface the reporting engine depends on.

    Implementations must be safe to call concurrently from several tasks.
    """

    async def fetch(self, spec: QuerySpec) -> list[dict[str, Any]]: ...

    async def count(self, spec: QuerySpec) -> int: ...

    async def get_cached_report(self, store_id: str) -> CachedReportSnapshot | None: ...

    async def get_user(self, user_id: str) -> UserIdentity | None: ...

    async def ping(self) -> bool: ...


def query(collection: Collection, store_id: str, *, label: str = "") -> QuerySpec:
    """Start a query scoped to one store."""
    return QuerySpec(collection=collection, store_id=store_id, label=label)
