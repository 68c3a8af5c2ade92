"""SQLAlchemy implementation of the reporting ``DocumentStore``."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from storedash.database import async_session_maker
from storedash.models import (
    ActivityLogEntry,
    CachedReport,
    Customer,
    Debt,
    Expense,
    Income,
    Product,
    Purchase,
    Refund,
    Sale,
    Supplier,
    User,
)
from storedash.services.query import CachedReportSnapshot, Collection, DocumentStore, QuerySpec, UserIdentity

MODEL_BY_COLLECTION: dict[Collection, type[DeclarativeBase]] = {
    Collection.SALES: Sale,
    Collection.REFUNDS: Refund,
    Collection.INCOMES: Income,
    Collection.EXPENSES: Expense,
    Collection.DEBTS: Debt,
    Collection.PURCHASES: Purchase,
    Collection.PRODUCTS: Product,
    Collection.CUSTOMERS: Customer,
    Collection.SUPPLIERS: Supplier,
    Collection.ACTIVITY: ActivityLogEntry,
    Collection.USERS: User,
}


class UnknownFieldError(ValueError):
    """Raised when a query names a column the collection does not have."""

    pass


def _column(model: type[DeclarativeBase], name: str) -> Any:
    try:
        return model.__table__.c[name]
    except KeyError as exc:
        raise UnknownFieldError(f"{model.__tablename__} has no field {name!r}") from exc


def _apply_filters(stmt: Select, model: type[DeclarativeBase], spec: QuerySpec) -> Select:
    stmt = stmt.where(_column(model, "store_id") == spec.store_id)
    for name, value in spec.equals:
        stmt = stmt.where(_column(model, name) == value)
    for name, value in spec.not_equals:
        stmt = stmt.where(_column(model, name) != value)
    for name, value in spec.at_most:
        stmt = stmt.where(_column(model, name) <= value)
    if spec.time_range is not None:
        column = _column(model, spec.time_range.field)
        if spec.time_range.start is not None:
            stmt = stmt.where(column >= spec.time_range.start)
        if spec.time_range.end is not None:
            stmt = stmt.where(column <= spec.time_range.end)
    return stmt


def build_select(spec: QuerySpec) -> Select:
    """Translate a query into a row SELECT."""
    model = MODEL_BY_COLLECTION[spec.collection]
    stmt = _apply_filters(select(model.__table__), model, spec)
    if spec.order_by:
        column = _column(model, spec.order_by)
        stmt = stmt.order_by(column.desc() if spec.descending else column.asc())
    if spec.limit is not None:
        stmt = stmt.limit(spec.limit)
    return stmt


def build_count(spec: QuerySpec) -> Select:
    """Translate a query into a server-side COUNT(*)."""
    model = MODEL_BY_COLLECTION[spec.collection]
    return _apply_filters(select(func.count()).select_from(model.__table__), model, spec)


class SqlDocumentStore:
    """Runs query specs against PostgreSQL.

    Each call opens its own session so a fan-out of concurrent aggregates
    never shares an ``AsyncSession``.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def fetch(self, spec: QuerySpec) -> list[dict[str, Any]]:
        async with self._session_maker() as session:
            result = await session.execute(build_select(spec))
            return [dict(row) for row in result.mappings().all()]

    async def count(self, spec: QuerySpec) -> int:
        async with self._session_maker() as session:
            result = await session.execute(build_count(spec))
            return int(result.scalar_one() or 0)

    async def get_cached_report(self, store_id: str) -> CachedReportSnapshot | None:
        async with self._session_maker() as session:
            row = await session.get(CachedReport, store_id)
            if row is None:
                return None
            return CachedReportSnapshot(
                store_id=row.store_id,
                payload=row.payload or {},
                updated_at=row.updated_at,
            )

    async def get_user(self, user_id: str) -> UserIdentity | None:
        try:
            key = UUID(user_id)
        except ValueError:
            return None
        async with self._session_maker() as session:
            row = await session.get(User, key)
            if row is None:
                return None
            return UserIdentity(id=str(row.id), store_id=row.store_id, role=row.role or "user")

    async def ping(self) -> bool:
        async with self._session_maker() as session:
            await session.execute(text("SELECT 1"))
            return True


sql_document_store = SqlDocumentStore(async_session_maker)


def get_document_store() -> DocumentStore:
    """Dependency for the process-wide store handle."""
    return sql_document_store
