"""Soft-failing query execution and the concurrent fan-out primitive.

Every read the reporting engine performs goes through ``QueryExecutor``.
A failing read never raises: it is logged once and comes back as a failed
``Outcome`` that the caller unwraps to a zero value. Only when *every*
read of a request failed because the store was unreachable does the
request itself fail (``UpstreamUnavailableError``).
"""

from __future__ import annotations

import asyncio
import copy
import math
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Generic, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from storedash.logger import get_logger
from storedash.services.query import Collection, DocumentStore, QuerySpec, query

logger = get_logger(__name__)

T = TypeVar("T")

ZERO = Decimal("0")


class ReportError(Exception):
    """Raised when report generation fails or input is invalid."""

    pass


class UpstreamUnavailableError(ReportError):
    """Raised when the document store could not be reached at all."""

    pass


@dataclass(frozen=True)
class AggregationError:
    """Why a single read or aggregate produced no value."""

    operation: str
    message: str
    error_type: str
    unavailable: bool = False
    timed_out: bool = False


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value-or-error result of one soft-failing read."""

    value: T | None = None
    error: AggregationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        if self.error is not None or self.value is None:
            return default
        return self.value

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: AggregationError) -> Outcome[T]:
        return cls(error=error)


def to_decimal(value: Any) -> Decimal:
    """Coerce a stored amount to ``Decimal``; anything non-numeric is zero."""
    if isinstance(value, bool) or value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ZERO
        return Decimal(str(value))
    return ZERO


def quantize_money(amount: Decimal | int) -> Decimal:
    if isinstance(amount, int):
        amount = Decimal(amount)
    try:
        return amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        return ZERO


def is_unavailable_error(exc: BaseException) -> bool:
    """True when the failure means the store itself is unreachable."""
    if isinstance(exc, TimeoutError):
        return False
    if isinstance(exc, (OperationalError, InterfaceError, ConnectionError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, OSError)


def _describe_failure(operation: str, exc: BaseException) -> AggregationError:
    return AggregationError(
        operation=operation,
        message=str(exc),
        error_type=type(exc).__name__,
        unavailable=is_unavailable_error(exc),
        timed_out=isinstance(exc, TimeoutError),
    )


class QueryExecutor:
    """Request-scoped wrapper that turns store failures into ``Outcome`` values.

    The executor keeps a journal of the reads it attempted so the assembler
    can tell a partially degraded report from a total outage.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self.attempts = 0
        self.failures: list[AggregationError] = []

    def _record_failure(self, operation: str, exc: Exception) -> AggregationError:
        error = _describe_failure(operation, exc)
        self.failures.append(error)
        logger.warning(
            "Aggregate query failed",
            operation=operation,
            error=error.message,
            error_type=error.error_type,
            unavailable=error.unavailable,
        )
        return error

    @property
    def store_unavailable(self) -> bool:
        """Every attempted read failed because the store was unreachable."""
        if self.attempts == 0 or len(self.failures) < self.attempts:
            return False
        return all(failure.unavailable for failure in self.failures)

    def ensure_available(self) -> None:
        if self.store_unavailable:
            raise UpstreamUnavailableError(
                f"Document store unavailable ({len(self.failures)} failed reads)"
            )

    async def fetch(self, spec: QuerySpec) -> Outcome[list[dict[str, Any]]]:
        self.attempts += 1
        try:
            return Outcome.success(await self.store.fetch(spec))
        except Exception as exc:
            return Outcome.failure(self._record_failure(spec.describe(), exc))

    async def count(self, spec: QuerySpec) -> Outcome[int]:
        self.attempts += 1
        try:
            return Outcome.success(int(await self.store.count(spec)))
        except Exception as exc:
            return Outcome.failure(self._record_failure(spec.describe(), exc))

    async def sum_field(self, spec: QuerySpec, amount_field: str) -> Outcome[Decimal]:
        """Sum one numeric field over every row matching ``spec``."""
        rows = await self.fetch(spec)
        if not rows.ok:
            return Outcome.failure(rows.error)
        total = ZERO
        for row in rows.value or []:
            total += to_decimal(row.get(amount_field))
        return Outcome.success(total)

    async def sum(
        self,
        collection: Collection,
        amount_field: str,
        store_id: str,
        currency: str,
        start: datetime | None,
        end: datetime | None,
        *,
        method: str | None = None,
        currency_field: str = "currency",
        time_field: str = "created_at",
    ) -> Outcome[Decimal]:
        """Sum ``amount_field`` for one store and currency inside ``[start, end]``.

        Either bound may be ``None`` for an open-ended (all-time) sum.
        """
        spec = query(collection, store_id, label=f"{collection.value}.{amount_field}")
        spec = spec.where(**{currency_field: currency})
        if method is not None:
            spec = spec.where(payment_method=method)
        if start is not None or end is not None:
            spec = spec.between(time_field, start, end)
        return await self.sum_field(spec, amount_field)


@dataclass(frozen=True)
class SoftTask(Generic[T]):
    """One slot of a fan-out: an awaitable plus the value used if it fails."""

    awaitable: Awaitable[T]
    default: T


def soft(awaitable: Awaitable[T], default: T) -> SoftTask[T]:
    return SoftTask(awaitable=awaitable, default=default)


async def _run_slot(slot: str, task: SoftTask[T], timeout: float | None) -> Outcome[T]:
    try:
        async with asyncio.timeout(timeout):
            return Outcome.success(await task.awaitable)
    except Exception as exc:
        error = _describe_failure(slot, exc)
        logger.warning(
            "Aggregation slot degraded to default",
            slot=slot,
            error=error.message,
            error_type=error.error_type,
            timed_out=error.timed_out,
        )
        return Outcome.failure(error)


async def fan_out(
    tasks: Mapping[str, SoftTask[Any]],
    *,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Run independent read-only tasks concurrently and join on all of them.

    Results are keyed by slot name. A slot that raises or exceeds
    ``timeout`` yields a copy of its default; the join never short-circuits.
    Cancelling the caller cancels every in-flight slot.
    """
    if not tasks:
        return {}
    async with asyncio.TaskGroup() as tg:
        handles = {
            slot: tg.create_task(_run_slot(slot, task, timeout), name=f"aggregate:{slot}")
            for slot, task in tasks.items()
        }
    results: dict[str, Any] = {}
    for slot, handle in handles.items():
        outcome = handle.result()
        results[slot] = outcome.value if outcome.ok else copy.deepcopy(tasks[slot].default)
    return results
