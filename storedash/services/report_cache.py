"""Precomputed report lookup with real-time fallback.

An external job writes one ``report_cache`` row per store holding
``{view: {currency: slice}}`` for the default window. Requests for that
window are answered from the row when a usable slice exists; everything
else is computed live.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from storedash.logger import get_logger
from storedash.services.periods import ReportWindow, is_default_window
from storedash.services.query import CachedReportSnapshot, DocumentStore

logger = get_logger(__name__)

T = TypeVar("T")

SALES_VIEW = "sales"
DASHBOARD_VIEW = "dashboard"


class ReportSource(str, Enum):
    """Which path produced a response."""

    CACHE = "cache"
    CACHE_FALLBACK_USD = "cache_fallback_usd"
    REALTIME = "realtime"


@dataclass(frozen=True)
class ResolvedReport(Generic[T]):
    data: T
    source: ReportSource


def should_consult_cache(view: str, window: ReportWindow, now: datetime | None = None) -> bool:
    """Sales is always live; other views only hit the cache for the default window."""
    return view != SALES_VIEW and is_default_window(window, now)


class ReportCacheResolver:
    """Resolves a (store, view, currency, window) request to cached or live data.

    Only views in ``age_checked_views`` are subject to ``max_age_seconds``.
    Report tab slices are written once a day and are served at any age.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        max_age_seconds: int | None = None,
        fallback_currency: str = "USD",
        age_checked_views: frozenset[str] = frozenset({DASHBOARD_VIEW}),
    ):
        self.store = store
        self.max_age = timedelta(seconds=max_age_seconds) if max_age_seconds is not None else None
        self.fallback_currency = fallback_currency
        self.age_checked_views = age_checked_views

    def is_stale(self, snapshot: CachedReportSnapshot, now: datetime | None = None) -> bool:
        """Older than ``max_age``. A snapshot with no timestamp is stale."""
        if self.max_age is None:
            return False
        if snapshot.updated_at is None:
            return True
        updated_at = snapshot.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=UTC)
        return (now or datetime.now(UTC)) - updated_at > self.max_age

    async def lookup(
        self,
        store_id: str,
        view: str,
        currency: str,
        *,
        now: datetime | None = None,
    ) -> tuple[Any, ReportSource] | None:
        """Find the cached slice for ``view``/``currency``. Never raises."""
        try:
            snapshot = await self.store.get_cached_report(store_id)
        except Exception as exc:
            logger.warning(
                "Report cache lookup failed, computing live",
                store_id=store_id,
                view=view,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

        if snapshot is None:
            logger.debug("Report cache miss", store_id=store_id, view=view, reason="no_entry")
            return None
        if view in self.age_checked_views and self.is_stale(snapshot, now):
            logger.info(
                "Report cache entry is stale",
                store_id=store_id,
                view=view,
                updated_at=snapshot.updated_at.isoformat() if snapshot.updated_at else None,
            )
            return None

        payload = snapshot.payload if isinstance(snapshot.payload, dict) else {}
        slices = payload.get(view)
        if not isinstance(slices, dict):
            logger.debug("Report cache miss", store_id=store_id, view=view, reason="no_view")
            return None
        if slices.get(currency) is not None:
            return slices[currency], ReportSource.CACHE
        if slices.get(self.fallback_currency) is not None:
            logger.info(
                "Serving cached report in fallback currency",
                store_id=store_id,
                view=view,
                requested=currency,
                served=self.fallback_currency,
            )
            return slices[self.fallback_currency], ReportSource.CACHE_FALLBACK_USD
        logger.debug("Report cache miss", store_id=store_id, view=view, reason="no_currency")
        return None

    async def resolve(
        self,
        view: str,
        store_id: str,
        currency: str,
        window: ReportWindow,
        compute: Callable[[], Awaitable[T]],
        *,
        parse: Callable[[Any], T] | None = None,
        now: datetime | None = None,
    ) -> ResolvedReport[T]:
        """Serve from cache when allowed and present, otherwise run ``compute``.

        ``parse`` turns a raw cached slice into the response type; a slice it
        rejects is treated as a miss.
        """
        if should_consult_cache(view, window, now):
            hit = await self.lookup(store_id, view, currency, now=now)
            if hit is not None:
                data, source = hit
                if parse is None:
                    return ResolvedReport(data=data, source=source)
                try:
                    return ResolvedReport(data=parse(data), source=source)
                except ValidationError as exc:
                    logger.warning(
                        "Cached report slice is malformed, computing live",
                        store_id=store_id,
                        view=view,
                        error_count=exc.error_count(),
                    )

        data = await compute()
        return ResolvedReport(data=data, source=ReportSource.REALTIME)
