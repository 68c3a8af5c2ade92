"""Dashboard summary API router."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query, Response

from storedash.config import settings
from storedash.deps import CurrentStore, Dashboards, ReportCache
from storedash.logger import get_logger
from storedash.schemas import DashboardSummary
from storedash.services.access import redact
from storedash.services.aggregation import ReportError, UpstreamUnavailableError
from storedash.services.periods import resolve_window
from storedash.services.report_cache import DASHBOARD_VIEW
from storedash.utils import raise_bad_request, raise_service_unavailable

router = APIRouter(prefix="/dashboard", tags=["dashboard"])
logger = get_logger(__name__)

REPORT_SOURCE_HEADER = "X-Report-Source"


@router.get("", response_model=DashboardSummary)
async def get_dashboard(
    ctx: CurrentStore,
    dashboards: Dashboards,
    cache: ReportCache,
    response: Response,
    currency: str = Query(default=settings.default_currency, min_length=3, max_length=8),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
) -> DashboardSummary:
    """Summary KPIs, trends and lists for the caller's store."""
    currency = currency.upper()
    try:
        window = resolve_window(start_date, end_date)
    except ReportError as exc:
        logger.warning(
            "Dashboard request rejected",
            start_date=str(start_date),
            end_date=str(end_date),
            error=str(exc),
        )
        raise_bad_request(str(exc), cause=exc)

    try:
        resolved = await cache.resolve(
            DASHBOARD_VIEW,
            ctx.store_id,
            currency,
            window,
            lambda: dashboards.build(ctx.store_id, currency, window),
            parse=DashboardSummary.model_validate,
        )
    except UpstreamUnavailableError as exc:
        logger.error(
            "Dashboard unavailable",
            store_id=ctx.store_id,
            currency=currency,
            error=str(exc),
        )
        raise_service_unavailable("Reporting data is temporarily unavailable", cause=exc)

    response.headers[REPORT_SOURCE_HEADER] = resolved.source.value
    logger.info(
        "Dashboard served",
        store_id=ctx.store_id,
        currency=currency,
        source=resolved.source.value,
        role=ctx.role,
    )
    return redact(resolved.data, ctx.role)
