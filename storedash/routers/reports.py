"""Multi-tab reports API router."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query, Response

from storedash.config import settings
from storedash.deps import CurrentStore, ReportBuilder, ReportCache
from storedash.logger import get_logger
from storedash.routers.dashboard import REPORT_SOURCE_HEADER
from storedash.schemas import ReportView, ReportViewName
from storedash.services.aggregation import ReportError, UpstreamUnavailableError
from storedash.services.periods import resolve_window
from storedash.services.report_cache import ReportSource
from storedash.utils import raise_bad_request, raise_service_unavailable

router = APIRouter(prefix="/reports", tags=["reports"])
logger = get_logger(__name__)


@router.get("", response_model=ReportView, response_model_exclude_none=True)
async def get_report(
    ctx: CurrentStore,
    builder: ReportBuilder,
    cache: ReportCache,
    response: Response,
    view: str = Query(default=ReportViewName.SALES.value, max_length=32),
    currency: str = Query(default=settings.default_currency, min_length=3, max_length=8),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
) -> ReportView:
    """KPIs, charts and tables for one report tab.

    Tabs without a pipeline answer with ``notImplemented: true`` rather than
    an error.
    """
    view = view.lower()
    currency = currency.upper()
    try:
        window = resolve_window(start_date, end_date)
    except ReportError as exc:
        logger.warning(
            "Report request rejected",
            view=view,
            start_date=str(start_date),
            end_date=str(end_date),
            error=str(exc),
        )
        raise_bad_request(str(exc), cause=exc)

    if not builder.supports(view):
        response.headers[REPORT_SOURCE_HEADER] = ReportSource.REALTIME.value
        return await builder.build(view, ctx.store_id, currency, window)

    try:
        resolved = await cache.resolve(
            view,
            ctx.store_id,
            currency,
            window,
            lambda: builder.build(view, ctx.store_id, currency, window),
            parse=ReportView.model_validate,
        )
    except UpstreamUnavailableError as exc:
        logger.error(
            "Report unavailable",
            store_id=ctx.store_id,
            view=view,
            error=str(exc),
        )
        raise_service_unavailable("Reporting data is temporarily unavailable", cause=exc)

    response.headers[REPORT_SOURCE_HEADER] = resolved.source.value
    return resolved.data
