"""Reporting services: query execution, aggregation and report assembly."""

from storedash.services.access import can_view_financials, redact
from storedash.services.aggregation import (
    Outcome,
    QueryExecutor,
    ReportError,
    UpstreamUnavailableError,
    fan_out,
    soft,
)
from storedash.services.dashboard import DashboardAssembler
from storedash.services.report_cache import ReportCacheResolver, ReportSource, ResolvedReport
from storedash.services.report_views import ReportViewBuilder

__all__ = [
    "DashboardAssembler",
    "Outcome",
    "QueryExecutor",
    "ReportCacheResolver",
    "ReportError",
    "ReportSource",
    "ReportViewBuilder",
    "ResolvedReport",
    "UpstreamUnavailableError",
    "can_view_financials",
    "fan_out",
    "redact",
    "soft",
]
