"""Common FastAPI dependencies for consistent type annotations.

Usage:
    from storedash.deps import CurrentStore, ReportCache

    async def my_endpoint(ctx: CurrentStore, cache: ReportCache):
        # ctx carries store_id and role for the authenticated user
        ...
"""

from typing import Annotated

from fastapi import Depends

from storedash.auth import StoreContext, get_store_context
from storedash.config import settings
from storedash.services.dashboard import DashboardAssembler
from storedash.services.document_store import get_document_store
from storedash.services.query import DocumentStore
from storedash.services.report_cache import ReportCacheResolver
from storedash.services.report_views import ReportViewBuilder

Store = Annotated[DocumentStore, Depends(get_document_store)]
CurrentStore = Annotated[StoreContext, Depends(get_store_context)]


def get_dashboard_assembler(store: Store) -> DashboardAssembler:
    return DashboardAssembler(store)


def get_report_builder(store: Store) -> ReportViewBuilder:
    return ReportViewBuilder(store)


def get_cache_resolver(store: Store) -> ReportCacheResolver:
    return ReportCacheResolver(
        store,
        max_age_seconds=settings.report_cache_max_age_seconds,
        fallback_currency=settings.report_cache_fallback_currency,
    )


Dashboards = Annotated[DashboardAssembler, Depends(get_dashboard_assembler)]
ReportBuilder = Annotated[ReportViewBuilder, Depends(get_report_builder)]
ReportCache = Annotated[ReportCacheResolver, Depends(get_cache_resolver)]

__all__ = ["CurrentStore", "Dashboards", "ReportBuilder", "ReportCache", "Store"]
