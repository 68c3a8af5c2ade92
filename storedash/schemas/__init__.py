from storedash.schemas.dashboard import (
    AccountBalance,
    ActivityItem,
    DashboardSummary,
    NamedValue,
    PerformanceComparison,
    RecentSale,
    StockItem,
    TopProduct,
    TrendPoint,
)
from storedash.schemas.reports import Kpi, KpiFormat, ReportView, ReportViewName

__all__ = [
    "AccountBalance",
    "ActivityItem",
    "DashboardSummary",
    "Kpi",
    "KpiFormat",
    "NamedValue",
    "PerformanceComparison",
    "RecentSale",
    "ReportView",
    "ReportViewName",
    "StockItem",
    "TopProduct",
    "TrendPoint",
]
