"""Period-over-period comparison and the one-line dashboard insight."""

from __future__ import annotations

import asyncio
from decimal import Decimal

from storedash.config import settings
from storedash.schemas import PerformanceComparison
from storedash.services.aggregators import Aggregators
from storedash.services.periods import ReportWindow

NEUTRAL_INSIGHT = "All systems operational. Have a great day!"


def percent_change(current: Decimal | float, previous: Decimal | float) -> float:
    """Relative change in percent; 100 when growing from zero."""
    current_f = float(current)
    previous_f = float(previous)
    if previous_f == 0:
        return 100.0 if current_f > 0 else 0.0
    return (current_f - previous_f) / previous_f * 100


async def compare(
    aggregators: Aggregators,
    store_id: str,
    currency: str,
    current: ReportWindow,
    previous: ReportWindow | None = None,
) -> PerformanceComparison:
    """Sales and profit change against the preceding window of equal length."""
    prev = previous or current.previous()
    cur_revenue, cur_expense, prev_revenue, prev_expense = await asyncio.gather(
        aggregators.sales_revenue(store_id, currency, current.start, current.end),
        aggregators.expense_total(store_id, currency, current.start, current.end),
        aggregators.sales_revenue(store_id, currency, prev.start, prev.end),
        aggregators.expense_total(store_id, currency, prev.start, prev.end),
    )
    return PerformanceComparison(
        sales_change_percent=percent_change(cur_revenue, prev_revenue),
        profit_change_percent=percent_change(cur_revenue - cur_expense, prev_revenue - prev_expense),
    )


def generate_smart_insight(
    profit_change: float,
    top_product: str | None,
    *,
    growth_threshold: float | None = None,
    decline_threshold: float | None = None,
) -> str:
    upper = settings.insight_growth_threshold if growth_threshold is None else growth_threshold
    lower = settings.insight_decline_threshold if decline_threshold is None else decline_threshold
    if profit_change > upper:
        return f"Great job! Profit is up {profit_change:.0f}%. Keep pushing {top_product or 'your top products'}!"
    if profit_change < lower:
        return f"Profit is down {profit_change:.0f}%. Review expenses and sales strategies."
    return f"Steady performance. {top_product or 'Top products'} are leading your sales."
