"""Dashboard summary assembly: one concurrent fan-out, one joined record."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from storedash.config import settings
from storedash.logger import async_log_timing, get_logger
from storedash.schemas import DashboardSummary, PerformanceComparison
from storedash.services.aggregation import ZERO, QueryExecutor, fan_out, quantize_money, soft
from storedash.services.aggregators import Aggregators, StockSnapshot
from storedash.services.comparison import compare, generate_smart_insight
from storedash.services.periods import ReportWindow, today_window
from storedash.services.query import DocumentStore
from storedash.services.trends import SalesBundle, TrendBuilder, empty_trend

logger = get_logger(__name__)

CASH_METHOD = "CASH"


def profit_margin(revenue: Decimal, net_profit: Decimal) -> float:
    if revenue <= 0:
        return 0.0
    return float(net_profit / revenue * 100)


class DashboardAssembler:
    """Builds ``DashboardSummary`` from live records.

    The store handle is injected once; every ``build`` call gets its own
    ``QueryExecutor`` so failure bookkeeping is per request.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def build(
        self,
        store_id: str,
        currency: str,
        window: ReportWindow,
        *,
        now: datetime | None = None,
    ) -> DashboardSummary:
        executor = QueryExecutor(self.store)
        aggregators = Aggregators(executor)
        trends = TrendBuilder(executor)
        today = today_window(window.tz, now)

        async with async_log_timing("dashboard_summary", logger=logger, store_id=store_id, currency=currency):
            results = await fan_out(
                {
                    "todays_sales": soft(aggregators.sales_revenue(store_id, currency, today.start, today.end), ZERO),
                    "revenue": soft(aggregators.sales_revenue(store_id, currency, window.start, window.end), ZERO),
                    "expenses": soft(aggregators.expense_total(store_id, currency, window.start, window.end), ZERO),
                    "new_debts": soft(aggregators.debt_new_amount(store_id, currency, window.start, window.end), ZERO),
                    "sales": soft(trends.sales_data(store_id, currency, window), SalesBundle()),
                    "stock": soft(aggregators.stock_overview(store_id), StockSnapshot()),
                    "activity": soft(aggregators.activity_feed(store_id), []),
                    "trend": soft(trends.income_expense_trend(store_id, currency, window), empty_trend(window)),
                    "breakdown": soft(trends.expense_breakdown(store_id, currency, window), []),
                    "comparison": soft(compare(aggregators, store_id, currency, window), PerformanceComparison()),
                    "product_count": soft(aggregators.product_count(store_id), 0),
                    "outstanding": soft(aggregators.debt_outstanding(store_id, currency), ZERO),
                    "payables": soft(aggregators.payable_outstanding(store_id, currency), ZERO),
                    "balances": soft(aggregators.account_balances(store_id, currency), []),
                },
                timeout=settings.aggregation_timeout_seconds,
            )

        executor.ensure_available()
        if executor.failures:
            logger.warning(
                "Dashboard served with degraded fields",
                store_id=store_id,
                failed_reads=len(executor.failures),
                attempted_reads=executor.attempts,
            )

        sales: SalesBundle = results["sales"]
        stock: StockSnapshot = results["stock"]
        revenue: Decimal = results["revenue"]
        expenses: Decimal = results["expenses"]
        net_profit = revenue - expenses
        comparison: PerformanceComparison = results["comparison"]
        balances = results["balances"]
        cash = next((b.balance for b in balances if b.method == CASH_METHOD), ZERO)
        top_product = sales.top_selling_products[0].name if sales.top_selling_products else None

        return DashboardSummary(
            currency=currency,
            start_date=window.start_day,
            end_date=window.end_day,
            todays_sales=quantize_money(results["todays_sales"]),
            total_incomes=quantize_money(revenue),
            total_expenses=quantize_money(expenses),
            net_profit=quantize_money(net_profit),
            total_sales_count=sales.total_sales_count,
            new_debts_amount=quantize_money(results["new_debts"]),
            low_stock_count=stock.low_stock_count,
            total_products=results["product_count"],
            outstanding_invoices=quantize_money(results["outstanding"]),
            total_payables=quantize_money(results["payables"]),
            cash_balance=quantize_money(cash),
            account_balances=balances,
            profit_margin=profit_margin(revenue, net_profit),
            income_expense_trend=results["trend"],
            expense_breakdown=results["breakdown"],
            sales_by_payment_type=sales.sales_by_payment_type,
            top_selling_products=sales.top_selling_products,
            recent_sales=sales.recent_sales,
            stock_overview=stock.items,
            activity_feed=results["activity"],
            performance_comparison=comparison,
            smart_insight=generate_smart_insight(comparison.profit_change_percent, top_product),
            timestamp=now or datetime.now(UTC),
        )
