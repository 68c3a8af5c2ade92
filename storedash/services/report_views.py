"""Real-time builders for the multi-tab reports page.

Each tab shares the same range/currency scoped reads and shapes them into
``ReportView`` (KPIs, chart series, ranked tables). Unknown tabs are not an
error: they come back flagged ``not_implemented``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from decimal import Decimal
from typing import Any

from storedash.config import settings
from storedash.logger import async_log_timing, get_logger
from storedash.models import SettlementStatus
from storedash.schemas import Kpi, KpiFormat, ReportView
from storedash.services.aggregation import ZERO, QueryExecutor, fan_out, quantize_money, soft, to_decimal
from storedash.services.periods import ReportWindow
from storedash.services.query import Collection, DocumentStore, QuerySpec, query
from storedash.services.trends import (
    UNCATEGORIZED,
    bucket_by_day,
    build_daily_trend,
    ledger_query,
    normalize_payment_method,
    sales_query,
    sum_by,
    top_n,
)

logger = get_logger(__name__)

WALK_IN = "Walk-in"
DEFAULT_PRODUCT_LOW_STOCK = 5
STOCK_VALUATION_LIMIT = 50


def _kpi(title: str, value: Any, fmt: KpiFormat) -> Kpi:
    if isinstance(value, Decimal):
        value = quantize_money(value)
    return Kpi(title=title, value=value, format=fmt)


def _money_rows(rows: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {key: quantize_money(value) if isinstance(value, Decimal) else value for key, value in row.items()}
        for row in rows
    ]


def _named_values(totals: dict[str, Decimal], limit: int | None = None) -> list[dict[str, Any]]:
    rows = [{"name": name, "value": value} for name, value in totals.items()]
    if limit is not None:
        rows = top_n(rows, "value", limit)
    return _money_rows(rows)


def _count_and_total(
    rows: Iterable[dict[str, Any]],
    *,
    key_field: str,
    amount_field: str,
    default_key: str = "Unknown",
) -> dict[str, dict[str, Any]]:
    stats: dict[str, dict[str, Any]] = {}
    for row in rows:
        name = str(row.get(key_field) or default_key)
        entry = stats.setdefault(name, {"name": name, "count": 0, "total": ZERO})
        entry["count"] += 1
        entry["total"] += to_decimal(row.get(amount_field))
    return stats


class ReportViewBuilder:
    """Dispatches a tab name to its pipeline."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def build(self, view: str, store_id: str, currency: str, window: ReportWindow) -> ReportView:
        pipeline = self._pipelines().get(view)
        if pipeline is None:
            logger.info("Report view not implemented", view=view, store_id=store_id)
            return ReportView(not_implemented=True, view=view)

        executor = QueryExecutor(self.store)
        async with async_log_timing("report_view", logger=logger, view=view, store_id=store_id, currency=currency):
            report = await pipeline(executor, store_id, currency, window)
        executor.ensure_available()
        if executor.failures:
            logger.warning(
                "Report view served with degraded fields",
                view=view,
                store_id=store_id,
                failed_reads=len(executor.failures),
            )
        return report

    def supports(self, view: str) -> bool:
        return view in self._pipelines()

    def _pipelines(
        self,
    ) -> dict[str, Callable[[QueryExecutor, str, str, ReportWindow], Awaitable[ReportView]]]:
        return {
            "sales": self._sales,
            "finance": self._finance,
            "inventory": self._inventory,
            "purchases": self._purchases,
            "debts": self._debts,
            "customers": self._customers,
            "hr": self._hr,
        }

    @staticmethod
    async def _load(executor: QueryExecutor, **specs: QuerySpec) -> dict[str, list[dict[str, Any]]]:
        async def rows(spec: QuerySpec) -> list[dict[str, Any]]:
            return (await executor.fetch(spec)).unwrap_or([])

        return await fan_out(
            {name: soft(rows(spec), []) for name, spec in specs.items()},
            timeout=settings.aggregation_timeout_seconds,
        )

    async def _sales(self, executor: QueryExecutor, store_id: str, currency: str, window: ReportWindow) -> ReportView:
        data = await self._load(
            executor,
            sales=sales_query(store_id, currency, window),
            products=query(Collection.PRODUCTS, store_id, label="products.all"),
            refunds=ledger_query(Collection.REFUNDS, store_id, currency, window),
        )
        sales, products = data["sales"], data["products"]

        category_of: dict[str, str] = {}
        for product in products:
            category = product.get("category") or UNCATEGORIZED
            category_of[str(product.get("id"))] = category
            if product.get("name"):
                category_of[product["name"]] = category

        total_sales = ZERO
        payments: dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_product: dict[str, dict[str, Any]] = {}
        by_category: dict[str, dict[str, Any]] = {}
        for sale in sales:
            amount = to_decimal(sale.get("total_amount"))
            total_sales += amount
            lines = sale.get("payment_lines") or [{"method": "UNKNOWN", "value_in_invoice_currency": amount}]
            for line in lines:
                payments[normalize_payment_method(line.get("method"))] += to_decimal(
                    line.get("value_in_invoice_currency")
                )
            for item in sale.get("items") or []:
                name = item.get("product_name") or "Unknown"
                category = category_of.get(str(item.get("product_id")), category_of.get(name, UNCATEGORIZED))
                units = to_decimal(item.get("quantity"))
                revenue = units * to_decimal(item.get("price_per_unit"))
                for bucket, key in ((by_product, name), (by_category, category)):
                    entry = bucket.setdefault(key, {"name": key, "units": ZERO, "revenue": ZERO})
                    entry["units"] += units
                    entry["revenue"] += revenue

        total_refunds = sum((to_decimal(r.get("amount")) for r in data["refunds"]), ZERO)
        customers = _count_and_total(sales, key_field="customer_name", amount_field="total_amount", default_key=WALK_IN)
        count = len(sales)
        limit = settings.report_table_limit

        return ReportView(
            kpis=[
                _kpi("Total Sales", total_sales, KpiFormat.CURRENCY),
                _kpi("Net Sales (Sales - Refunds)", total_sales - total_refunds, KpiFormat.CURRENCY),
                _kpi("Transactions", count, KpiFormat.NUMBER),
                _kpi("Avg. Sale Value", total_sales / count if count else ZERO, KpiFormat.CURRENCY),
            ],
            charts={
                "salesTrend": _money_rows(
                    build_daily_trend(window, {"amount": bucket_by_day(sales, window, amount_field="total_amount")})
                ),
                "paymentMethods": _named_values(payments),
            },
            tables={
                "topProducts": _money_rows(top_n(list(by_product.values()), "revenue", limit)),
                "salesByCategory": _money_rows(top_n(list(by_category.values()), "revenue", limit)),
                "salesByCustomer": _money_rows(top_n(list(customers.values()), "total", limit)),
            },
        )

    async def _finance(self, executor: QueryExecutor, store_id: str, currency: str, window: ReportWindow) -> ReportView:
        data = await self._load(
            executor,
            incomes=ledger_query(Collection.INCOMES, store_id, currency, window),
            expenses=ledger_query(Collection.EXPENSES, store_id, currency, window),
        )
        incomes, expenses = data["incomes"], data["expenses"]
        total_income = sum((to_decimal(row.get("amount")) for row in incomes), ZERO)
        total_expenses = sum((to_decimal(row.get("amount")) for row in expenses), ZERO)
        net_profit = total_income - total_expenses

        trend = build_daily_trend(
            window,
            {
                "income": bucket_by_day(incomes, window, amount_field="amount"),
                "expense": bucket_by_day(expenses, window, amount_field="amount"),
            },
        )
        return ReportView(
            kpis=[
                _kpi("Total Income", total_income, KpiFormat.CURRENCY),
                _kpi("Total Expenses", total_expenses, KpiFormat.CURRENCY),
                _kpi("Net Profit", net_profit, KpiFormat.CURRENCY),
            ],
            charts={"incomeExpenseTrend": _money_rows(trend)},
            tables={
                "profitAndLoss": _money_rows(
                    [
                        {"item": "Total Income", "amount": total_income, "isBold": False},
                        {"item": "Total Expenses", "amount": -total_expenses, "isBold": False},
                        {"item": "Net Profit", "amount": net_profit, "isBold": True},
                    ]
                ),
                "expenseBreakdown": _named_values(
                    sum_by(expenses, key_field="category", amount_field="amount"), settings.report_table_limit
                ),
            },
        )

    async def _inventory(
        self, executor: QueryExecutor, store_id: str, currency: str, window: ReportWindow
    ) -> ReportView:
        data = await self._load(
            executor,
            products=query(Collection.PRODUCTS, store_id, label="products.all"),
            sales=query(Collection.SALES, store_id, label="sales.units").between("created_at", window.start, window.end),
        )
        products = data["products"]

        units_sold: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for sale in data["sales"]:
            for item in sale.get("items") or []:
                units_sold[item.get("product_name") or "Unknown"] += to_decimal(item.get("quantity"))

        total_value = ZERO
        low_stock: list[dict[str, Any]] = []
        out_of_stock = 0
        movement: list[dict[str, Any]] = []
        valuation: list[dict[str, Any]] = []
        value_by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for product in products:
            name = product.get("name") or "Unnamed Product"
            qty = to_decimal(product.get("quantity"))
            cost = to_decimal((product.get("cost_prices") or {}).get(currency))
            value = qty * cost
            threshold = product.get("low_stock_threshold")
            if threshold is None:
                threshold = DEFAULT_PRODUCT_LOW_STOCK
            total_value += value
            value_by_category[product.get("category") or UNCATEGORIZED] += value
            if qty <= 0:
                out_of_stock += 1
            elif qty <= threshold:
                low_stock.append({"name": name, "qty": qty, "threshold": threshold})
            movement.append({"name": name, "unitsSold": units_sold.get(name, ZERO), "qty": qty})
            valuation.append({"name": name, "qty": qty, "cost": cost, "value": value})

        limit = settings.report_table_limit
        return ReportView(
            kpis=[
                _kpi("Total Products", len(products), KpiFormat.NUMBER),
                _kpi(f"Total Stock Value ({currency})", total_value, KpiFormat.CURRENCY),
                _kpi("Low Stock Items", len(low_stock), KpiFormat.NUMBER),
                _kpi("Out of Stock Items", out_of_stock, KpiFormat.NUMBER),
            ],
            charts={"stockValueByCategory": _named_values(value_by_category, limit)},
            tables={
                "fastMoving": _money_rows(top_n(movement, "unitsSold", limit)),
                "slowMoving": _money_rows(top_n(movement, "unitsSold", limit, descending=False)),
                "lowStock": _money_rows(low_stock),
                "stockValuation": _money_rows(top_n(valuation, "value", STOCK_VALUATION_LIMIT)),
            },
        )

    async def _purchases(
        self, executor: QueryExecutor, store_id: str, currency: str, window: ReportWindow
    ) -> ReportView:
        data = await self._load(
            executor,
            purchases=query(Collection.PURCHASES, store_id, label="purchases.range")
            .where(currency=currency)
            .between("purchase_date", window.start, window.end),
        )
        purchases = data["purchases"]
        total = sum((to_decimal(row.get("total_amount")) for row in purchases), ZERO)
        pending = sum(
            (
                to_decimal(row.get("remaining_amount"))
                for row in purchases
                if row.get("status") != SettlementStatus.PAID.value
            ),
            ZERO,
        )
        suppliers = _count_and_total(purchases, key_field="supplier_name", amount_field="total_amount")
        trend = build_daily_trend(
            window,
            {"amount": bucket_by_day(purchases, window, amount_field="total_amount", time_field="purchase_date")},
        )
        return ReportView(
            kpis=[
                _kpi("Total Purchases", total, KpiFormat.CURRENCY),
                _kpi("Pending Payables", pending, KpiFormat.CURRENCY),
                _kpi("Total Orders", len(purchases), KpiFormat.NUMBER),
            ],
            charts={"purchaseTrend": _money_rows(trend)},
            tables={"topSuppliers": _money_rows(top_n(list(suppliers.values()), "total", settings.report_table_limit))},
        )

    async def _debts(self, executor: QueryExecutor, store_id: str, currency: str, window: ReportWindow) -> ReportView:
        data = await self._load(executor, debts=ledger_query(Collection.DEBTS, store_id, currency, window))
        outstanding = ZERO
        collected = ZERO
        debtors: dict[str, dict[str, Any]] = {}
        for debt in data["debts"]:
            due = to_decimal(debt.get("amount_due"))
            outstanding += due
            collected += to_decimal(debt.get("total_paid"))
            if due > 0:
                name = debt.get("customer_name") or "Unknown"
                entry = debtors.setdefault(name, {"name": name, "count": 0, "total": ZERO})
                entry["count"] += 1
                entry["total"] += due

        return ReportView(
            kpis=[
                _kpi("Total Outstanding Debts", outstanding, KpiFormat.CURRENCY),
                _kpi("Total Collected", collected, KpiFormat.CURRENCY),
                _kpi("Total Debtors", len(debtors), KpiFormat.NUMBER),
            ],
            charts={
                "debtStatus": _money_rows(
                    [{"name": "Collected", "value": collected}, {"name": "Outstanding", "value": outstanding}]
                )
            },
            tables={"topDebtors": _money_rows(top_n(list(debtors.values()), "total", settings.report_table_limit))},
        )

    async def _customers(
        self, executor: QueryExecutor, store_id: str, currency: str, window: ReportWindow
    ) -> ReportView:
        results = await fan_out(
            {
                "customers": soft(
                    self._count(executor, query(Collection.CUSTOMERS, store_id, label="customers.count")), 0
                ),
                "data": soft(
                    self._load(
                        executor,
                        sales=sales_query(store_id, currency, window),
                        suppliers=query(Collection.SUPPLIERS, store_id, label="suppliers.all"),
                    ),
                    {"sales": [], "suppliers": []},
                ),
            },
            timeout=settings.aggregation_timeout_seconds,
        )
        sales, suppliers = results["data"]["sales"], results["data"]["suppliers"]

        stats: dict[str, dict[str, Any]] = {}
        for sale in sales:
            name = sale.get("customer_name") or WALK_IN
            if name == WALK_IN:
                continue
            entry = stats.setdefault(name, {"name": name, "count": 0, "total": ZERO, "avg": ZERO, "lastPurchase": None})
            entry["count"] += 1
            entry["total"] += to_decimal(sale.get("total_amount"))
            stamp = sale.get("created_at")
            if isinstance(stamp, datetime) and (entry["lastPurchase"] is None or stamp > entry["lastPurchase"]):
                entry["lastPurchase"] = stamp
        for entry in stats.values():
            entry["avg"] = entry["total"] / entry["count"]

        limit = settings.report_table_limit
        top_suppliers = [
            {
                "name": supplier.get("name"),
                "total": to_decimal(supplier.get("total_spent")),
                "owed": to_decimal(supplier.get("total_owed")),
            }
            for supplier in suppliers
        ]
        return ReportView(
            kpis=[
                _kpi("Total Customers", results["customers"], KpiFormat.NUMBER),
                _kpi("Total Suppliers", len(suppliers), KpiFormat.NUMBER),
            ],
            charts={},
            tables={
                "topCustomers": _money_rows(top_n(list(stats.values()), "total", limit)),
                "topSuppliers": _money_rows(top_n(top_suppliers, "total", limit)),
            },
        )

    async def _hr(self, executor: QueryExecutor, store_id: str, currency: str, window: ReportWindow) -> ReportView:
        results = await fan_out(
            {
                "staff": soft(self._count(executor, query(Collection.USERS, store_id, label="users.count")), 0),
                "data": soft(
                    self._load(
                        executor,
                        incomes=ledger_query(Collection.INCOMES, store_id, currency, window),
                        expenses=ledger_query(Collection.EXPENSES, store_id, currency, window),
                    ),
                    {"incomes": [], "expenses": []},
                ),
            },
            timeout=settings.aggregation_timeout_seconds,
        )
        data = results["data"]
        limit = settings.report_table_limit
        incomes = _count_and_total(data["incomes"], key_field="user_name", amount_field="amount")
        expenses = _count_and_total(data["expenses"], key_field="user_name", amount_field="amount")
        return ReportView(
            kpis=[_kpi("Total Staff", results["staff"], KpiFormat.NUMBER)],
            charts={},
            tables={
                "staffIncomes": _money_rows(top_n(list(incomes.values()), "total", limit)),
                "staffExpenses": _money_rows(top_n(list(expenses.values()), "total", limit)),
            },
        )

    @staticmethod
    async def _count(executor: QueryExecutor, spec: QuerySpec) -> int:
        return (await executor.count(spec)).unwrap_or(0)
