"""Day-bucketed series and category breakdowns built from raw records."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from storedash.config import settings
from storedash.schemas import NamedValue, RecentSale, TopProduct, TrendPoint
from storedash.services.aggregation import ZERO, QueryExecutor, to_decimal
from storedash.services.periods import ReportWindow, local_day
from storedash.services.query import Collection, QuerySpec, query

UNCATEGORIZED = "Uncategorized"


def normalize_payment_method(method: Any) -> str:
    """Display grouping key: ``evc_plus`` -> ``EVC PLUS``."""
    if not method:
        return "OTHER"
    return str(method).upper().replace("_", " ")


def bucket_by_day(
    rows: Iterable[Mapping[str, Any]],
    window: ReportWindow,
    *,
    amount_field: str,
    time_field: str = "created_at",
) -> dict[date, Decimal]:
    """Sum ``amount_field`` per local calendar day."""
    buckets: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for row in rows:
        stamp = row.get(time_field)
        if not isinstance(stamp, datetime):
            continue
        buckets[local_day(stamp, window.tz)] += to_decimal(row.get(amount_field))
    return buckets


def build_daily_trend(window: ReportWindow, series: Mapping[str, Mapping[date, Decimal]]) -> list[dict[str, Any]]:
    """Dense daily rows: one per calendar day in the window, zeros included."""
    return [
        {"date": day, **{name: values.get(day, ZERO) for name, values in series.items()}}
        for day in window.iter_days()
    ]


def sum_by(
    rows: Iterable[Mapping[str, Any]],
    *,
    key_field: str,
    amount_field: str,
    default_key: str = UNCATEGORIZED,
) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for row in rows:
        key = row.get(key_field) or default_key
        totals[str(key)] += to_decimal(row.get(amount_field))
    return dict(totals)


def top_n(rows: Iterable[dict[str, Any]], sort_key: str, limit: int, *, descending: bool = True) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda row: row.get(sort_key, ZERO), reverse=descending)[:limit]


def ledger_query(collection: Collection, store_id: str, currency: str, window: ReportWindow) -> QuerySpec:
    return (
        query(collection, store_id, label=f"{collection.value}.range")
        .where(currency=currency)
        .between("created_at", window.start, window.end)
    )


def sales_query(store_id: str, currency: str, window: ReportWindow) -> QuerySpec:
    return (
        query(Collection.SALES, store_id, label="sales.range")
        .where(invoice_currency=currency)
        .between("created_at", window.start, window.end)
    )


@dataclass
class SalesBundle:
    """Everything the dashboard derives from one pass over in-range sales."""

    total_sales_count: int = 0
    recent_sales: list[RecentSale] = field(default_factory=list)
    top_selling_products: list[TopProduct] = field(default_factory=list)
    sales_by_payment_type: list[NamedValue] = field(default_factory=list)


def summarize_sales(rows: list[dict[str, Any]]) -> SalesBundle:
    products: dict[str, dict[str, Any]] = {}
    payments: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for sale in rows:
        for line in sale.get("payment_lines") or []:
            method = normalize_payment_method(line.get("method"))
            payments[method] += to_decimal(line.get("value_in_invoice_currency"))
        for item in sale.get("items") or []:
            product_id = str(item.get("product_id") or "unknown")
            entry = products.setdefault(
                product_id,
                {
                    "product_id": product_id,
                    "name": item.get("product_name") or "Unknown Product",
                    "units_sold": ZERO,
                    "revenue": ZERO,
                },
            )
            quantity = to_decimal(item.get("quantity"))
            entry["units_sold"] += quantity
            entry["revenue"] += quantity * to_decimal(item.get("price_per_unit"))

    dated = [sale for sale in rows if isinstance(sale.get("created_at"), datetime)]
    dated.sort(key=lambda sale: sale["created_at"], reverse=True)
    recent = [
        RecentSale(
            id=str(sale.get("id")),
            customer_name=sale.get("customer_name") or "Walk-in",
            total_amount=to_decimal(sale.get("total_amount")),
            status=sale.get("payment_status") or "paid",
            created_at=sale["created_at"],
        )
        for sale in dated[: settings.recent_sales_limit]
    ]

    top = top_n(list(products.values()), "revenue", settings.top_products_limit)
    return SalesBundle(
        total_sales_count=len(rows),
        recent_sales=recent,
        top_selling_products=[TopProduct(**entry) for entry in top],
        sales_by_payment_type=[NamedValue(name=name, value=value) for name, value in payments.items()],
    )


class TrendBuilder:
    """Loads in-range records and shapes them into chart series."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def income_expense_trend(self, store_id: str, currency: str, window: ReportWindow) -> list[TrendPoint]:
        incomes, expenses = await asyncio.gather(
            self.executor.fetch(ledger_query(Collection.INCOMES, store_id, currency, window)),
            self.executor.fetch(ledger_query(Collection.EXPENSES, store_id, currency, window)),
        )
        rows = build_daily_trend(
            window,
            {
                "income": bucket_by_day(incomes.unwrap_or([]), window, amount_field="amount"),
                "expense": bucket_by_day(expenses.unwrap_or([]), window, amount_field="amount"),
            },
        )
        return [TrendPoint(**row) for row in rows]

    async def expense_breakdown(self, store_id: str, currency: str, window: ReportWindow) -> list[NamedValue]:
        rows = await self.executor.fetch(ledger_query(Collection.EXPENSES, store_id, currency, window))
        totals = sum_by(rows.unwrap_or([]), key_field="category", amount_field="amount")
        return [NamedValue(name=name, value=value) for name, value in totals.items()]

    async def sales_data(self, store_id: str, currency: str, window: ReportWindow) -> SalesBundle:
        rows = await self.executor.fetch(sales_query(store_id, currency, window))
        return summarize_sales(rows.unwrap_or([]))


def empty_trend(window: ReportWindow) -> list[TrendPoint]:
    """Zero-valued dense series, used when the trend could not be computed."""
    return [TrendPoint(**row) for row in build_daily_trend(window, {"income": {}, "expense": {}})]
