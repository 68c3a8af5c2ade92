"""Currency-scoped aggregates over the store's transactional records."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from storedash.config import settings
from storedash.models import SettlementStatus
from storedash.schemas import AccountBalance, ActivityItem, StockItem
from storedash.services.aggregation import ZERO, QueryExecutor, to_decimal
from storedash.services.query import Collection, query

STOCK_OVERVIEW_LIMIT = 5


@dataclass(frozen=True)
class StockSnapshot:
    low_stock_count: int = 0
    items: list[StockItem] = field(default_factory=list)


def _text(value: Any, default: str) -> str:
    if value is None or value == "":
        return default
    return str(value)


class Aggregators:
    """Scalar and list aggregates used by the dashboard and report tabs."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def sales_revenue(self, store_id: str, currency: str, start: datetime, end: datetime) -> Decimal:
        """Sum of sale totals. Sales carry their currency in ``invoice_currency``."""
        outcome = await self.executor.sum(
            Collection.SALES,
            "total_amount",
            store_id,
            currency,
            start,
            end,
            currency_field="invoice_currency",
        )
        return outcome.unwrap_or(ZERO)

    async def expense_total(self, store_id: str, currency: str, start: datetime, end: datetime) -> Decimal:
        outcome = await self.executor.sum(Collection.EXPENSES, "amount", store_id, currency, start, end)
        return outcome.unwrap_or(ZERO)

    async def debt_new_amount(self, store_id: str, currency: str, start: datetime, end: datetime) -> Decimal:
        outcome = await self.executor.sum(Collection.DEBTS, "amount_due", store_id, currency, start, end)
        return outcome.unwrap_or(ZERO)

    async def debt_outstanding(self, store_id: str, currency: str) -> Decimal:
        """Unpaid customer balances, all time."""
        spec = (
            query(Collection.DEBTS, store_id, label="debts.outstanding")
            .where(currency=currency)
            .excluding(status=SettlementStatus.PAID.value)
        )
        return (await self.executor.sum_field(spec, "amount_due")).unwrap_or(ZERO)

    async def payable_outstanding(self, store_id: str, currency: str) -> Decimal:
        """Amounts still owed to suppliers, all time."""
        spec = (
            query(Collection.PURCHASES, store_id, label="purchases.payable")
            .where(currency=currency)
            .excluding(status=SettlementStatus.PAID.value)
        )
        return (await self.executor.sum_field(spec, "remaining_amount")).unwrap_or(ZERO)

    async def running_account_balance(self, store_id: str, currency: str, method: str) -> Decimal:
        """All-time incomes minus expenses for one payment method.

        Sales are never read here: checkout mirrors sale proceeds into the
        income ledger, so adding them again would double count.
        """
        incomes, expenses = await asyncio.gather(
            self.executor.sum(Collection.INCOMES, "amount", store_id, currency, None, None, method=method),
            self.executor.sum(Collection.EXPENSES, "amount", store_id, currency, None, None, method=method),
        )
        return incomes.unwrap_or(ZERO) - expenses.unwrap_or(ZERO)

    async def account_balances(self, store_id: str, currency: str) -> list[AccountBalance]:
        """One running balance per payment method active for ``currency``."""
        methods = settings.payment_methods_for(currency)
        balances = await asyncio.gather(
            *(self.running_account_balance(store_id, currency, method) for method in methods)
        )
        return [AccountBalance(method=method, balance=balance) for method, balance in zip(methods, balances)]

    async def product_count(self, store_id: str) -> int:
        outcome = await self.executor.count(query(Collection.PRODUCTS, store_id, label="products.count"))
        return outcome.unwrap_or(0)

    async def stock_overview(self, store_id: str, threshold: int | None = None) -> StockSnapshot:
        """Products at or under ``threshold`` plus the lowest few by quantity."""
        limit = settings.low_stock_threshold if threshold is None else threshold
        low = query(Collection.PRODUCTS, store_id, label="products.low_stock").capped(quantity=limit)
        count, rows = await asyncio.gather(
            self.executor.count(low),
            self.executor.fetch(low.ordered("quantity", limit=STOCK_OVERVIEW_LIMIT)),
        )
        items = [
            StockItem(
                id=str(row.get("id")),
                name=_text(row.get("name"), "Unnamed Product"),
                quantity=to_decimal(row.get("quantity")),
            )
            for row in rows.unwrap_or([])
        ]
        return StockSnapshot(low_stock_count=count.unwrap_or(0), items=items)

    async def activity_feed(self, store_id: str) -> list[ActivityItem]:
        spec = query(Collection.ACTIVITY, store_id, label="activity_feed").ordered(
            "timestamp", descending=True, limit=settings.activity_feed_limit
        )
        rows = await self.executor.fetch(spec)
        return [
            ActivityItem(
                id=str(row.get("id")),
                description=_text(row.get("description"), ""),
                user_name=_text(row.get("user_name"), "System"),
                timestamp=row["timestamp"],
            )
            for row in rows.unwrap_or([])
            if row.get("timestamp") is not None
        ]
