"""Tests for role-based dashboard redaction."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from storedash.schemas import (
    AccountBalance,
    DashboardSummary,
    NamedValue,
    PerformanceComparison,
    RecentSale,
    StockItem,
)
from storedash.services.access import can_view_financials, redact
from storedash.services.comparison import NEUTRAL_INSIGHT


def _summary() -> DashboardSummary:
    return DashboardSummary(
        currency="USD",
        todays_sales=Decimal("12.00"),
        total_incomes=Decimal("500.00"),
        total_expenses=Decimal("200.00"),
        net_profit=Decimal("300.00"),
        total_sales_count=9,
        low_stock_count=2,
        outstanding_invoices=Decimal("40.00"),
        total_payables=Decimal("60.00"),
        cash_balance=Decimal("135.00"),
        account_balances=[AccountBalance(method="CASH", balance=Decimal("135.00"))],
        profit_margin=60.0,
        expense_breakdown=[NamedValue(name="Rent", value=Decimal("200.00"))],
        stock_overview=[StockItem(id="p1", name="Rice", quantity=Decimal("2"))],
        recent_sales=[
            RecentSale(
                id="s1",
                customer_name="Hodan",
                total_amount=Decimal("12.00"),
                status="paid",
                created_at=datetime(2024, 6, 1, 9, tzinfo=UTC),
            )
        ],
        performance_comparison=PerformanceComparison(sales_change_percent=12.0, profit_change_percent=30.0),
        smart_insight="Great job! Profit is up 30%. Keep pushing Rice!",
        timestamp=datetime(2024, 6, 1, tzinfo=UTC),
    )


@pytest.mark.parametrize("role", ["admin", "manager", "Admin"])
def test_financial_roles_see_everything(role):
    summary = _summary()
    assert can_view_financials(role)
    assert redact(summary, role) is summary


@pytest.mark.parametrize("role", ["user", "cashier", "", None])
def test_other_roles_get_redacted_copy(role):
    """
    GIVEN a dashboard with financial figures
    WHEN it is filtered for a non-financial role
    THEN money fields are zeroed while operational fields survive
    """
    summary = _summary()
    redacted = redact(summary, role)

    assert redacted is not summary
    assert redacted.total_incomes == Decimal("0")
    assert redacted.total_expenses == Decimal("0")
    assert redacted.net_profit == Decimal("0")
    assert redacted.cash_balance == Decimal("0")
    assert redacted.outstanding_invoices == Decimal("0")
    assert redacted.total_payables == Decimal("0")
    assert redacted.profit_margin == 0.0
    assert redacted.expense_breakdown == []
    assert redacted.performance_comparison == PerformanceComparison()
    assert redacted.smart_insight == NEUTRAL_INSIGHT
    assert [b.balance for b in redacted.account_balances] == [Decimal("0")]
    assert [b.method for b in redacted.account_balances] == ["CASH"]

    assert redacted.total_sales_count == 9
    assert redacted.low_stock_count == 2
    assert redacted.todays_sales == Decimal("12.00")
    assert redacted.stock_overview == summary.stock_overview
    assert redacted.recent_sales == summary.recent_sales
    assert redacted.recent_sales[0].total_amount == Decimal("12.00")


def test_redaction_does_not_mutate_input():
    summary = _summary()
    redact(summary, "user")
    assert summary.total_incomes == Decimal("500.00")
    assert summary.account_balances[0].balance == Decimal("135.00")


def test_redaction_is_idempotent():
    once = redact(_summary(), "user")
    twice = redact(once, "user")
    assert twice.model_dump() == once.model_dump()
