"""Pydantic schemas for the dashboard endpoint."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field

from storedash.schemas.base import CamelModel


class TrendPoint(CamelModel):
    """One calendar day of income and expense."""

    date: date
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


class NamedValue(CamelModel):
    name: str
    value: Decimal = Decimal("0")


class TopProduct(CamelModel):
    product_id: str | None = None
    name: str
    units_sold: Decimal = Decimal("0")
    revenue: Decimal = Decimal("0")


class RecentSale(CamelModel):
    id: str
    customer_name: str
    total_amount: Decimal
    status: str
    created_at: datetime


class StockItem(CamelModel):
    id: str
    name: str
    quantity: Decimal


class ActivityItem(CamelModel):
    id: str
    description: str
    user_name: str
    timestamp: datetime


class AccountBalance(CamelModel):
    """All-time income minus expense for one payment method."""

    method: str
    balance: Decimal = Decimal("0")


class PerformanceComparison(CamelModel):
    sales_change_percent: float = 0.0
    profit_change_percent: float = 0.0


class DashboardSummary(CamelModel):
    """Everything the dashboard renders for one store, currency and window."""

    currency: str | None = None
    start_date: date | None = None
    end_date: date | None = None

    todays_sales: Decimal = Decimal("0")
    total_incomes: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")
    total_sales_count: int = 0
    new_debts_amount: Decimal = Decimal("0")
    low_stock_count: int = 0
    total_products: int = 0

    outstanding_invoices: Decimal = Decimal("0")
    total_payables: Decimal = Decimal("0")
    cash_balance: Decimal = Decimal("0")
    account_balances: list[AccountBalance] = []
    profit_margin: float = 0.0

    income_expense_trend: list[TrendPoint] = []
    expense_breakdown: list[NamedValue] = []
    sales_by_payment_type: list[NamedValue] = []
    top_selling_products: list[TopProduct] = []
    recent_sales: list[RecentSale] = []
    stock_overview: list[StockItem] = []
    activity_feed: list[ActivityItem] = []
    performance_comparison: PerformanceComparison = Field(default_factory=PerformanceComparison)
    smart_insight: str = ""
    timestamp: datetime | None = None
