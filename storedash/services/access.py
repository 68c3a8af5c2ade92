"""Role-based redaction of financially sensitive dashboard fields."""

from decimal import Decimal

from storedash.schemas import DashboardSummary, PerformanceComparison
from storedash.services.comparison import NEUTRAL_INSIGHT

FINANCIAL_ROLES = frozenset({"admin", "manager"})


def can_view_financials(role: str | None) -> bool:
    return (role or "").lower() in FINANCIAL_ROLES


def redact(summary: DashboardSummary, role: str | None) -> DashboardSummary:
    """Return ``summary`` as ``role`` may see it.

    Admins and managers get the summary untouched. Everyone else gets a copy
    with the same shape where money-related fields are zeroed or emptied;
    operational fields (sales count, stock, recent sales, activity) stay.
    """
    if can_view_financials(role):
        return summary

    zero = Decimal("0")
    return summary.model_copy(
        update={
            "total_incomes": zero,
            "total_expenses": zero,
            "net_profit": zero,
            "expense_breakdown": [],
            "performance_comparison": PerformanceComparison(),
            "smart_insight": NEUTRAL_INSIGHT,
            "outstanding_invoices": zero,
            "total_payables": zero,
            "cash_balance": zero,
            "account_balances": [
                balance.model_copy(update={"balance": zero}) for balance in summary.account_balances
            ],
            "profit_margin": 0.0,
        }
    )
