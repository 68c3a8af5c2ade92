"""SQLAlchemy models package."""

from storedash.models.credit import Debt, Purchase, SettlementStatus
from storedash.models.directory import ActivityLogEntry, Customer, Supplier
from storedash.models.inventory import Product
from storedash.models.ledger import Expense, Income
from storedash.models.report_cache import CachedReport
from storedash.models.sales import Refund, Sale
from storedash.models.user import User

__all__ = [
    "ActivityLogEntry",
    "CachedReport",
    "Customer",
    "Debt",
    "Expense",
    "Income",
    "Product",
    "Purchase",
    "Refund",
    "Sale",
    "SettlementStatus",
    "Supplier",
    "User",
]
