"""Income and expense ledger entries."""

from decimal import Decimal

from sqlalchemy import DECIMAL, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from storedash.database import Base
from storedash.models.base import CreatedAtMixin, StoreOwnedMixin, UUIDMixin


class _LedgerColumns(UUIDMixin, StoreOwnedMixin, CreatedAtMixin):
    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False, default=Decimal("0"))
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Income(Base, _LedgerColumns):
    """Money in. Sale proceeds are mirrored here by the checkout writer."""

    __tablename__ = "incomes"
    __table_args__ = (Index("idx_incomes_store_currency_method", "store_id", "currency", "payment_method"),)


class Expense(Base, _LedgerColumns):
    """Money out."""

    __tablename__ = "expenses"
    __table_args__ = (Index("idx_expenses_store_currency_method", "store_id", "currency", "payment_method"),)
