"""Customer debts and supplier purchases (receivables and payables)."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DECIMAL, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from storedash.database import Base
from storedash.models.base import CreatedAtMixin, StoreOwnedMixin, UUIDMixin


class SettlementStatus(str, Enum):
    """Payment state shared by debts and purchases."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class Debt(Base, UUIDMixin, StoreOwnedMixin, CreatedAtMixin):
    """Balance a customer owes the store."""

    __tablename__ = "debts"

    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    amount_due: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False, default=Decimal("0"))
    total_paid: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=SettlementStatus.UNPAID.value)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Purchase(Base, UUIDMixin, StoreOwnedMixin):
    """Stock bought from a supplier; ``remaining_amount`` is still owed."""

    __tablename__ = "purchases"

    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False, default=Decimal("0"))
    remaining_amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=SettlementStatus.UNPAID.value)
    supplier_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    purchase_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), index=True
    )
