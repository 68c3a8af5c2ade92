"""Sale and refund records written by the checkout flow."""

from decimal import Decimal
from typing import Any

from sqlalchemy import DECIMAL, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from storedash.database import Base
from storedash.models.base import CreatedAtMixin, StoreOwnedMixin, UUIDMixin


class Sale(Base, UUIDMixin, StoreOwnedMixin, CreatedAtMixin):
    """A completed sale.

    Sales are denominated in ``invoice_currency``; the ledger tables use a
    plain ``currency`` column instead.
    """

    __tablename__ = "sales"
    __table_args__ = (Index("idx_sales_store_currency_created", "store_id", "invoice_currency", "created_at"),)

    invoice_currency: Mapped[str] = mapped_column(String(10), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False, default=Decimal("0"))
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    # [{product_id, product_name, quantity, price_per_unit}]
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    # [{method, value_in_invoice_currency}]
    payment_lines: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)


class Refund(Base, UUIDMixin, StoreOwnedMixin, CreatedAtMixin):
    """Money returned against earlier sales."""

    __tablename__ = "refunds"

    currency: Mapped[str] = mapped_column(String(10), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False, default=Decimal("0"))
