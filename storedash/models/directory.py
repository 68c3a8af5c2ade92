"""Customers, suppliers and the store activity feed."""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storedash.database import Base
from storedash.models.base import StoreOwnedMixin, UUIDMixin


class Customer(Base, UUIDMixin, StoreOwnedMixin):
    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)


class Supplier(Base, UUIDMixin, StoreOwnedMixin):
    """Supplier with running totals maintained by the purchases flow."""

    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    total_spent: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False, default=Decimal("0"))
    total_owed: Mapped[Decimal] = mapped_column(DECIMAL(18, 2), nullable=False, default=Decimal("0"))


class ActivityLogEntry(Base, UUIDMixin, StoreOwnedMixin):
    __tablename__ = "activity_feed"

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), index=True
    )
