"""Product catalogue with stock levels."""

from typing import Any

from sqlalchemy import Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from storedash.database import Base
from storedash.models.base import StoreOwnedMixin, UUIDMixin


class Product(Base, UUIDMixin, StoreOwnedMixin):
    """Stocked product with per-currency prices."""

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    cost_prices: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    sale_prices: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    low_stock_threshold: Mapped[int | None] = mapped_column(Integer, nullable=True)
