"""Pre-computed report snapshots written by the scheduled cache job."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from storedash.database import Base


class CachedReport(Base):
    """
    Point-in-time report snapshot for one store.

    ``payload`` is shaped ``{view: {currency: slice}}`` and is only valid
    for the default reporting window (start of month through today).
    """

    __tablename__ = "report_cache"

    store_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
