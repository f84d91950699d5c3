"""SQLAlchemy models."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, TIMESTAMP, String
from sqlalchemy.orm import Mapped, mapped_column

from synapse_legal.core.database import Base


class KeyValueEntry(Base):
    """One namespaced record of the key-value store."""

    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
