"""Connection ORM - a directed friend request between two users.

Invariants:
    - requester_id != recipient_id (CHECK)
    - (pair_low, pair_high) is the sorted pair and is UNIQUE: at most one
      Connection per unordered pair, enforced atomically with the insert
    - status: pending -> accepted | rejected, transitioned by compare-and-swap
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from memoria.db.base import Base


class Connection(Base):
    """Friend-request record."""
    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("pair_low", "pair_high", name="uq_connection_pair"),
        CheckConstraint("requester_id <> recipient_id", name="ck_connection_not_self"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    requester_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False, index=True,
    )
    recipient_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False, index=True,
    )
    pair_low: Mapped[str] = mapped_column(String(64), nullable=False)
    pair_high: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
