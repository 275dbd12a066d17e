"""Chat ORM - a two-party direct-message thread.

Invariants:
    - (pair_low, pair_high) UNIQUE: one chat per unordered participant pair
    - participant_a is whoever opened the chat; last_read_a/last_read_b are
      the per-participant read watermarks
    - messages are append-only

Design Decisions:
    - Oriented columns kept next to the canonical pair: watermark slots stay
      stable no matter which participant looks the chat up
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from memoria.db.base import Base


class Chat(Base):
    __tablename__ = "chats"
    __table_args__ = (
        UniqueConstraint("pair_low", "pair_high", name="uq_chat_pair"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    participant_a: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False, index=True,
    )
    participant_b: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False, index=True,
    )
    pair_low: Mapped[str] = mapped_column(String(64), nullable=False)
    pair_high: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_read_a: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    last_read_b: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
