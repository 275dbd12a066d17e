"""Group ORM - a small circle answering the weekly prompt together.

Invariants:
    - 2 <= min_members <= max_members <= 6 (CHECK, mirrored in core/enforce_roster.py)
    - creator_id is immutable; the creator always has an admin membership row
    - member count is derived from group_members, never stored

Design Decisions:
    - members is write-only from the ORM side (lazy="raise"): the creator
      membership rides along with the group insert; every read and delete
      goes through explicit queries in services/group_roster.py
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memoria.db.base import Base


class Group(Base):
    """Group aggregate root - owns its memberships and responses."""
    __tablename__ = "groups"
    __table_args__ = (
        CheckConstraint(
            "min_members >= 2 AND min_members <= max_members AND max_members <= 6",
            name="ck_group_member_bounds",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    visibility: Mapped[str] = mapped_column(
        String(20), nullable=False, default="public",
    )
    min_members: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    max_members: Mapped[int] = mapped_column(Integer, nullable=False, default=6)
    creator_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    members: Mapped[list["GroupMember"]] = relationship(
        "GroupMember", back_populates="group",
        cascade="save-update, merge", lazy="raise",
    )
