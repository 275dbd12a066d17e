"""User ORM - profile mirrored from the identity provider.

Invariants:
    - id is the provider's stable user id (string primary key)
    - handle is unique
    - friend count is NOT stored: derived from accepted connections

Design Decisions:
    - Rows are created on first authenticated request (ensure_user)
    - Account deletion cascades in services/user_directory.py, not via FK rules
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from memoria.db.base import Base


class User(Base):
    """A person using the app."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(120), nullable=False)
    handle: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True,
    )
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
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
