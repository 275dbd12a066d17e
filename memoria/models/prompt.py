"""Prompt ORM - the weekly question, shared by every group.

Invariants:
    - active when now >= active_at and it is the most recent such prompt
    - revealed when now >= reveal_at; reveal_at >= active_at
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from memoria.db.base import Base


class Prompt(Base):
    __tablename__ = "prompts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True,
    )
    reveal_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
