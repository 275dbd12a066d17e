"""Chat State - two-party thread rules, read watermarks and unread counts.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - A chat has exactly two distinct participants (slot "a" and slot "b")
    - A reader only ever moves their own watermark
    - unread = messages from the other party created strictly after the
      viewer's watermark; a missing watermark counts every such message
    - Threads sort by max(last message, chat creation) descending
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Literal

from memoria.core.errors import (
    MemoriaError, SelfReferenceError, UnauthorizedError,
)
from memoria.core.repository_protocols import ChatLike, MessageLike
from memoria.core.timestamps import as_utc, latest

Slot = Literal["a", "b"]


def check_distinct_participants(user_a: str, user_b: str) -> MemoriaError | None:
    if user_a == user_b:
        return SelfReferenceError("Cannot start a chat with yourself")
    return None


def participant_slot(chat: ChatLike, user_id: str) -> Slot | None:
    if chat.participant_a == user_id:
        return "a"
    if chat.participant_b == user_id:
        return "b"
    return None


def check_participant(chat: ChatLike, user_id: str) -> MemoriaError | None:
    if participant_slot(chat, user_id) is None:
        return UnauthorizedError("Not a participant in this chat")
    return None


def watermark_column(slot: Slot) -> str:
    return "last_read_a" if slot == "a" else "last_read_b"


def watermark_for(chat: ChatLike, viewer_id: str) -> datetime | None:
    slot = participant_slot(chat, viewer_id)
    if slot is None:
        return None
    return getattr(chat, watermark_column(slot))


def count_unread(
    messages: Iterable[MessageLike], viewer_id: str, watermark: datetime | None,
) -> int:
    mark = as_utc(watermark) if watermark is not None else None
    return sum(
        1 for m in messages
        if m.sender_id != viewer_id
        and (mark is None or as_utc(m.created_at) > mark)
    )


def unread_count(chat: ChatLike, messages: Iterable[MessageLike], viewer_id: str) -> int:
    return count_unread(messages, viewer_id, watermark_for(chat, viewer_id))


@dataclass(frozen=True)
class ThreadSummary:
    """One entry of a user's inbox."""
    chat: Any
    other_participant_id: str
    last_message: Any | None
    unread_count: int

    @property
    def activity_at(self) -> datetime:
        last = self.last_message.created_at if self.last_message is not None else None
        return latest(last, self.chat.created_at)


def sort_threads(threads: Iterable[ThreadSummary]) -> list[ThreadSummary]:
    return sorted(threads, key=lambda t: t.activity_at, reverse=True)
