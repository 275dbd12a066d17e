"""Chat State - tests for participant slots, watermarks and unread counts.

Tests cover:
    - participant slot lookup and non-participant rejection
    - unread counts only the other party's messages after the watermark
    - missing watermark counts every message from the other party
    - unread is zero right after reading and grows with new messages
    - threads sort by latest activity, falling back to chat creation
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from memoria.core.chat_state import (
    ThreadSummary, check_distinct_participants, check_participant,
    count_unread, participant_slot, sort_threads, unread_count, watermark_column,
)
from memoria.core.errors import SelfReferenceError, UnauthorizedError

T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


@dataclass
class FakeChat:
    participant_a: str = "alice"
    participant_b: str = "bob"
    created_at: datetime = T0
    last_read_a: datetime | None = None
    last_read_b: datetime | None = None
    id: UUID = field(default_factory=uuid4)


@dataclass
class FakeMessage:
    sender_id: str
    created_at: datetime


def _at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def test_distinct_participants():
    assert check_distinct_participants("a", "b") is None
    assert isinstance(check_distinct_participants("a", "a"), SelfReferenceError)


def test_participant_slots():
    chat = FakeChat()
    assert participant_slot(chat, "alice") == "a"
    assert participant_slot(chat, "bob") == "b"
    assert participant_slot(chat, "carol") is None
    assert watermark_column("a") == "last_read_a"
    assert watermark_column("b") == "last_read_b"


def test_non_participant_is_unauthorized():
    assert isinstance(check_participant(FakeChat(), "carol"), UnauthorizedError)
    assert check_participant(FakeChat(), "bob") is None


def test_missing_watermark_counts_all_from_other_party():
    messages = [FakeMessage("bob", _at(1)), FakeMessage("alice", _at(2)), FakeMessage("bob", _at(3))]
    assert count_unread(messages, "alice", None) == 2


def test_only_messages_strictly_after_watermark_count():
    messages = [FakeMessage("bob", _at(1)), FakeMessage("bob", _at(5)), FakeMessage("bob", _at(9))]
    assert count_unread(messages, "alice", _at(5)) == 1


def test_own_messages_never_unread():
    messages = [FakeMessage("alice", _at(m)) for m in range(5)]
    assert count_unread(messages, "alice", None) == 0


def test_unread_zero_after_read_then_non_decreasing():
    chat = FakeChat()
    messages = [FakeMessage("bob", _at(1)), FakeMessage("bob", _at(2))]
    chat.last_read_a = _at(2)
    assert unread_count(chat, messages, "alice") == 0

    previous = 0
    for minute in range(3, 8):
        messages.append(FakeMessage("bob", _at(minute)))
        current = unread_count(chat, messages, "alice")
        assert current >= previous
        previous = current
    assert previous == 5


def test_each_participant_uses_own_watermark():
    chat = FakeChat(last_read_a=_at(10), last_read_b=None)
    messages = [FakeMessage("alice", _at(1)), FakeMessage("bob", _at(2))]
    assert unread_count(chat, messages, "alice") == 0
    assert unread_count(chat, messages, "bob") == 1


def test_sort_threads_by_latest_activity():
    quiet = ThreadSummary(FakeChat(created_at=_at(30)), "carol", None, 0)
    busy = ThreadSummary(FakeChat(created_at=_at(0)), "bob", FakeMessage("bob", _at(60)), 1)
    old = ThreadSummary(FakeChat(created_at=_at(0)), "dave", FakeMessage("dave", _at(5)), 0)
    ordered = sort_threads([old, quiet, busy])
    assert [t.other_participant_id for t in ordered] == ["bob", "carol", "dave"]
