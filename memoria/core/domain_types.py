"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - UserId wraps the identity provider's opaque string id
    - ConnectionId, GroupId, PromptId, ResponseId, ChatId, MessageId, NotificationId wrap UUIDs
    - All valid states encoded as Enums: no raw string matching
    - Group size bounds: MIN_GROUP_SIZE <= min_members <= max_members <= MAX_GROUP_SIZE

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
ConnectionId = NewType("ConnectionId", UUID)
GroupId = NewType("GroupId", UUID)
PromptId = NewType("PromptId", UUID)
ResponseId = NewType("ResponseId", UUID)
ChatId = NewType("ChatId", UUID)
MessageId = NewType("MessageId", UUID)
NotificationId = NewType("NotificationId", UUID)


# ─── Constants ───────────────────────────────────────────────────

MIN_GROUP_SIZE = 2
MAX_GROUP_SIZE = 6


# ─── Enums ───────────────────────────────────────────────────────

class ConnectionStatus(str, Enum):
    """Stored lifecycle of a Connection: pending -> accepted | rejected (terminal)."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ConnectionView(str, Enum):
    """Connection status oriented relative to the viewer."""
    SELF = "self"
    NONE = "none"
    PENDING_SENT = "pending_sent"
    PENDING_RECEIVED = "pending_received"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class GroupVisibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class RevealState(str, Enum):
    """Prompt response visibility: a pure function of (reveal_at, now)."""
    HIDDEN = "hidden"
    REVEALED = "revealed"


class NotificationType(str, Enum):
    """Closed tag set for notifications; each member has a payload model."""
    FRIEND_REQUEST = "friend_request"
    FRIEND_REQUEST_ACCEPTED = "friend_request_accepted"
    FRIEND_REQUEST_DECLINED = "friend_request_declined"
    MEMBER_JOINED = "member_joined"
    MEMBER_REMOVED = "member_removed"
    MEMBER_PROMOTED = "member_promoted"
    MEMBER_DEMOTED = "member_demoted"
    GROUP_DELETED = "group_deleted"
    PROMPT_OPEN = "prompt_open"
    PROMPT_24H = "prompt_24h"
    VOTING_OPEN = "voting_open"
    VOTE_RECEIVED = "vote_received"


PROMPT_ANNOUNCEMENT_TYPES = frozenset({
    NotificationType.PROMPT_OPEN,
    NotificationType.PROMPT_24H,
    NotificationType.VOTING_OPEN,
})
