"""Notification Payloads - one typed, versioned payload model per notification type.

Invariants:
    - Every NotificationType has exactly one payload model in PAYLOAD_MODELS
    - Wire field names are camelCase (the UI contract); Python names are snake_case
    - Each model carries SCHEMA_VERSION; it is persisted next to the payload
    - summarize() matches every type exhaustively: a new type without a branch fails tests

Design Decisions:
    - Pydantic models over TypedDicts: validation on read-back of stored JSON
    - The payload does not repeat the type tag: type lives on the Notification row
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from memoria.core.domain_types import NotificationType
from memoria.core.errors import MemoriaError, ResourceNotFoundError, UnauthorizedError


class NotificationPayload(BaseModel):
    """Base for all payloads. Subclasses bind TYPE and SCHEMA_VERSION."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True,
    )

    TYPE: ClassVar[NotificationType]
    SCHEMA_VERSION: ClassVar[int] = 1

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ─── Friend requests ─────────────────────────────────────────────

class FriendRequestPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.FRIEND_REQUEST
    from_user_id: str
    from_name: str


class FriendRequestAcceptedPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.FRIEND_REQUEST_ACCEPTED
    from_user_id: str
    from_name: str


class FriendRequestDeclinedPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.FRIEND_REQUEST_DECLINED
    from_user_id: str
    from_name: str


# ─── Group roster ────────────────────────────────────────────────

class MemberJoinedPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.MEMBER_JOINED
    group_id: str
    group_name: str
    member_id: str
    member_name: str


class MemberRemovedPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.MEMBER_REMOVED
    group_id: str
    group_name: str
    admin_name: str


class MemberPromotedPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.MEMBER_PROMOTED
    group_id: str
    group_name: str
    admin_name: str


class MemberDemotedPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.MEMBER_DEMOTED
    group_id: str
    group_name: str
    admin_name: str


class GroupDeletedPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.GROUP_DELETED
    group_name: str
    admin_name: str


# ─── Prompt cycle ────────────────────────────────────────────────

class PromptOpenPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.PROMPT_OPEN


class Prompt24hPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.PROMPT_24H


class VotingOpenPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.VOTING_OPEN


class VoteReceivedPayload(NotificationPayload):
    TYPE: ClassVar[NotificationType] = NotificationType.VOTE_RECEIVED


PAYLOAD_MODELS: dict[NotificationType, type[NotificationPayload]] = {
    model.TYPE: model
    for model in (
        FriendRequestPayload, FriendRequestAcceptedPayload, FriendRequestDeclinedPayload,
        MemberJoinedPayload, MemberRemovedPayload, MemberPromotedPayload,
        MemberDemotedPayload, GroupDeletedPayload,
        PromptOpenPayload, Prompt24hPayload, VotingOpenPayload, VoteReceivedPayload,
    )
}


def announcement_payload(notification_type: NotificationType) -> NotificationPayload:
    """Empty payload for the prompt-cycle announcement types."""
    return PAYLOAD_MODELS[notification_type]()


def parse_payload(notification_type: str, data: dict) -> NotificationPayload:
    """Rebuild the typed payload from stored JSON (camelCase keys)."""
    model = PAYLOAD_MODELS[NotificationType(notification_type)]
    return model.model_validate(data)


def summarize(payload: NotificationPayload) -> str:
    """Human-readable one-liner for a notification."""
    match payload:
        case FriendRequestPayload(from_name=name):
            return f"{name} sent you a friend request"
        case FriendRequestAcceptedPayload(from_name=name):
            return f"{name} accepted your friend request"
        case FriendRequestDeclinedPayload(from_name=name):
            return f"{name} declined your friend request"
        case MemberJoinedPayload(member_name=member, group_name=group):
            return f"{member} joined {group}"
        case MemberRemovedPayload(admin_name=admin, group_name=group):
            return f"{admin} removed you from {group}"
        case MemberPromotedPayload(admin_name=admin, group_name=group):
            return f"{admin} made you an admin of {group}"
        case MemberDemotedPayload(admin_name=admin, group_name=group):
            return f"{admin} removed your admin role in {group}"
        case GroupDeletedPayload(admin_name=admin, group_name=group):
            return f"{admin} deleted {group}"
        case PromptOpenPayload():
            return "This week's prompt is open"
        case Prompt24hPayload():
            return "24 hours left to answer this week's prompt"
        case VotingOpenPayload():
            return "Responses are revealed: voting is open"
        case VoteReceivedPayload():
            return "Someone voted for your response"
        case _:
            raise ValueError(f"Unhandled notification payload: {type(payload).__name__}")


def check_notification_owner(
    owner_id: str | None, notification_id: str, user_id: str,
) -> MemoriaError | None:
    """owner_id None means the notification does not exist."""
    if owner_id is None:
        return ResourceNotFoundError("Notification", notification_id)
    if owner_id != user_id:
        return UnauthorizedError("This notification belongs to another user")
    return None
