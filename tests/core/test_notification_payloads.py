"""Notification Payloads - tests for the typed payload union.

Tests cover:
    - every NotificationType has exactly one payload model
    - wire format uses the camelCase keys the UI expects
    - summarize handles every type
    - stored JSON parses back into the right model
    - ownership check: missing vs someone else's
"""

import pytest

from memoria.core.domain_types import PROMPT_ANNOUNCEMENT_TYPES, NotificationType
from memoria.core.errors import ResourceNotFoundError, UnauthorizedError
from memoria.core.notification_payloads import (
    PAYLOAD_MODELS, FriendRequestPayload, GroupDeletedPayload, MemberJoinedPayload,
    MemberRemovedPayload, announcement_payload, check_notification_owner,
    parse_payload, summarize,
)

SAMPLES = {
    NotificationType.FRIEND_REQUEST: {"fromUserId": "u1", "fromName": "Ana"},
    NotificationType.FRIEND_REQUEST_ACCEPTED: {"fromUserId": "u1", "fromName": "Ana"},
    NotificationType.FRIEND_REQUEST_DECLINED: {"fromUserId": "u1", "fromName": "Ana"},
    NotificationType.MEMBER_JOINED: {
        "groupId": "g1", "groupName": "Crew", "memberId": "u2", "memberName": "Bo",
    },
    NotificationType.MEMBER_REMOVED: {"groupId": "g1", "groupName": "Crew", "adminName": "Ana"},
    NotificationType.MEMBER_PROMOTED: {"groupId": "g1", "groupName": "Crew", "adminName": "Ana"},
    NotificationType.MEMBER_DEMOTED: {"groupId": "g1", "groupName": "Crew", "adminName": "Ana"},
    NotificationType.GROUP_DELETED: {"groupName": "Crew", "adminName": "Ana"},
    NotificationType.PROMPT_OPEN: {},
    NotificationType.PROMPT_24H: {},
    NotificationType.VOTING_OPEN: {},
    NotificationType.VOTE_RECEIVED: {},
}


def test_every_type_has_a_model():
    assert set(PAYLOAD_MODELS) == set(NotificationType)
    for notification_type, model in PAYLOAD_MODELS.items():
        assert model.TYPE is notification_type
        assert model.SCHEMA_VERSION >= 1


@pytest.mark.parametrize("notification_type", list(NotificationType))
def test_wire_shape_matches_contract(notification_type):
    payload = parse_payload(notification_type.value, SAMPLES[notification_type])
    assert payload.to_wire() == SAMPLES[notification_type]


@pytest.mark.parametrize("notification_type", list(NotificationType))
def test_summarize_is_exhaustive(notification_type):
    payload = parse_payload(notification_type.value, SAMPLES[notification_type])
    assert summarize(payload)


def test_snake_case_construction_serializes_camel_case():
    payload = MemberJoinedPayload(
        group_id="g1", group_name="Crew", member_id="u2", member_name="Bo",
    )
    assert payload.to_wire() == {
        "groupId": "g1", "groupName": "Crew", "memberId": "u2", "memberName": "Bo",
    }


def test_summaries_mention_actors():
    assert summarize(FriendRequestPayload(from_user_id="u1", from_name="Ana")) == (
        "Ana sent you a friend request"
    )
    assert "Crew" in summarize(GroupDeletedPayload(group_name="Crew", admin_name="Ana"))
    assert "Ana" in summarize(MemberRemovedPayload(group_id="g", group_name="Crew", admin_name="Ana"))


def test_announcement_payloads_are_empty():
    for notification_type in PROMPT_ANNOUNCEMENT_TYPES:
        assert announcement_payload(notification_type).to_wire() == {}


def test_unknown_type_cannot_be_parsed():
    with pytest.raises(ValueError):
        parse_payload("poke", {})


def test_notification_owner_check():
    assert check_notification_owner("alice", "n1", "alice") is None
    assert isinstance(check_notification_owner(None, "n1", "alice"), ResourceNotFoundError)
    assert isinstance(check_notification_owner("bob", "n1", "alice"), UnauthorizedError)
