"""Connection Enforcement - tests for the friend-request state machine rules.

Tests cover:
    - self requests rejected, any existing connection blocks a new one
    - only the recipient can respond, only while pending
    - view_for orients a connection relative to the viewer
    - friend_ids unions both orientations and skips non-accepted rows
"""

from dataclasses import dataclass, field
from uuid import UUID, uuid4

from memoria.core.domain_types import ConnectionStatus, ConnectionView
from memoria.core.enforce_connections import (
    check_can_respond, friend_ids, resolved_status, validate_send_request, view_for,
)
from memoria.core.errors import (
    AlreadyExistsError, InvalidStateError, ResourceNotFoundError, SelfReferenceError,
)


@dataclass
class FakeConnection:
    requester_id: str
    recipient_id: str
    status: str = ConnectionStatus.PENDING.value
    id: UUID = field(default_factory=uuid4)


# ─── validate_send_request ───────────────────────────────────────

def test_send_to_self_is_self_reference():
    assert isinstance(validate_send_request("a", "a", None), SelfReferenceError)


def test_send_without_existing_passes():
    assert validate_send_request("a", "b", None) is None


def test_send_blocked_by_existing_in_any_status():
    for status in ConnectionStatus:
        existing = FakeConnection("b", "a", status.value)
        assert isinstance(validate_send_request("a", "b", existing), AlreadyExistsError)


# ─── check_can_respond ───────────────────────────────────────────

def test_respond_missing_connection_is_not_found():
    assert isinstance(check_can_respond(None, "x", "b"), ResourceNotFoundError)


def test_respond_by_requester_is_not_found():
    c = FakeConnection("a", "b")
    assert isinstance(check_can_respond(c, str(c.id), "a"), ResourceNotFoundError)


def test_respond_by_third_party_is_not_found():
    c = FakeConnection("a", "b")
    assert isinstance(check_can_respond(c, str(c.id), "z"), ResourceNotFoundError)


def test_respond_by_recipient_while_pending_passes():
    c = FakeConnection("a", "b")
    assert check_can_respond(c, str(c.id), "b") is None


def test_respond_after_resolution_is_invalid_state():
    for status in (ConnectionStatus.ACCEPTED, ConnectionStatus.REJECTED):
        c = FakeConnection("a", "b", status.value)
        assert isinstance(check_can_respond(c, str(c.id), "b"), InvalidStateError)


def test_resolved_status():
    assert resolved_status(True) is ConnectionStatus.ACCEPTED
    assert resolved_status(False) is ConnectionStatus.REJECTED


# ─── view_for ────────────────────────────────────────────────────

def test_view_self():
    assert view_for(None, "a", "a") is ConnectionView.SELF


def test_view_none():
    assert view_for(None, "a", "b") is ConnectionView.NONE


def test_view_pending_is_oriented():
    c = FakeConnection("a", "b")
    assert view_for(c, "a", "b") is ConnectionView.PENDING_SENT
    assert view_for(c, "b", "a") is ConnectionView.PENDING_RECEIVED


def test_view_terminal_states_are_symmetric():
    for status in (ConnectionStatus.ACCEPTED, ConnectionStatus.REJECTED):
        c = FakeConnection("a", "b", status.value)
        assert view_for(c, "a", "b").value == status.value
        assert view_for(c, "b", "a").value == status.value


# ─── friend_ids ──────────────────────────────────────────────────

def test_friend_ids_union_both_orientations():
    connections = [
        FakeConnection("a", "b", "accepted"),
        FakeConnection("c", "a", "accepted"),
        FakeConnection("a", "d", "pending"),
        FakeConnection("e", "a", "rejected"),
        FakeConnection("x", "y", "accepted"),
    ]
    assert friend_ids(connections, "a") == ["b", "c"]


def test_friend_ids_deduplicates():
    connections = [
        FakeConnection("a", "b", "accepted"),
        FakeConnection("b", "a", "accepted"),
    ]
    assert friend_ids(connections, "a") == ["b"]
