"""Connection Enforcement - friend-request state machine rules.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return an error instance on violation, None on success
    - pending -> accepted | rejected exactly once; terminal states never change
    - At most one Connection per unordered pair, in any orientation or status

Design Decisions:
    - Pure functions over service methods: testable without a database
    - validate_send_request chains checks with `or`: first error wins
"""

from typing import Iterable

from memoria.core.domain_types import ConnectionStatus, ConnectionView, UserId
from memoria.core.errors import (
    AlreadyExistsError, InvalidStateError, MemoriaError,
    ResourceNotFoundError, SelfReferenceError,
)
from memoria.core.pairs import other_party
from memoria.core.repository_protocols import ConnectionLike


def check_not_self(requester_id: str, recipient_id: str) -> MemoriaError | None:
    if requester_id == recipient_id:
        return SelfReferenceError("Cannot send a friend request to yourself")
    return None


def check_no_existing_connection(existing: ConnectionLike | None) -> MemoriaError | None:
    """Any prior Connection blocks a new request, including rejected ones."""
    if existing is not None:
        return AlreadyExistsError("Connection already exists")
    return None


def validate_send_request(
    requester_id: str, recipient_id: str, existing: ConnectionLike | None,
) -> MemoriaError | None:
    return (
        check_not_self(requester_id, recipient_id)
        or check_no_existing_connection(existing)
    )


def check_can_respond(
    connection: ConnectionLike | None, connection_id: str, acting_user_id: str,
) -> MemoriaError | None:
    """Only the recipient may respond, and only while pending.

    Missing and not-yours are indistinguishable (NotFound) so request ids
    don't leak to third parties.
    """
    if connection is None or connection.recipient_id != acting_user_id:
        return ResourceNotFoundError("Friend request", connection_id)
    if connection.status != ConnectionStatus.PENDING.value:
        return InvalidStateError(
            f"Friend request already {connection.status}",
        )
    return None


def resolved_status(accept: bool) -> ConnectionStatus:
    return ConnectionStatus.ACCEPTED if accept else ConnectionStatus.REJECTED


def view_for(
    connection: ConnectionLike | None, viewer_id: str, other_id: str,
) -> ConnectionView:
    """Orient a Connection relative to the viewer."""
    if viewer_id == other_id:
        return ConnectionView.SELF
    if connection is None:
        return ConnectionView.NONE
    if connection.status == ConnectionStatus.PENDING.value:
        if connection.requester_id == viewer_id:
            return ConnectionView.PENDING_SENT
        return ConnectionView.PENDING_RECEIVED
    return ConnectionView(connection.status)


def friend_ids(connections: Iterable[ConnectionLike], user_id: str) -> list[UserId]:
    """Other party of every accepted Connection touching user_id, both orientations."""
    seen: dict[str, None] = {}
    for c in connections:
        if c.status != ConnectionStatus.ACCEPTED.value:
            continue
        if user_id not in (c.requester_id, c.recipient_id):
            continue
        seen[other_party(c.requester_id, c.recipient_id, user_id)] = None
    return [UserId(uid) for uid in seen]
