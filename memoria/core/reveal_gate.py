"""Reveal Gate - weekly prompt activation and response visibility.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - The active prompt is the one with the greatest active_at <= now
    - Visibility is a pure function of (reveal_at, now), independent of caller
    - Visibility is monotonic: once now >= reveal_at it stays revealed
    - Hidden: caller sees only their own response, plus the TOTAL count
    - Revealed: everyone sees all responses ordered by created_at ascending

Design Decisions:
    - gate_responses receives every response for the (prompt, group) and
      filters in memory: a group holds at most six members, so the full set
      is at most six rows and the count stays exact
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence, TypeVar

from memoria.core.domain_types import (
    PROMPT_ANNOUNCEMENT_TYPES, NotificationType, RevealState,
)
from memoria.core.errors import (
    InvalidScheduleError, InvalidStateError, MemoriaError, SelfReferenceError,
    UnauthorizedError,
)
from memoria.core.repository_protocols import PromptLike, ResponseLike
from memoria.core.timestamps import as_utc

R = TypeVar("R", bound=ResponseLike)


def visibility(prompt: PromptLike, now: datetime) -> RevealState:
    if as_utc(now) >= as_utc(prompt.reveal_at):
        return RevealState.REVEALED
    return RevealState.HIDDEN


def is_revealed(prompt: PromptLike, now: datetime) -> bool:
    return visibility(prompt, now) is RevealState.REVEALED


@dataclass(frozen=True)
class ResponseListing:
    """What a caller may see of a group's responses to one prompt."""
    responses: list = field(default_factory=list)
    response_count: int = 0
    is_revealed: bool = False


def gate_responses(
    responses: Sequence[R], prompt: PromptLike, now: datetime, caller_id: str,
) -> ResponseListing:
    """Apply the reveal gate to the full response set of a (prompt, group)."""
    total = len(responses)
    if not is_revealed(prompt, now):
        own = [r for r in responses if r.user_id == caller_id]
        return ResponseListing(responses=own[:1], response_count=total, is_revealed=False)
    ordered = sorted(responses, key=lambda r: as_utc(r.created_at))
    return ResponseListing(responses=ordered, response_count=total, is_revealed=True)


def check_schedule(active_at: datetime, reveal_at: datetime) -> MemoriaError | None:
    if as_utc(reveal_at) < as_utc(active_at):
        return InvalidScheduleError()
    return None


def validate_vote(
    response: ResponseLike, voter_id: str, voter_is_member: bool, revealed: bool,
) -> MemoriaError | None:
    """Votes come from fellow group members, on others' responses, after reveal."""
    if not voter_is_member:
        return UnauthorizedError("Only group members can vote on responses")
    if response.user_id == voter_id:
        return SelfReferenceError("Cannot vote on your own response")
    if not revealed:
        return InvalidStateError("Voting opens once responses are revealed")
    return None


def check_operator(user_id: str, operator_ids) -> MemoriaError | None:
    if user_id not in operator_ids:
        return UnauthorizedError("Only prompt operators can schedule or announce prompts")
    return None


def check_announcement_type(notification_type: NotificationType) -> MemoriaError | None:
    if notification_type not in PROMPT_ANNOUNCEMENT_TYPES:
        return InvalidStateError(
            f"'{notification_type.value}' is not a prompt announcement",
        )
    return None
