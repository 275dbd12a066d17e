"""Boundary Protocols - contracts between core and shell.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - Core rule functions accept these structural types, so ORM rows and plain
      test doubles are interchangeable
    - The identity provider is consumed through IdentityGateway only

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - IdentityGateway.resolve is sync: token decoding is CPU-only; a provider
      needing IO would wrap its own client
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


class ConnectionLike(Protocol):
    id: UUID
    requester_id: str
    recipient_id: str
    status: str


class GroupLike(Protocol):
    id: UUID
    name: str
    creator_id: str
    min_members: int
    max_members: int


class MembershipLike(Protocol):
    group_id: UUID
    user_id: str
    is_admin: bool


class PromptLike(Protocol):
    id: UUID
    active_at: datetime
    reveal_at: datetime


class ResponseLike(Protocol):
    id: UUID
    user_id: str
    created_at: datetime


class ChatLike(Protocol):
    id: UUID
    participant_a: str
    participant_b: str
    created_at: datetime
    last_read_a: datetime | None
    last_read_b: datetime | None


class MessageLike(Protocol):
    sender_id: str
    created_at: datetime


@dataclass(frozen=True)
class Identity:
    """Stable caller identity plus profile attributes from the provider."""
    user_id: str
    display_name: str
    handle: str
    avatar_url: str | None = None


class IdentityGateway(Protocol):
    """Maps an opaque caller credential to an Identity (or None if invalid)."""
    def resolve(self, credential: str) -> Identity | None: ...
