"""Prompt Cycle - weekly prompt activation, response upsert, reveal gating, votes.

Invariants:
    - The active prompt is the greatest active_at <= now (NotFound if none)
    - One Response per (prompt, group, user): submit is an upsert and a
      unique-constraint race on insert falls back to updating the winner
    - Hidden: caller sees only their own response plus the total count
    - Revealed: every member sees all responses, authors joined, oldest first
    - vote_count moves only by atomic SQL increment/decrement
    - A user feed shows another viewer only responses whose prompt is revealed;
      the author sees all of their own

Design Decisions:
    - now is a parameter on every time-dependent operation: routes pass the
      wall clock, tests pass fixed instants
    - Operators (configured user ids) schedule prompts and trigger the
      prompt_open / prompt_24h / voting_open fan-out; there is no scheduler
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.domain_types import NotificationType
from memoria.core.errors import AlreadyExistsError, ResourceNotFoundError
from memoria.core.notification_payloads import VoteReceivedPayload, announcement_payload
from memoria.core.reveal_gate import (
    ResponseListing, check_announcement_type, check_operator, check_schedule,
    gate_responses, is_revealed, validate_vote,
)
from memoria.core.timestamps import utcnow
from memoria.models.group import Group
from memoria.models.group_member import GroupMember
from memoria.models.prompt import Prompt
from memoria.models.response import Response
from memoria.models.user import User
from memoria.models.vote import Vote
from memoria.services.group_roster import GroupRoster
from memoria.services.notification_hub import NotificationHub
from memoria.services.profiles import get_user_or_404, users_by_id

logger = logging.getLogger(__name__)

PAST_PROMPTS_LIMIT = 10
UPCOMING_PROMPTS_LIMIT = 5
FEED_LIMIT = 20


@dataclass
class ResponsePage:
    """Gated responses for one group under the active prompt."""
    prompt: Prompt
    listing: ResponseListing
    authors: dict[str, User] = field(default_factory=dict)
    voted_response_ids: set[UUID] = field(default_factory=set)


@dataclass
class VoteResult:
    voted: bool
    vote_count: int


@dataclass
class FeedEntry:
    """One of a user's responses with the prompt it answered and its group."""
    response: Response
    prompt: Prompt
    group_name: str


class PromptCycle:
    def __init__(
        self, db: AsyncSession,
        notifications: NotificationHub | None = None,
        operator_ids: list[str] | None = None,
    ):
        self.db = db
        self.notifications = notifications or NotificationHub(db)
        self.roster = GroupRoster(db, self.notifications)
        self.operator_ids = set(operator_ids or [])

    # ─── Prompts ─────────────────────────────────────────────────

    async def active_prompt(self, now: datetime | None = None) -> Prompt:
        now = now or utcnow()
        result = await self.db.execute(
            select(Prompt)
            .where(Prompt.active_at <= now)
            .order_by(Prompt.active_at.desc())
            .limit(1),
        )
        prompt = result.scalar_one_or_none()
        if prompt is None:
            raise ResourceNotFoundError("Prompt", "active")
        return prompt

    async def past_prompts(
        self, now: datetime | None = None, limit: int = PAST_PROMPTS_LIMIT,
    ) -> list[Prompt]:
        now = now or utcnow()
        result = await self.db.execute(
            select(Prompt)
            .where(Prompt.active_at < now)
            .order_by(Prompt.active_at.desc())
            .limit(limit),
        )
        return list(result.scalars().all())

    async def upcoming_prompts(
        self, now: datetime | None = None, limit: int = UPCOMING_PROMPTS_LIMIT,
    ) -> list[Prompt]:
        now = now or utcnow()
        result = await self.db.execute(
            select(Prompt)
            .where(Prompt.active_at > now)
            .order_by(Prompt.active_at.asc())
            .limit(limit),
        )
        return list(result.scalars().all())

    async def schedule_prompt(
        self, acting_user_id: str, content: str,
        active_at: datetime, reveal_at: datetime,
    ) -> Prompt:
        error = (
            check_operator(acting_user_id, self.operator_ids)
            or check_schedule(active_at, reveal_at)
        )
        if error:
            raise error
        prompt = Prompt(content=content, active_at=active_at, reveal_at=reveal_at)
        self.db.add(prompt)
        await self.db.commit()
        logger.info(
            "Prompt scheduled",
            extra={"user_id": acting_user_id, "prompt_id": str(prompt.id)},
        )
        return prompt

    async def announce(
        self, acting_user_id: str, prompt_id: UUID,
        notification_type: NotificationType,
    ) -> int:
        """Fan a prompt-cycle announcement out to everyone in at least one group."""
        error = (
            check_operator(acting_user_id, self.operator_ids)
            or check_announcement_type(notification_type)
        )
        if error:
            raise error
        if await self.db.get(Prompt, prompt_id) is None:
            raise ResourceNotFoundError("Prompt", str(prompt_id))
        result = await self.db.execute(select(GroupMember.user_id).distinct())
        recipients = list(result.scalars().all())
        logger.info(
            "Prompt announcement",
            extra={"prompt_id": str(prompt_id), "notification_type": notification_type.value},
        )
        return await self.notifications.emit_many(
            recipients, announcement_payload(notification_type),
        )

    # ─── Responses ───────────────────────────────────────────────

    async def _find_response(
        self, prompt_id: UUID, group_id: UUID, user_id: str,
    ) -> Response | None:
        result = await self.db.execute(
            select(Response).where(
                Response.prompt_id == prompt_id,
                Response.group_id == group_id,
                Response.user_id == user_id,
            ),
        )
        return result.scalar_one_or_none()

    async def submit_response(
        self, user_id: str, group_id: UUID, content: str,
        now: datetime | None = None,
    ) -> Response:
        """Upsert the caller's answer to the active prompt in this group."""
        now = now or utcnow()
        await self.roster.require_member(group_id, user_id)
        prompt_id = (await self.active_prompt(now)).id

        response = await self._find_response(prompt_id, group_id, user_id)
        if response is None:
            response = Response(
                prompt_id=prompt_id, group_id=group_id, user_id=user_id,
                content=content, vote_count=0, created_at=now, updated_at=now,
            )
            self.db.add(response)
            try:
                await self.db.commit()
                logger.info(
                    "Response submitted",
                    extra={"user_id": user_id, "group_id": str(group_id), "prompt_id": str(prompt_id)},
                )
                return response
            except IntegrityError:
                # A concurrent submit inserted first: update that row instead
                await self.db.rollback()
                logger.warning(
                    "Response insert lost race, updating",
                    extra={"user_id": user_id, "group_id": str(group_id)},
                )
                response = await self._find_response(prompt_id, group_id, user_id)
                if response is None:
                    raise

        response.content = content
        response.updated_at = now
        await self.db.commit()
        logger.info(
            "Response updated",
            extra={"user_id": user_id, "group_id": str(group_id), "prompt_id": str(prompt_id)},
        )
        return response

    async def list_responses(
        self, group_id: UUID, caller_id: str, now: datetime | None = None,
    ) -> ResponsePage:
        now = now or utcnow()
        await self.roster.require_member(group_id, caller_id)
        prompt = await self.active_prompt(now)

        result = await self.db.execute(
            select(Response).where(
                Response.prompt_id == prompt.id, Response.group_id == group_id,
            ),
        )
        listing = gate_responses(list(result.scalars().all()), prompt, now, caller_id)
        authors = await users_by_id(self.db, [r.user_id for r in listing.responses])
        voted = await self._voted_by(caller_id, [r.id for r in listing.responses])
        return ResponsePage(
            prompt=prompt, listing=listing, authors=authors, voted_response_ids=voted,
        )

    async def _voted_by(self, voter_id: str, response_ids: list[UUID]) -> set[UUID]:
        if not response_ids:
            return set()
        result = await self.db.execute(
            select(Vote.response_id).where(
                Vote.voter_id == voter_id, Vote.response_id.in_(response_ids),
            ),
        )
        return set(result.scalars().all())

    async def user_feed(
        self, user_id: str, viewer_id: str,
        now: datetime | None = None, limit: int = FEED_LIMIT,
    ) -> list[FeedEntry]:
        """A user's responses across all groups, newest first."""
        now = now or utcnow()
        await get_user_or_404(self.db, user_id)
        query = (
            select(Response, Prompt, Group.name)
            .join(Prompt, Response.prompt_id == Prompt.id)
            .join(Group, Response.group_id == Group.id)
            .where(Response.user_id == user_id)
        )
        if viewer_id != user_id:
            query = query.where(Prompt.reveal_at <= now)
        result = await self.db.execute(
            query.order_by(Response.created_at.desc()).limit(limit),
        )
        return [
            FeedEntry(response=response, prompt=prompt, group_name=group_name)
            for response, prompt, group_name in result.all()
        ]

    # ─── Votes ───────────────────────────────────────────────────

    async def toggle_vote(
        self, response_id: UUID, voter_id: str, now: datetime | None = None,
    ) -> VoteResult:
        """Add the caller's vote, or take it back if already cast."""
        now = now or utcnow()
        response = await self.db.get(Response, response_id)
        if response is None:
            raise ResourceNotFoundError("Response", str(response_id))
        prompt = await self.db.get(Prompt, response.prompt_id)
        membership = await self.roster.membership(response.group_id, voter_id)
        error = validate_vote(
            response, voter_id, membership is not None, is_revealed(prompt, now),
        )
        if error:
            raise error

        removed = await self.db.execute(
            delete(Vote)
            .where(Vote.response_id == response_id, Vote.voter_id == voter_id)
            .execution_options(synchronize_session=False),
        )
        voted = removed.rowcount == 0
        if voted:
            self.db.add(Vote(response_id=response_id, voter_id=voter_id))
        try:
            await self.db.execute(
                update(Response)
                .where(Response.id == response_id)
                .values(vote_count=Response.vote_count + (1 if voted else -1))
                .execution_options(synchronize_session=False),
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise AlreadyExistsError("Vote already recorded")

        await self.db.refresh(response)
        logger.info(
            "Vote cast" if voted else "Vote withdrawn",
            extra={"user_id": voter_id, "group_id": str(response.group_id)},
        )
        if voted:
            await self.notifications.emit(response.user_id, VoteReceivedPayload())
        return VoteResult(voted=voted, vote_count=response.vote_count)
