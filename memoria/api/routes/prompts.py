"""Prompt Routes - the weekly prompt, its schedule, announcements and votes.

Invariants:
    - Scheduling and announcing are limited to configured operator ids
    - Votes toggle: a second vote by the same member withdraws the first
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.api.deps import get_current_user
from memoria.config import get_settings
from memoria.core.domain_types import NotificationType
from memoria.core.reveal_gate import is_revealed
from memoria.core.timestamps import utcnow
from memoria.infrastructure.database import get_db
from memoria.models.prompt import Prompt
from memoria.models.user import User
from memoria.schemas.prompt import (
    AnnounceResult, PromptAnnounce, PromptCreate, PromptOut, VoteOut,
)
from memoria.services.prompt_cycle import PromptCycle

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/prompts", tags=["prompts"])


def prompt_out(prompt: Prompt) -> PromptOut:
    return PromptOut(
        id=prompt.id,
        content=prompt.content,
        active_at=prompt.active_at,
        reveal_at=prompt.reveal_at,
        is_revealed=is_revealed(prompt, utcnow()),
    )


def prompt_cycle(db: AsyncSession = Depends(get_db)) -> PromptCycle:
    return PromptCycle(db, operator_ids=get_settings().prompt_operator_ids)


@router.get("/active", response_model=PromptOut)
async def active_prompt(
    user: User = Depends(get_current_user),
    cycle: PromptCycle = Depends(prompt_cycle),
):
    return prompt_out(await cycle.active_prompt())


@router.get("/past", response_model=list[PromptOut])
async def past_prompts(
    user: User = Depends(get_current_user),
    cycle: PromptCycle = Depends(prompt_cycle),
):
    return [prompt_out(p) for p in await cycle.past_prompts()]


@router.get("/upcoming", response_model=list[PromptOut])
async def upcoming_prompts(
    user: User = Depends(get_current_user),
    cycle: PromptCycle = Depends(prompt_cycle),
):
    return [prompt_out(p) for p in await cycle.upcoming_prompts()]


@router.post("", response_model=PromptOut, status_code=status.HTTP_201_CREATED)
async def schedule_prompt(
    body: PromptCreate,
    user: User = Depends(get_current_user),
    cycle: PromptCycle = Depends(prompt_cycle),
):
    prompt = await cycle.schedule_prompt(
        user.id, body.content, body.active_at, body.reveal_at,
    )
    return prompt_out(prompt)


@router.post("/{prompt_id}/announce", response_model=AnnounceResult)
async def announce_prompt(
    prompt_id: UUID,
    body: PromptAnnounce,
    user: User = Depends(get_current_user),
    cycle: PromptCycle = Depends(prompt_cycle),
):
    notified = await cycle.announce(user.id, prompt_id, NotificationType(body.type))
    return AnnounceResult(notified=notified)


@router.post("/responses/{response_id}/vote", response_model=VoteOut)
async def toggle_vote(
    response_id: UUID,
    user: User = Depends(get_current_user),
    cycle: PromptCycle = Depends(prompt_cycle),
):
    result = await cycle.toggle_vote(response_id, user.id)
    return VoteOut(voted=result.voted, vote_count=result.vote_count)
