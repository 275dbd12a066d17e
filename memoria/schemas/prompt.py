"""Prompt Schemas - weekly prompts, gated response listings and votes.

Invariants:
    - ResponseSubmit.content: 1-5000 chars, stripped, non-empty
    - ResponseListOut.response_count is the TOTAL for the group, hidden or not
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from memoria.schemas.user import UserProfile


class PromptOut(BaseModel):
    id: UUID
    content: str
    active_at: datetime
    reveal_at: datetime
    is_revealed: bool


class PromptCreate(BaseModel):
    content: str = Field(min_length=1, max_length=2000)
    active_at: datetime
    reveal_at: datetime


class PromptAnnounce(BaseModel):
    type: Literal["prompt_open", "prompt_24h", "voting_open"]


class AnnounceResult(BaseModel):
    notified: int


class ResponseSubmit(BaseModel):
    content: str = Field(min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        return v


class ResponseOut(BaseModel):
    id: UUID
    user_id: str
    author: UserProfile | None = None
    content: str
    vote_count: int
    voted: bool = False
    created_at: datetime
    updated_at: datetime


class ResponseListOut(BaseModel):
    prompt: PromptOut
    responses: list[ResponseOut]
    response_count: int
    is_revealed: bool
    reveal_at: datetime


class VoteOut(BaseModel):
    voted: bool
    vote_count: int


class FeedItemOut(BaseModel):
    """One entry of a user's response history."""
    id: UUID
    content: str
    vote_count: int
    created_at: datetime
    updated_at: datetime
    group_id: UUID
    group_name: str
    prompt: PromptOut
