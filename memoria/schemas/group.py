"""Group Schemas - creation, settings patch, listings and detail.

Invariants:
    - Member bounds are NOT range-checked here: the roster rules own them
      and answer with INVALID_MEMBER_BOUNDS
    - GroupSettingsUpdate is a patch: omitted fields are left unchanged
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from memoria.core.domain_types import GroupVisibility


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str = Field("", max_length=2000)
    visibility: GroupVisibility = GroupVisibility.PUBLIC
    min_members: int = 2
    max_members: int = 6

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class GroupSettingsUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = Field(None, max_length=2000)
    visibility: GroupVisibility | None = None
    min_members: int | None = None
    max_members: int | None = None


class GroupSummary(BaseModel):
    id: UUID
    name: str
    description: str
    visibility: str
    min_members: int
    max_members: int
    creator_id: str
    member_count: int
    created_at: datetime


class MemberOut(BaseModel):
    user_id: str
    display_name: str | None = None
    handle: str | None = None
    avatar_url: str | None = None
    is_admin: bool
    is_creator: bool
    joined_at: datetime


class GroupDetailResponse(BaseModel):
    group: GroupSummary
    members: list[MemberOut]
    is_member: bool
    is_admin: bool
    is_creator: bool


class GroupDeleteResponse(BaseModel):
    deleted: bool = True
    notified: int
