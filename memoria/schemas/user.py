"""User Schemas - profile, search and stats payloads.

Invariants:
    - handle: 3-64 chars, lowercase letters, digits, dot, dash, underscore
    - ProfileUpdate is a patch: omitted fields are left unchanged
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from memoria.core.domain_types import ConnectionView


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    handle: str
    avatar_url: str | None = None
    bio: str | None = None


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(None, min_length=1, max_length=120)
    handle: str | None = Field(None, pattern=r"^[a-z0-9._-]{3,64}$")
    bio: str | None = Field(None, max_length=1000)
    avatar_url: str | None = Field(None, max_length=500)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("display_name cannot be empty or whitespace")
        return v


class UserStatsResponse(BaseModel):
    response_count: int
    votes_received: int
    friend_count: int


class ProfileResponse(BaseModel):
    """Another user's profile as seen by the caller."""
    profile: UserProfile
    stats: UserStatsResponse
    connection_status: ConnectionView
    connection_id: str | None = None


class UserSearchResult(BaseModel):
    profile: UserProfile
    connection_status: ConnectionView
