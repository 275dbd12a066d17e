"""Chat Schemas - threads, messages and the inbox listing."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from memoria.schemas.user import UserProfile


class ChatOpen(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)


class ChatOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    participant_a: str
    participant_b: str
    created_at: datetime


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=4000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        return v


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    chat_id: UUID
    sender_id: str
    content: str
    created_at: datetime


class ThreadOut(BaseModel):
    chat: ChatOut
    other_participant: UserProfile | None = None
    last_message: MessageOut | None = None
    unread_count: int
    activity_at: datetime


class UnreadOut(BaseModel):
    unread_count: int
