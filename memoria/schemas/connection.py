"""Connection Schemas - friend requests and friendship status."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from memoria.core.domain_types import ConnectionView
from memoria.schemas.user import UserProfile


class FriendRequestCreate(BaseModel):
    recipient_id: str = Field(min_length=1, max_length=64)


class FriendRequestRespond(BaseModel):
    accept: bool


class ConnectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    requester_id: str
    recipient_id: str
    status: str
    created_at: datetime
    updated_at: datetime


class ConnectionStatusResponse(BaseModel):
    status: ConnectionView
    connection_id: UUID | None = None


class IncomingRequest(BaseModel):
    connection: ConnectionResponse
    requester: UserProfile | None = None
