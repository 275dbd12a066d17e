"""Connection Routes - friend requests, friendship status and friend lists.

Invariants:
    - Only the recipient can answer a request (NotFound for anyone else)
    - Answering twice is InvalidState (409)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.api.deps import get_current_user
from memoria.infrastructure.database import get_db
from memoria.models.user import User
from memoria.schemas.connection import (
    ConnectionResponse, ConnectionStatusResponse, FriendRequestCreate,
    FriendRequestRespond, IncomingRequest,
)
from memoria.schemas.user import UserProfile
from memoria.services.connection_graph import ConnectionGraph

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/connections", tags=["connections"])


@router.post(
    "/requests", response_model=ConnectionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_request(
    body: FriendRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    connection = await ConnectionGraph(db).send_request(user.id, body.recipient_id)
    return ConnectionResponse.model_validate(connection)


@router.get("/requests/incoming", response_model=list[IncomingRequest])
async def incoming_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    pending = await ConnectionGraph(db).incoming_requests(user.id)
    return [
        IncomingRequest(
            connection=ConnectionResponse.model_validate(c),
            requester=UserProfile.model_validate(requester) if requester else None,
        )
        for c, requester in pending
    ]


@router.post("/requests/{connection_id}/respond", response_model=ConnectionResponse)
async def respond_to_request(
    connection_id: UUID,
    body: FriendRequestRespond,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    connection = await ConnectionGraph(db).respond(connection_id, body.accept, user.id)
    return ConnectionResponse.model_validate(connection)


@router.get("/status/{other_id}", response_model=ConnectionStatusResponse)
async def connection_status(
    other_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    view, connection = await ConnectionGraph(db).status(user.id, other_id)
    return ConnectionStatusResponse(
        status=view, connection_id=connection.id if connection else None,
    )


@router.get("/friends", response_model=list[UserProfile])
async def list_friends(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    friends = await ConnectionGraph(db).friends(user.id)
    return [UserProfile.model_validate(f) for f in friends]


@router.get("/friends/{user_id}", response_model=list[UserProfile])
async def list_friends_of(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    friends = await ConnectionGraph(db).friends(user_id)
    return [UserProfile.model_validate(f) for f in friends]


@router.delete("/friends/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_friend(
    friend_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ConnectionGraph(db).remove_friend(user.id, friend_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
