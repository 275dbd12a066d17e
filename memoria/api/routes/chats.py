"""Chat Routes - open threads, send and read messages, unread counts.

Invariants:
    - Opening a chat with the same person twice returns the same chat
    - Non-participants get 403 on every per-chat route
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.api.deps import get_current_user
from memoria.infrastructure.database import get_db
from memoria.models.user import User
from memoria.schemas.chat import (
    ChatOpen, ChatOut, MessageCreate, MessageOut, ThreadOut, UnreadOut,
)
from memoria.schemas.user import UserProfile
from memoria.services.chat_threads import ChatThreads
from memoria.services.profiles import users_by_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/chats", tags=["chats"])


@router.post("", response_model=ChatOut)
async def open_chat(
    body: ChatOpen,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    chat = await ChatThreads(db).get_or_create(user.id, body.user_id)
    return ChatOut.model_validate(chat)


@router.get("", response_model=list[ThreadOut])
async def list_threads(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    threads = await ChatThreads(db).list_for_user(user.id)
    profiles = await users_by_id(db, [t.other_participant_id for t in threads])
    return [
        ThreadOut(
            chat=ChatOut.model_validate(t.chat),
            other_participant=(
                UserProfile.model_validate(profiles[t.other_participant_id])
                if t.other_participant_id in profiles else None
            ),
            last_message=(
                MessageOut.model_validate(t.last_message) if t.last_message else None
            ),
            unread_count=t.unread_count,
            activity_at=t.activity_at,
        )
        for t in threads
    ]


@router.get("/unread", response_model=UnreadOut)
async def total_unread(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return UnreadOut(unread_count=await ChatThreads(db).total_unread(user.id))


@router.get("/{chat_id}/messages", response_model=list[MessageOut])
async def list_messages(
    chat_id: UUID,
    limit: int = Query(200, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    messages = await ChatThreads(db).messages(chat_id, user.id, limit=limit)
    return [MessageOut.model_validate(m) for m in messages]


@router.post(
    "/{chat_id}/messages", response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    chat_id: UUID,
    body: MessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    message = await ChatThreads(db).send(chat_id, user.id, body.content)
    return MessageOut.model_validate(message)


@router.post("/{chat_id}/read", response_model=UnreadOut)
async def mark_read(
    chat_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    threads = ChatThreads(db)
    await threads.mark_read(chat_id, user.id)
    return UnreadOut(unread_count=await threads.unread_count(chat_id, user.id))


@router.get("/{chat_id}/unread", response_model=UnreadOut)
async def chat_unread(
    chat_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return UnreadOut(unread_count=await ChatThreads(db).unread_count(chat_id, user.id))
