"""Chat Threads - two-party direct messages with per-participant read watermarks.

Invariants:
    - One Chat per unordered pair: lookup by canonical pair, insert backed by
      uq_chat_pair; the loser of an insert race re-reads the winner
    - Only participants send, read, or mark a chat read
    - mark_read moves the reader's own watermark and nothing else
    - Messages are append-only; sending never touches the Chat row
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.chat_state import (
    ThreadSummary, check_distinct_participants, check_participant, count_unread,
    participant_slot, sort_threads, unread_count, watermark_column, watermark_for,
)
from memoria.core.errors import ResourceNotFoundError
from memoria.core.pairs import canonical_pair, other_party
from memoria.core.timestamps import utcnow
from memoria.models.chat import Chat
from memoria.models.message import Message
from memoria.services.profiles import get_user_or_404

logger = logging.getLogger(__name__)


class ChatThreads:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find_pair(self, a: str, b: str) -> Chat | None:
        low, high = canonical_pair(a, b)
        result = await self.db.execute(
            select(Chat).where(Chat.pair_low == low, Chat.pair_high == high),
        )
        return result.scalar_one_or_none()

    async def get(self, chat_id: UUID, viewer_id: str) -> Chat:
        chat = await self.db.get(Chat, chat_id)
        if chat is None:
            raise ResourceNotFoundError("Chat", str(chat_id))
        error = check_participant(chat, viewer_id)
        if error:
            raise error
        return chat

    async def get_or_create(self, user_id: str, other_id: str) -> Chat:
        """Same chat for (a, b) and (b, a); the opener becomes participant A."""
        error = check_distinct_participants(user_id, other_id)
        if error:
            raise error
        await get_user_or_404(self.db, other_id)

        chat = await self._find_pair(user_id, other_id)
        if chat is not None:
            return chat

        low, high = canonical_pair(user_id, other_id)
        chat = Chat(
            participant_a=user_id, participant_b=other_id,
            pair_low=low, pair_high=high,
        )
        self.db.add(chat)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("Chat insert lost race, re-reading", extra={"user_id": user_id})
            chat = await self._find_pair(user_id, other_id)
            if chat is None:
                raise
            return chat
        logger.info("Chat opened", extra={"user_id": user_id, "chat_id": str(chat.id)})
        return chat

    async def send(
        self, chat_id: UUID, sender_id: str, content: str,
        now: datetime | None = None,
    ) -> Message:
        await self.get(chat_id, sender_id)
        message = Message(
            chat_id=chat_id, sender_id=sender_id, content=content,
            created_at=now or utcnow(),
        )
        self.db.add(message)
        await self.db.commit()
        logger.info("Message sent", extra={"user_id": sender_id, "chat_id": str(chat_id)})
        return message

    async def messages(self, chat_id: UUID, viewer_id: str, limit: int = 200) -> list[Message]:
        """The latest `limit` messages, oldest first."""
        await self.get(chat_id, viewer_id)
        result = await self.db.execute(
            select(Message)
            .where(Message.chat_id == chat_id)
            .order_by(Message.created_at.desc())
            .limit(limit),
        )
        return list(reversed(result.scalars().all()))

    async def mark_read(
        self, chat_id: UUID, reader_id: str, now: datetime | None = None,
    ) -> Chat:
        chat = await self.get(chat_id, reader_id)
        column = watermark_column(participant_slot(chat, reader_id))
        await self.db.execute(
            update(Chat)
            .where(Chat.id == chat_id)
            .values({column: now or utcnow()})
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        await self.db.refresh(chat)
        return chat

    async def _chat_messages(self, chat_id: UUID) -> list[Message]:
        result = await self.db.execute(
            select(Message).where(Message.chat_id == chat_id),
        )
        return list(result.scalars().all())

    async def unread_count(self, chat_id: UUID, viewer_id: str) -> int:
        chat = await self.get(chat_id, viewer_id)
        return unread_count(chat, await self._chat_messages(chat_id), viewer_id)

    async def total_unread(self, user_id: str) -> int:
        threads = await self.list_for_user(user_id)
        return sum(t.unread_count for t in threads)

    async def list_for_user(self, user_id: str) -> list[ThreadSummary]:
        result = await self.db.execute(
            select(Chat).where(
                or_(Chat.participant_a == user_id, Chat.participant_b == user_id),
            ),
        )
        chats = list(result.scalars().all())
        if not chats:
            return []

        result = await self.db.execute(
            select(Message)
            .where(Message.chat_id.in_([c.id for c in chats]))
            .order_by(Message.created_at.asc()),
        )
        by_chat: dict[UUID, list[Message]] = {c.id: [] for c in chats}
        for message in result.scalars().all():
            by_chat[message.chat_id].append(message)

        threads = []
        for chat in chats:
            messages = by_chat[chat.id]
            threads.append(ThreadSummary(
                chat=chat,
                other_participant_id=other_party(chat.participant_a, chat.participant_b, user_id),
                last_message=messages[-1] if messages else None,
                unread_count=count_unread(messages, user_id, watermark_for(chat, user_id)),
            ))
        return sort_threads(threads)
