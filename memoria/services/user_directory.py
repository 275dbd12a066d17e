"""User Directory - profiles mirrored from the identity provider, search, stats, deletion.

Invariants:
    - A User row exists for every authenticated caller (ensure_user at the boundary)
    - handle is unique: collisions on first sign-in get an id suffix,
      collisions on profile update are AlreadyExists
    - delete_account removes everything the user owns or participates in;
      nothing is left pointing at a missing user

Design Decisions:
    - Account deletion is a CASCADE, not a tombstone: groups the user created
      go through GroupRoster.delete (members get group_deleted), then the
      remaining rows are removed in one commit
    - Votes the user cast are subtracted from vote_count before deletion
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.domain_types import ConnectionView
from memoria.core.enforce_connections import view_for
from memoria.core.errors import AlreadyExistsError
from memoria.core.pairs import canonical_pair
from memoria.core.repository_protocols import Identity
from memoria.core.timestamps import utcnow
from memoria.models.chat import Chat
from memoria.models.connection import Connection
from memoria.models.group import Group
from memoria.models.group_member import GroupMember
from memoria.models.message import Message
from memoria.models.notification import Notification
from memoria.models.response import Response
from memoria.models.user import User
from memoria.models.vote import Vote
from memoria.services.connection_graph import ConnectionGraph
from memoria.services.group_roster import GroupRoster
from memoria.services.notification_hub import NotificationHub
from memoria.services.profiles import get_user_or_404

logger = logging.getLogger(__name__)


def _contains_pattern(query: str) -> str:
    """LIKE pattern matching query literally; % and _ lose their wildcard meaning."""
    escaped = (
        query.strip()
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    return f"%{escaped}%"


@dataclass
class UserStats:
    response_count: int
    votes_received: int
    friend_count: int


class UserDirectory:
    def __init__(self, db: AsyncSession, notifications: NotificationHub | None = None):
        self.db = db
        self.notifications = notifications or NotificationHub(db)

    async def _handle_taken(self, handle: str, exclude_user_id: str | None = None) -> bool:
        query = select(User.id).where(User.handle == handle)
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        result = await self.db.execute(query)
        return result.first() is not None

    async def ensure_user(self, identity: Identity) -> User:
        """Return the caller's User row, creating it on first sign-in."""
        user = await self.db.get(User, identity.user_id)
        if user is not None:
            return user

        handle = identity.handle
        if await self._handle_taken(handle):
            handle = f"{handle}-{identity.user_id[-6:]}"
        user = User(
            id=identity.user_id,
            display_name=identity.display_name,
            handle=handle,
            avatar_url=identity.avatar_url,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Concurrent first request from the same user created the row
            await self.db.rollback()
            user = await self.db.get(User, identity.user_id)
            if user is None:
                raise
            return user
        logger.info("User created", extra={"user_id": user.id})
        return user

    async def get(self, user_id: str) -> User:
        return await get_user_or_404(self.db, user_id)

    async def update_profile(
        self, user_id: str, display_name: str | None = None,
        handle: str | None = None, bio: str | None = None,
        avatar_url: str | None = None,
    ) -> User:
        user = await get_user_or_404(self.db, user_id)
        if handle is not None and handle != user.handle:
            if await self._handle_taken(handle, exclude_user_id=user_id):
                raise AlreadyExistsError(f"Handle '{handle}' is already taken")
            user.handle = handle
        if display_name is not None:
            user.display_name = display_name
        if bio is not None:
            user.bio = bio
        if avatar_url is not None:
            user.avatar_url = avatar_url
        user.updated_at = utcnow()
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise AlreadyExistsError(f"Handle '{handle}' is already taken")
        logger.info("Profile updated", extra={"user_id": user_id})
        return user

    async def search(
        self, query: str, viewer_id: str, limit: int = 20,
    ) -> list[tuple[User, ConnectionView]]:
        """Users whose name or handle contains query, with the viewer's connection status."""
        pattern = _contains_pattern(query)
        result = await self.db.execute(
            select(User)
            .where(
                User.id != viewer_id,
                or_(
                    User.display_name.ilike(pattern, escape="\\"),
                    User.handle.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(User.display_name)
            .limit(limit),
        )
        users = list(result.scalars().all())
        if not users:
            return []

        pairs = [canonical_pair(viewer_id, u.id) for u in users]
        result = await self.db.execute(
            select(Connection).where(
                or_(Connection.requester_id == viewer_id, Connection.recipient_id == viewer_id),
            ),
        )
        by_pair = {
            (c.pair_low, c.pair_high): c for c in result.scalars().all()
        }
        return [
            (u, view_for(by_pair.get(pair), viewer_id, u.id))
            for u, pair in zip(users, pairs)
        ]

    async def stats(self, user_id: str) -> UserStats:
        await get_user_or_404(self.db, user_id)
        result = await self.db.execute(
            select(func.count(Response.id), func.coalesce(func.sum(Response.vote_count), 0))
            .where(Response.user_id == user_id),
        )
        response_count, votes_received = result.one()
        friend_count = await ConnectionGraph(self.db, self.notifications).friend_count(user_id)
        return UserStats(
            response_count=response_count,
            votes_received=int(votes_received),
            friend_count=friend_count,
        )

    async def delete_account(self, user_id: str) -> None:
        await get_user_or_404(self.db, user_id)

        roster = GroupRoster(self.db, self.notifications)
        result = await self.db.execute(select(Group.id).where(Group.creator_id == user_id))
        for group_id in result.scalars().all():
            await roster.delete(user_id, group_id)

        own_responses = select(Response.id).where(Response.user_id == user_id)
        voted_responses = select(Vote.response_id).where(Vote.voter_id == user_id)
        user_chats = select(Chat.id).where(
            or_(Chat.participant_a == user_id, Chat.participant_b == user_id),
        )
        for statement in (
            update(Response)
            .where(Response.id.in_(voted_responses))
            .values(vote_count=Response.vote_count - 1),
            delete(Vote).where(Vote.voter_id == user_id),
            delete(Vote).where(Vote.response_id.in_(own_responses)),
            delete(Response).where(Response.user_id == user_id),
            delete(GroupMember).where(GroupMember.user_id == user_id),
            delete(Connection).where(
                or_(Connection.requester_id == user_id, Connection.recipient_id == user_id),
            ),
            delete(Message).where(Message.chat_id.in_(user_chats)),
            delete(Chat).where(
                or_(Chat.participant_a == user_id, Chat.participant_b == user_id),
            ),
            delete(Notification).where(Notification.user_id == user_id),
            delete(User).where(User.id == user_id),
        ):
            await self.db.execute(statement.execution_options(synchronize_session=False))
        await self.db.commit()
        self.db.expunge_all()
        logger.info("Account deleted", extra={"user_id": user_id})
