"""Connection Graph - friend-request lifecycle between two users.

Invariants:
    - At most one Connection per unordered pair: pre-checked, then guaranteed
      by the uq_connection_pair constraint at insert time
    - respond() is a compare-and-swap on status='pending': exactly one caller wins
    - Friend counts are derived from accepted connections, never stored
    - Notifications are emitted after commit and never fail the mutation

Design Decisions:
    - Pure rule checks live in core/enforce_connections.py; this class only
      loads rows, raises the returned error, writes and fans out
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.domain_types import ConnectionStatus, ConnectionView
from memoria.core.enforce_connections import (
    check_can_respond, check_not_self, friend_ids, resolved_status,
    validate_send_request, view_for,
)
from memoria.core.errors import (
    AlreadyExistsError, InvalidStateError, ResourceNotFoundError,
)
from memoria.core.notification_payloads import (
    FriendRequestAcceptedPayload, FriendRequestDeclinedPayload,
    FriendRequestPayload,
)
from memoria.core.pairs import canonical_pair
from memoria.core.timestamps import utcnow
from memoria.models.connection import Connection
from memoria.models.user import User
from memoria.services.notification_hub import NotificationHub
from memoria.services.profiles import display_name, get_user_or_404, users_by_id

logger = logging.getLogger(__name__)


def _touching(user_id: str):
    return or_(Connection.requester_id == user_id, Connection.recipient_id == user_id)


class ConnectionGraph:
    """Friend-request state machine: send, respond, status, friends."""

    def __init__(self, db: AsyncSession, notifications: NotificationHub | None = None):
        self.db = db
        self.notifications = notifications or NotificationHub(db)

    async def find_between(self, a: str, b: str) -> Connection | None:
        """The Connection for {a, b} in either orientation, if any."""
        low, high = canonical_pair(a, b)
        result = await self.db.execute(
            select(Connection).where(
                Connection.pair_low == low, Connection.pair_high == high,
            ),
        )
        return result.scalar_one_or_none()

    async def send_request(self, requester_id: str, recipient_id: str) -> Connection:
        error = check_not_self(requester_id, recipient_id)
        if error:
            raise error
        await get_user_or_404(self.db, recipient_id)
        existing = await self.find_between(requester_id, recipient_id)
        error = validate_send_request(requester_id, recipient_id, existing)
        if error:
            raise error

        low, high = canonical_pair(requester_id, recipient_id)
        connection = Connection(
            requester_id=requester_id,
            recipient_id=recipient_id,
            pair_low=low,
            pair_high=high,
            status=ConnectionStatus.PENDING.value,
        )
        self.db.add(connection)
        try:
            await self.db.commit()
        except IntegrityError:
            # Concurrent request for the same pair won the insert
            await self.db.rollback()
            logger.warning(
                "Duplicate connection rejected by constraint",
                extra={"user_id": requester_id},
            )
            raise AlreadyExistsError("Connection already exists")

        logger.info(
            "Friend request sent",
            extra={"user_id": requester_id, "connection_id": str(connection.id)},
        )
        await self.notifications.emit(recipient_id, FriendRequestPayload(
            from_user_id=requester_id,
            from_name=await display_name(self.db, requester_id),
        ))
        return connection

    async def respond(
        self, connection_id: UUID, accept: bool, acting_user_id: str,
        now: datetime | None = None,
    ) -> Connection:
        """Recipient accepts or rejects a pending request, exactly once."""
        now = now or utcnow()
        connection = await self.db.get(Connection, connection_id)
        error = check_can_respond(connection, str(connection_id), acting_user_id)
        if error:
            raise error

        new_status = resolved_status(accept)
        result = await self.db.execute(
            update(Connection)
            .where(
                Connection.id == connection_id,
                Connection.status == ConnectionStatus.PENDING.value,
            )
            .values(status=new_status.value, updated_at=now)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise InvalidStateError("Friend request was already answered")
        await self.db.commit()
        await self.db.refresh(connection)

        logger.info(
            f"Friend request {new_status.value}",
            extra={"user_id": acting_user_id, "connection_id": str(connection_id)},
        )
        payload_type = (
            FriendRequestAcceptedPayload if accept else FriendRequestDeclinedPayload
        )
        await self.notifications.emit(connection.requester_id, payload_type(
            from_user_id=acting_user_id,
            from_name=await display_name(self.db, acting_user_id),
        ))
        return connection

    async def status(
        self, viewer_id: str, other_id: str,
    ) -> tuple[ConnectionView, Connection | None]:
        if viewer_id == other_id:
            return ConnectionView.SELF, None
        connection = await self.find_between(viewer_id, other_id)
        return view_for(connection, viewer_id, other_id), connection

    async def friends(self, user_id: str) -> list[User]:
        result = await self.db.execute(
            select(Connection).where(
                _touching(user_id),
                Connection.status == ConnectionStatus.ACCEPTED.value,
            ),
        )
        ids = friend_ids(result.scalars().all(), user_id)
        profiles = await users_by_id(self.db, ids)
        return [profiles[uid] for uid in ids if uid in profiles]

    async def friend_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Connection).where(
                _touching(user_id),
                Connection.status == ConnectionStatus.ACCEPTED.value,
            ),
        )
        return result.scalar_one()

    async def incoming_requests(self, user_id: str) -> list[tuple[Connection, User | None]]:
        """Pending requests addressed to user_id, newest first, requester joined."""
        result = await self.db.execute(
            select(Connection)
            .where(
                Connection.recipient_id == user_id,
                Connection.status == ConnectionStatus.PENDING.value,
            )
            .order_by(Connection.created_at.desc()),
        )
        pending = list(result.scalars().all())
        profiles = await users_by_id(self.db, [c.requester_id for c in pending])
        return [(c, profiles.get(c.requester_id)) for c in pending]

    async def remove_friend(self, user_id: str, friend_id: str) -> None:
        connection = await self.find_between(user_id, friend_id)
        if connection is None or connection.status != ConnectionStatus.ACCEPTED.value:
            raise ResourceNotFoundError("Friendship", friend_id)
        await self.db.execute(
            delete(Connection)
            .where(Connection.id == connection.id)
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        logger.info(
            "Friend removed",
            extra={"user_id": user_id, "connection_id": str(connection.id)},
        )
