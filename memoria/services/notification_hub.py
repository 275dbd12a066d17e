"""Notification Hub - durable fan-out of typed events to users' inboxes.

Invariants:
    - emit/emit_many run AFTER the causing mutation committed; a failure here
      is logged and swallowed, never rolling back or failing that mutation
    - Rows are inserted with is_read=False; only is_read is ever updated
    - delete/mark_read enforce ownership (NotFound vs Unauthorized)

Design Decisions:
    - Same AsyncSession as the caller: the primary commit already happened,
      so a rollback here discards only the notification rows
    - Best-effort, at-least-once from the caller's view; no retry, no ordering
      guarantee between notifications
"""

import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.core.notification_payloads import (
    NotificationPayload, check_notification_owner,
)
from memoria.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationHub:
    """Inbox writes (fan-out) and reads for one request's DB session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Fan-out ─────────────────────────────────────────────────

    async def emit(self, user_id: str, payload: NotificationPayload) -> int:
        return await self.emit_many([user_id], payload)

    async def emit_many(
        self, user_ids: Iterable[str], payload: NotificationPayload,
    ) -> int:
        """Insert one notification per distinct recipient. Returns rows written (0 on failure)."""
        recipients = list(dict.fromkeys(user_ids))
        if not recipients:
            return 0
        try:
            for user_id in recipients:
                self.db.add(Notification(
                    user_id=user_id,
                    type=payload.TYPE.value,
                    payload=payload.to_wire(),
                    payload_version=payload.SCHEMA_VERSION,
                    is_read=False,
                ))
            await self.db.commit()
        except Exception as e:
            logger.warning(
                f"Dropped notification fan-out: {e}",
                extra={
                    "notification_type": payload.TYPE.value,
                    "recipients": len(recipients),
                },
            )
            await self._discard_pending()
            return 0
        logger.info(
            "Notifications emitted",
            extra={
                "notification_type": payload.TYPE.value,
                "recipients": len(recipients),
            },
        )
        return len(recipients)

    async def _discard_pending(self) -> None:
        try:
            await self.db.rollback()
        except Exception as e:
            logger.warning(f"Rollback after failed fan-out also failed: {e}")

    # ─── Inbox reads ─────────────────────────────────────────────

    async def inbox(self, user_id: str, limit: int = 50) -> list[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit),
        )
        return list(result.scalars().all())

    async def unread_count(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Notification).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            ),
        )
        return result.scalar_one()

    # ─── Inbox writes ────────────────────────────────────────────

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        return result.rowcount

    async def mark_read(self, user_id: str, notification_id: UUID) -> Notification:
        notification = await self._owned(user_id, notification_id)
        notification.is_read = True
        await self.db.commit()
        return notification

    async def clear_read(self, user_id: str) -> int:
        """Bulk delete of the user's read notifications."""
        result = await self.db.execute(
            delete(Notification).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(True),
            ).execution_options(synchronize_session=False),
        )
        await self.db.commit()
        return result.rowcount

    async def delete(self, user_id: str, notification_id: UUID) -> None:
        notification = await self._owned(user_id, notification_id)
        await self.db.delete(notification)
        await self.db.commit()

    async def _owned(self, user_id: str, notification_id: UUID) -> Notification:
        notification = await self.db.get(Notification, notification_id)
        error = check_notification_owner(
            notification.user_id if notification else None,
            str(notification_id), user_id,
        )
        if error:
            raise error
        return notification
