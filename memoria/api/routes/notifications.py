"""Notification Routes - inbox, badge polling, read/clear/delete.

Invariants:
    - Every route acts on the caller's own notifications only
    - unread-count tells clients how often to poll (no push channel)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.api.deps import get_current_user
from memoria.config import get_settings
from memoria.core.notification_payloads import parse_payload, summarize
from memoria.infrastructure.database import get_db
from memoria.models.notification import Notification
from memoria.models.user import User
from memoria.schemas.notification import BulkResult, NotificationOut, UnreadCountOut
from memoria.services.notification_hub import NotificationHub

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


def notification_out(notification: Notification) -> NotificationOut:
    return NotificationOut(
        id=notification.id,
        type=notification.type,
        payload=notification.payload,
        payload_version=notification.payload_version,
        summary=summarize(parse_payload(notification.type, notification.payload)),
        is_read=notification.is_read,
        created_at=notification.created_at,
    )


@router.get("", response_model=list[NotificationOut])
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return [notification_out(n) for n in await NotificationHub(db).inbox(user.id, limit)]


@router.get("/unread-count", response_model=UnreadCountOut)
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCountOut(
        unread_count=await NotificationHub(db).unread_count(user.id),
        poll_interval_seconds=get_settings().notification_poll_interval_seconds,
    )


@router.post("/read-all", response_model=BulkResult)
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return BulkResult(count=await NotificationHub(db).mark_all_read(user.id))


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return notification_out(await NotificationHub(db).mark_read(user.id, notification_id))


@router.delete("/read", response_model=BulkResult)
async def clear_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return BulkResult(count=await NotificationHub(db).clear_read(user.id))


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationHub(db).delete(user.id, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
