"""Notification Schemas - inbox entries and badge polling.

Invariants:
    - payload keeps its camelCase wire keys; payload_version travels with it
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: UUID
    type: str
    payload: dict
    payload_version: int
    summary: str
    is_read: bool
    created_at: datetime


class UnreadCountOut(BaseModel):
    unread_count: int
    poll_interval_seconds: int


class BulkResult(BaseModel):
    count: int
