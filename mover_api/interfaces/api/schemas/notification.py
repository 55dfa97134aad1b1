"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from mover_api.domain.entities import (
    LifecycleStatus,
    NotificationPriority,
    NotificationRecord,
    NotificationType,
)


class ReadReceiptRead(BaseModel):
    user_id: int
    read_at: datetime | None = None


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    notification_group: str
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    lifecycle_status: LifecycleStatus
    recipient_user_ids: list[int]
    read_by_users: list[ReadReceiptRead] = Field(default_factory=list)
    is_read_by_all_users: bool
    read: bool
    read_at: datetime | None = None
    is_read: bool | None = Field(
        default=None, description="Whether the requesting user has read the notification"
    )
    created_at: datetime
    expires_at: datetime
    extended_until: datetime | None = None
    reminder_sent_at: datetime | None = None
    archived_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    actor_id: int | None = None
    action_url: str | None = None
    action_text: str | None = None

    @classmethod
    def from_record(
        cls, record: NotificationRecord, *, viewer_id: int | None = None
    ) -> "NotificationRead":
        return cls(
            id=record.id or 0,
            notification_group=record.notification_group,
            type=record.type,
            title=record.title,
            message=record.message,
            priority=record.priority,
            lifecycle_status=record.lifecycle_status,
            recipient_user_ids=sorted(record.recipient_user_ids),
            read_by_users=[
                ReadReceiptRead(user_id=user_id, read_at=read_at)
                for user_id, read_at in sorted(record.read_by_users.items())
            ],
            is_read_by_all_users=record.is_read_by_all_users,
            read=record.read,
            read_at=record.read_at,
            is_read=record.has_read(viewer_id) if viewer_id is not None else None,
            created_at=record.created_at,
            expires_at=record.expires_at,
            extended_until=record.extended_until,
            reminder_sent_at=record.reminder_sent_at,
            archived_at=record.archived_at,
            metadata=record.metadata.to_document(),
            actor_id=record.actor_id,
            action_url=record.action_url,
            action_text=record.action_text,
        )


class UnreadCountRead(BaseModel):
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int


__all__ = [
    "MarkAllReadResponse",
    "NotificationRead",
    "ReadReceiptRead",
    "UnreadCountRead",
]
