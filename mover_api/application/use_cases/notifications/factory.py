"""Use cases for creating notification records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from mover_api.domain.entities import (
    DEFAULT_LIFETIME,
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    DocumentSubject,
    FieldChange,
    NotificationMetadata,
    NotificationPriority,
    NotificationRecord,
    NotificationSubject,
    NotificationType,
    ReminderSubject,
    SystemSubject,
    UserSubject,
)
from mover_api.domain.errors import EmptyRecipientSet
from mover_api.infrastructure.repositories import NotificationRepository
from mover_api.utils import ensure_app_timezone, now_in_app_timezone

from .group_identity import derive_group, lifecycle_reminder_group
from .templates import (
    REMINDER_ACTION_TEXT,
    REMINDER_ACTION_URL,
    REMINDER_TITLE,
    default_priority,
    render,
    render_reminder_message,
    truncate,
)

logger = logging.getLogger(__name__)

REVIEW_REASON_30_DAY: str = "30_day_lifecycle_check"


def create_notification(
    session: Session,
    event_type: NotificationType | str,
    subject: NotificationSubject | None,
    actor_id: int | None,
    recipient_ids: Iterable[int],
    details: Sequence[FieldChange | dict[str, Any]] | None = None,
    *,
    notification_group: str | None = None,
    now: datetime | None = None,
) -> NotificationRecord:
    """Build, validate and persist a new notification record.

    The event type is checked before the recipients so an unknown type is
    always reported as such. Nothing is written when validation fails.
    """

    parsed_type = NotificationType.parse(event_type)
    recipients = _normalize_recipients(recipient_ids)
    changes = [_to_change(item) for item in details or ()]
    created_at = ensure_app_timezone(now) if now else now_in_app_timezone()

    rendered = render(parsed_type, subject, changes)
    record = NotificationRecord(
        id=None,
        notification_group=notification_group
        or derive_group(parsed_type, subject.subject_id if subject else None, created_at),
        recipient_user_ids=recipients,
        type=parsed_type,
        title=rendered.title,
        message=rendered.message,
        created_at=created_at,
        expires_at=created_at + DEFAULT_LIFETIME,
        priority=default_priority(parsed_type),
        metadata=NotificationMetadata(subject=subject, changes=changes),
        actor_id=actor_id,
        action_url=rendered.action_url,
        action_text=rendered.action_text,
    )
    saved = NotificationRepository(session).create(record)
    logger.debug(
        "Created notification %s (%s) for %d recipients",
        saved.id,
        saved.type.value,
        len(recipients),
    )
    return saved


def create_document_notification(
    session: Session,
    event_type: NotificationType | str,
    *,
    document_type: str,
    document_id: str | int,
    document_number: str | None,
    actor_id: int | None,
    recipient_ids: Iterable[int],
    changes: Sequence[FieldChange | dict[str, Any]] | None = None,
) -> NotificationRecord:
    subject = DocumentSubject(
        document_type=document_type,
        document_id=str(document_id),
        document_number=document_number,
    )
    return create_notification(session, event_type, subject, actor_id, recipient_ids, changes)


def create_user_notification(
    session: Session,
    event_type: NotificationType | str,
    *,
    user_name: str,
    user_id: int,
    actor_id: int | None,
    recipient_ids: Iterable[int],
    changes: Sequence[FieldChange | dict[str, Any]] | None = None,
) -> NotificationRecord:
    subject = UserSubject(target_user_id=user_id, user_name=user_name)
    return create_notification(session, event_type, subject, actor_id, recipient_ids, changes)


def create_system_notification(
    session: Session,
    event_type: NotificationType | str,
    *,
    title: str,
    message: str,
    recipient_ids: Iterable[int],
    priority: NotificationPriority | str = NotificationPriority.NORMAL,
    details: dict[str, Any] | None = None,
) -> NotificationRecord:
    """Create a system notification with caller supplied text and priority."""

    parsed_type = NotificationType.parse(event_type)
    recipients = _normalize_recipients(recipient_ids)
    created_at = now_in_app_timezone()
    subject = SystemSubject(details=dict(details or {}))

    record = NotificationRecord(
        id=None,
        notification_group=derive_group(parsed_type, None, created_at),
        recipient_user_ids=recipients,
        type=parsed_type,
        title=truncate(title, TITLE_MAX_LENGTH),
        message=truncate(message, MESSAGE_MAX_LENGTH),
        created_at=created_at,
        expires_at=created_at + DEFAULT_LIFETIME,
        priority=NotificationPriority(priority),
        metadata=NotificationMetadata(subject=subject),
    )
    return NotificationRepository(session).create(record)


def create_lifecycle_reminder(
    session: Session,
    original: NotificationRecord,
    admin_ids: Iterable[int],
    *,
    now: datetime | None = None,
) -> NotificationRecord:
    """Create the admin reminder for a record whose deadline has elapsed."""

    parsed_type = NotificationType.SYSTEM_MAINTENANCE
    recipients = _normalize_recipients(admin_ids)
    created_at = ensure_app_timezone(now) if now else now_in_app_timezone()
    subject = ReminderSubject(
        original_notification_id=original.id,
        original_notification_group=original.notification_group,
        review_reason=REVIEW_REASON_30_DAY,
        original_created_at=original.created_at,
    )

    record = NotificationRecord(
        id=None,
        notification_group=lifecycle_reminder_group(created_at),
        recipient_user_ids=recipients,
        type=parsed_type,
        title=REMINDER_TITLE,
        message=render_reminder_message(original.title, original.created_at),
        created_at=created_at,
        expires_at=created_at + DEFAULT_LIFETIME,
        priority=NotificationPriority.HIGH,
        metadata=NotificationMetadata(subject=subject),
        action_url=REMINDER_ACTION_URL,
        action_text=REMINDER_ACTION_TEXT,
    )
    return NotificationRepository(session).create(record)


def _normalize_recipients(recipient_ids: Iterable[int]) -> frozenset[int]:
    recipients = frozenset(int(value) for value in recipient_ids if value is not None)
    if not recipients:
        raise EmptyRecipientSet()
    return recipients


def _to_change(item: FieldChange | dict[str, Any]) -> FieldChange:
    if isinstance(item, FieldChange):
        return item
    return FieldChange.from_document(item)


__all__ = [
    "REVIEW_REASON_30_DAY",
    "create_document_notification",
    "create_lifecycle_reminder",
    "create_notification",
    "create_system_notification",
    "create_user_notification",
]
