"""Per-recipient read tracking for notification records."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from mover_api.domain.entities import (
    NotificationPriority,
    NotificationRecord,
    NotificationType,
)
from mover_api.domain.errors import NotificationNotFoundError
from mover_api.infrastructure.repositories import NotificationRepository
from mover_api.utils import ensure_app_timezone, now_in_app_timezone

from .records import update_record

logger = logging.getLogger(__name__)


def mark_read(record: NotificationRecord, user_id: int, now: datetime | None = None) -> bool:
    """Record that ``user_id`` has read ``record``.

    Returns ``True`` when the record changed. A user that already has a read
    entry keeps the original timestamp. The aggregate flags only ever move
    towards "read" here; ``mark_unread`` and reconciliation move them back.
    """

    if record.has_read(user_id):
        return False

    read_at = ensure_app_timezone(now) if now else now_in_app_timezone()
    record.read_by_users[user_id] = read_at
    if record.compute_read_by_all():
        record.is_read_by_all_users = True
        if not record.read:
            record.read = True
            record.read_at = read_at
    return True


def mark_unread(record: NotificationRecord, user_id: int) -> bool:
    """Remove the read entry of ``user_id``; returns ``True`` when one existed."""

    if not record.has_read(user_id):
        return False

    del record.read_by_users[user_id]
    record.is_read_by_all_users = record.compute_read_by_all()
    if not record.read_by_users:
        record.read = False
        record.read_at = None
    return True


def mark_notification_read(
    session: Session,
    notification_id: int,
    user_id: int,
    *,
    now: datetime | None = None,
) -> NotificationRecord:
    """Mark one notification as read for ``user_id`` in a single unit of work."""

    def mutate(record: NotificationRecord) -> bool:
        _ensure_recipient(record, user_id)
        return mark_read(record, user_id, now)

    record, _ = update_record(session, notification_id, mutate)
    return record


def mark_notification_unread(
    session: Session, notification_id: int, user_id: int
) -> NotificationRecord:
    def mutate(record: NotificationRecord) -> bool:
        _ensure_recipient(record, user_id)
        return mark_unread(record, user_id)

    record, _ = update_record(session, notification_id, mutate)
    return record


def mark_all_read_for_user(
    session: Session, user_id: int, *, now: datetime | None = None
) -> int:
    """Mark every notification still unread by ``user_id`` and return how many changed.

    Records are updated one at a time; a record deleted after the candidate
    list was built is skipped.
    """

    repository = NotificationRepository(session)
    touched = 0
    for notification_id in repository.list_unread_ids_for_user(user_id):
        try:
            _, changed = update_record(
                session,
                notification_id,
                lambda record: mark_read(record, user_id, now),
            )
        except NotificationNotFoundError:
            logger.warning(
                "Notification %s disappeared while marking all read for user %s",
                notification_id,
                user_id,
            )
            continue
        if changed:
            touched += 1
    return touched


def unread_count_for_user(session: Session, user_id: int) -> int:
    repository = NotificationRepository(session)
    return len(
        repository.list_for_user(
            user_id, now=now_in_app_timezone(), unread_only=True, limit=None
        )
    )


def list_notifications_for_user(
    session: Session,
    user_id: int,
    *,
    unread_only: bool | None = None,
    type: NotificationType | str | None = None,
    priority: NotificationPriority | str | None = None,
    limit: int = 50,
) -> Sequence[NotificationRecord]:
    """Return the visible notifications of ``user_id``, newest first.

    Archived and expired records are hidden.
    """

    repository = NotificationRepository(session)
    return repository.list_for_user(
        user_id,
        now=now_in_app_timezone(),
        unread_only=unread_only,
        type=NotificationType.parse(type) if type is not None else None,
        priority=NotificationPriority(priority) if priority is not None else None,
        limit=limit,
    )


def _ensure_recipient(record: NotificationRecord, user_id: int) -> None:
    if not record.is_recipient(user_id):
        raise NotificationNotFoundError(record.id)


__all__ = [
    "list_notifications_for_user",
    "mark_all_read_for_user",
    "mark_notification_read",
    "mark_notification_unread",
    "mark_read",
    "mark_unread",
    "unread_count_for_user",
]
