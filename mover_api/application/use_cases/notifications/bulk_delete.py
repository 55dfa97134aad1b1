"""Use case for deleting notifications in bulk from the admin dashboard."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from mover_api.domain.entities import LifecycleStatus
from mover_api.infrastructure.repositories import NotificationCriteria, NotificationRepository
from mover_api.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


def bulk_delete_notifications(
    session: Session,
    *,
    confirm_deletion: bool,
    notification_ids: Sequence[int] | None = None,
    notification_group: str | None = None,
    lifecycle_status: LifecycleStatus | None = None,
    older_than_days: int | None = None,
    read_by_all_only: bool = False,
    now: datetime | None = None,
) -> int:
    """Delete the records matching every given criterion and return how many went.

    Deletion needs an explicit confirmation and at least one criterion so an
    empty request can never wipe the collection.
    """

    if not confirm_deletion:
        raise ValueError("Deletion must be explicitly confirmed")
    if older_than_days is not None and older_than_days < 1:
        raise ValueError("older_than_days must be a positive number of days")

    current = now or now_in_app_timezone()
    criteria = NotificationCriteria(
        lifecycle_status=lifecycle_status,
        notification_group=notification_group,
        is_read_by_all_users=True if read_by_all_only else None,
        created_before=current - timedelta(days=older_than_days) if older_than_days else None,
    )
    if criteria.is_empty() and not notification_ids:
        raise ValueError("At least one deletion criterion is required")

    repository = NotificationRepository(session)
    matching = {record.id for record in repository.list(criteria)}
    if notification_ids:
        matching &= set(notification_ids)

    deleted = repository.delete_many(sorted(matching))
    logger.info("Bulk deleted %d notifications", deleted)
    return deleted


__all__ = ["bulk_delete_notifications"]
