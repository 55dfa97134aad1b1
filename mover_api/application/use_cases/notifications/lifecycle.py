"""Administrative lifecycle of notifications: review, extension and archival."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Final

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mover_api.domain.entities import (
    LifecycleExtension,
    LifecycleStatus,
    NotificationRecord,
    NotificationSettings,
    NotificationType,
)
from mover_api.domain.errors import (
    InvalidExtensionWindow,
    NotificationNotFoundError,
)
from mover_api.infrastructure.repositories import (
    NotificationCriteria,
    NotificationRepository,
    UserRepository,
)
from mover_api.utils import days_between, ensure_app_timezone, now_in_app_timezone

from .factory import create_lifecycle_reminder
from .records import update_record
from .settings import get_notification_settings

logger = logging.getLogger(__name__)

MIN_EXTENSION_DAYS: Final[int] = 1
MAX_EXTENSION_DAYS: Final[int] = 90
AUTO_EXTEND_DAYS: Final[int] = 30
AUTO_EXTEND_REASON: Final[str] = "auto_extend_important"
STALE_REVIEW_DAYS: Final[int] = 90
URGENT_AGE_DAYS: Final[int] = 35

_REVIEWABLE: Final[tuple[LifecycleStatus, ...]] = (
    LifecycleStatus.ACTIVE,
    LifecycleStatus.EXTENDED,
)


@dataclass
class AgeCheckResult:
    """Counters describing one lifecycle sweep."""

    checked: int = 0
    reminders_sent: int = 0
    moved_to_review: int = 0
    failures: int = 0
    auto_extended: int = 0
    skipped_without_admins: bool = False
    reminder_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class PendingReviewGroup:
    notification_group: str
    count: int
    types: tuple[NotificationType, ...]
    notification_ids: tuple[int, ...]
    oldest_created_at: datetime
    newest_created_at: datetime
    reminder_sent_at: datetime | None
    days_since_oldest: int
    is_urgent: bool


@dataclass(frozen=True)
class PendingReviewReport:
    groups: tuple[PendingReviewGroup, ...]
    expiring_soon: tuple[NotificationRecord, ...]
    total_pending: int

    @property
    def urgent_groups(self) -> tuple[PendingReviewGroup, ...]:
        return tuple(group for group in self.groups if group.is_urgent)


def validate_extension_days(days: object) -> int:
    """Return ``days`` when it is an integer within the extension window."""

    if (
        isinstance(days, bool)
        or not isinstance(days, int)
        or not MIN_EXTENSION_DAYS <= days <= MAX_EXTENSION_DAYS
    ):
        raise InvalidExtensionWindow(
            days, minimum=MIN_EXTENSION_DAYS, maximum=MAX_EXTENSION_DAYS
        )
    return days


def extend(
    record: NotificationRecord,
    days: int,
    reason: str,
    admin_id: int | None,
    now: datetime | None = None,
) -> NotificationRecord:
    """Push the deadline of ``record`` back by ``days``.

    The new deadline counts from the current effective deadline. Archived
    records are reactivated into ``extended``.
    """

    validate_extension_days(days)
    current = ensure_app_timezone(now) if now else now_in_app_timezone()
    _apply_extension(
        record,
        new_deadline=record.effective_deadline + timedelta(days=days),
        days=days,
        reason=reason,
        admin_id=admin_id,
        now=current,
    )
    return record


def archive(record: NotificationRecord, now: datetime | None = None) -> bool:
    """Archive ``record``; returns ``False`` when it already was archived."""

    if record.lifecycle_status is LifecycleStatus.ARCHIVED:
        return False
    record.transition_to(LifecycleStatus.ARCHIVED)
    record.archived_at = ensure_app_timezone(now) if now else now_in_app_timezone()
    return True


def mark_pending_review(record: NotificationRecord, now: datetime) -> bool:
    """Move an elapsed record into review; returns ``False`` when not eligible."""

    if not _needs_review(record, now):
        return False
    record.transition_to(LifecycleStatus.PENDING_REVIEW)
    record.reminder_sent_at = now
    return True


def extend_notification(
    session: Session,
    notification_id: int,
    days: int,
    reason: str,
    admin_id: int | None,
    *,
    now: datetime | None = None,
) -> NotificationRecord:
    # Checked before loading so an invalid window never touches the store.
    validate_extension_days(days)

    def mutate(record: NotificationRecord) -> bool:
        extend(record, days, reason, admin_id, now)
        return True

    record, _ = update_record(session, notification_id, mutate)
    logger.info(
        "Notification %s extended by %s days until %s (admin %s)",
        notification_id,
        days,
        record.extended_until,
        admin_id,
    )
    return record


def archive_notification(
    session: Session, notification_id: int, *, now: datetime | None = None
) -> NotificationRecord:
    record, changed = update_record(
        session, notification_id, lambda record: archive(record, now)
    )
    if changed:
        logger.info("Notification %s archived", notification_id)
    return record


def send_admin_reminder(
    session: Session,
    record: NotificationRecord,
    admin_ids: list[int],
    *,
    now: datetime | None = None,
) -> NotificationRecord:
    """Create the review reminder for ``record`` addressed to ``admin_ids``."""

    return create_lifecycle_reminder(session, record, admin_ids, now=now)


def run_age_check(
    session: Session,
    *,
    now: datetime | None = None,
    settings: NotificationSettings | None = None,
) -> AgeCheckResult:
    """Move every elapsed record into review after reminding the admins.

    The reminder is created first; a record whose reminder could not be
    created keeps its state and is picked up again by the next sweep.
    """

    current = ensure_app_timezone(now) if now else now_in_app_timezone()
    settings = settings or get_notification_settings()
    result = AgeCheckResult()

    admin_ids = UserRepository(session).list_active_admin_ids()
    if not admin_ids:
        logger.warning("No active administrators found; skipping lifecycle reminders")
        result.skipped_without_admins = True
    else:
        _remind_elapsed(session, current, admin_ids, settings, result)

    if settings.auto_extend_important:
        result.auto_extended = auto_extend_important(session, now=current, settings=settings)

    logger.info(
        "Lifecycle age check: %d checked, %d reminders, %d moved to review, %d failures",
        result.checked,
        result.reminders_sent,
        result.moved_to_review,
        result.failures,
    )
    return result


def auto_extend_important(
    session: Session,
    *,
    now: datetime | None = None,
    settings: NotificationSettings | None = None,
) -> int:
    """Extend never-extended important records under review for another 30 days."""

    current = ensure_app_timezone(now) if now else now_in_app_timezone()
    settings = settings or get_notification_settings()
    if not settings.important_notification_types:
        return 0

    repository = NotificationRepository(session)
    criteria = NotificationCriteria(
        lifecycle_status=LifecycleStatus.PENDING_REVIEW,
        types=tuple(settings.important_notification_types),
    )
    candidate_ids = [
        record.id
        for batch in repository.iter_batches(
            criteria, batch_size=settings.notification_batch_size
        )
        for record in batch
        if not record.metadata.extensions
    ]

    def mutate(record: NotificationRecord) -> bool:
        if (
            record.lifecycle_status is not LifecycleStatus.PENDING_REVIEW
            or record.metadata.extensions
            or not settings.is_important(record.type)
        ):
            return False
        _apply_extension(
            record,
            new_deadline=current + timedelta(days=AUTO_EXTEND_DAYS),
            days=AUTO_EXTEND_DAYS,
            reason=AUTO_EXTEND_REASON,
            admin_id=None,
            now=current,
        )
        return True

    extended = 0
    for notification_id in candidate_ids:
        try:
            _, changed = update_record(session, notification_id, mutate)
        except NotificationNotFoundError:
            continue
        except SQLAlchemyError:
            logger.exception("Failed to auto-extend notification %s", notification_id)
            continue
        if changed:
            extended += 1
    if extended:
        logger.info("Auto-extended %d important notifications", extended)
    return extended


def archive_stale_reviews(
    session: Session,
    *,
    older_than_days: int = STALE_REVIEW_DAYS,
    now: datetime | None = None,
    batch_size: int | None = None,
) -> int:
    """Archive records left in review longer than ``older_than_days``."""

    current = ensure_app_timezone(now) if now else now_in_app_timezone()
    cutoff = current - timedelta(days=older_than_days)
    repository = NotificationRepository(session)
    criteria = NotificationCriteria(
        lifecycle_status=LifecycleStatus.PENDING_REVIEW,
        reminder_sent_before=cutoff,
    )
    candidate_ids = [
        record.id
        for batch in repository.iter_batches(
            criteria,
            batch_size=batch_size or get_notification_settings().notification_batch_size,
        )
        for record in batch
    ]

    def mutate(record: NotificationRecord) -> bool:
        if record.lifecycle_status is not LifecycleStatus.PENDING_REVIEW:
            return False
        return archive(record, current)

    archived = 0
    for notification_id in candidate_ids:
        try:
            _, changed = update_record(session, notification_id, mutate)
        except NotificationNotFoundError:
            continue
        except SQLAlchemyError:
            logger.exception("Failed to archive stale notification %s", notification_id)
            continue
        if changed:
            archived += 1
    return archived


def pending_review_report(
    session: Session,
    *,
    now: datetime | None = None,
    settings: NotificationSettings | None = None,
) -> PendingReviewReport:
    """Group the records awaiting review and list those about to expire."""

    current = ensure_app_timezone(now) if now else now_in_app_timezone()
    settings = settings or get_notification_settings()
    repository = NotificationRepository(session)

    pending = repository.list(
        NotificationCriteria(lifecycle_status=LifecycleStatus.PENDING_REVIEW)
    )
    grouped: dict[str, list[NotificationRecord]] = {}
    for record in pending:
        grouped.setdefault(record.notification_group, []).append(record)

    groups = []
    for group_key, records in grouped.items():
        oldest = min(record.created_at for record in records)
        newest = max(record.created_at for record in records)
        reminders = [record.reminder_sent_at for record in records if record.reminder_sent_at]
        age_days = int(days_between(oldest, current))
        groups.append(
            PendingReviewGroup(
                notification_group=group_key,
                count=len(records),
                types=tuple(dict.fromkeys(record.type for record in records)),
                notification_ids=tuple(record.id for record in records),
                oldest_created_at=oldest,
                newest_created_at=newest,
                reminder_sent_at=max(reminders) if reminders else None,
                days_since_oldest=age_days,
                is_urgent=age_days > URGENT_AGE_DAYS,
            )
        )
    groups.sort(key=lambda group: group.oldest_created_at)

    horizon = current + timedelta(days=settings.reminder_days_before_expiry)
    expiring_soon = [
        record
        for record in repository.list(
            NotificationCriteria(lifecycle_statuses=_REVIEWABLE)
        )
        if current < record.effective_deadline <= horizon
    ]
    return PendingReviewReport(
        groups=tuple(groups),
        expiring_soon=tuple(expiring_soon),
        total_pending=len(pending),
    )


def _remind_elapsed(
    session: Session,
    now: datetime,
    admin_ids: list[int],
    settings: NotificationSettings,
    result: AgeCheckResult,
) -> None:
    repository = NotificationRepository(session)
    criteria = NotificationCriteria(lifecycle_statuses=_REVIEWABLE, expires_before=now)
    candidates = [
        record
        for batch in repository.iter_batches(
            criteria, batch_size=settings.notification_batch_size
        )
        for record in batch
        if _needs_review(record, now)
    ]

    for record in candidates:
        result.checked += 1
        try:
            reminder = send_admin_reminder(session, record, admin_ids, now=now)
        except Exception:  # a failed reminder never aborts the sweep
            session.rollback()
            result.failures += 1
            logger.exception("Failed to create lifecycle reminder for notification %s", record.id)
            continue
        result.reminders_sent += 1
        result.reminder_ids.append(reminder.id)

        try:
            _, moved = update_record(
                session, record.id, lambda locked: mark_pending_review(locked, now)
            )
        except NotificationNotFoundError:
            logger.warning("Notification %s disappeared during the age check", record.id)
            continue
        except SQLAlchemyError:
            result.failures += 1
            logger.exception("Failed to move notification %s into review", record.id)
            continue
        if moved:
            result.moved_to_review += 1


def _needs_review(record: NotificationRecord, now: datetime) -> bool:
    return (
        record.lifecycle_status in _REVIEWABLE
        and record.reminder_sent_at is None
        and record.is_deadline_elapsed(now)
    )


def _apply_extension(
    record: NotificationRecord,
    *,
    new_deadline: datetime,
    days: int,
    reason: str,
    admin_id: int | None,
    now: datetime,
) -> None:
    previous_deadline = record.effective_deadline
    record.transition_to(LifecycleStatus.EXTENDED)
    record.extended_until = new_deadline
    record.expires_at = new_deadline
    record.reminder_sent_at = None
    record.archived_at = None
    record.metadata.extensions.append(
        LifecycleExtension(
            extended_by=admin_id,
            extended_at=now,
            extend_days=days,
            reason=reason,
            previous_deadline=previous_deadline,
        )
    )


__all__ = [
    "AUTO_EXTEND_DAYS",
    "AUTO_EXTEND_REASON",
    "MAX_EXTENSION_DAYS",
    "MIN_EXTENSION_DAYS",
    "URGENT_AGE_DAYS",
    "AgeCheckResult",
    "PendingReviewGroup",
    "PendingReviewReport",
    "archive",
    "archive_notification",
    "archive_stale_reviews",
    "auto_extend_important",
    "extend",
    "extend_notification",
    "mark_pending_review",
    "pending_review_report",
    "run_age_check",
    "send_admin_reminder",
    "validate_extension_days",
]
