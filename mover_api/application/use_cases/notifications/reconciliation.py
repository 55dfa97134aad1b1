"""Repair of the cached "read by all recipients" flag.

``is_read_by_all_users`` is a materialized view over ``recipient_user_ids``
and ``read_by_users``. Writers that replace the whole document can leave it
stale, so a periodic sweep recomputes it and corrects any mismatch. Every
function here is idempotent and safe to interrupt between records.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mover_api.domain.entities import LifecycleStatus, NotificationRecord, NotificationType
from mover_api.domain.errors import NotificationNotFoundError
from mover_api.infrastructure.repositories import NotificationRepository

from .records import update_record
from .settings import get_notification_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    scanned: int
    drifted: int
    corrected: int
    failures: int
    skipped: int = 0


@dataclass(frozen=True)
class InconsistentGroup:
    notification_group: str
    count: int
    types: tuple[NotificationType, ...]
    notification_ids: tuple[int, ...]
    oldest_created_at: datetime
    newest_created_at: datetime


@dataclass(frozen=True)
class LifecycleAnomaly:
    notification_id: int
    notification_group: str
    lifecycle_status: LifecycleStatus
    anomalies: tuple[str, ...]


def is_drifted(record: NotificationRecord) -> bool:
    """Return ``True`` when ``record`` has recipients and a stale cached flag."""

    if not record.recipient_user_ids:
        return False
    return record.has_read_drift()


def reconcile_record(record: NotificationRecord) -> bool:
    """Recompute the cached read state of ``record``; returns ``True`` if it changed."""

    if not record.recipient_user_ids:
        return False

    changed = False
    all_read = record.compute_read_by_all()
    if record.is_read_by_all_users != all_read:
        record.is_read_by_all_users = all_read
        changed = True

    if all_read and not record.read:
        record.read = True
        record.read_at = max(record.read_by_users.values(), default=None)
        changed = True
    elif not record.read_by_users and (record.read or record.read_at is not None):
        record.read = False
        record.read_at = None
        changed = True
    return changed


def _scan(
    session: Session, batch_size: int | None, skipped: list[int]
) -> Iterator[NotificationRecord]:
    """Yield every readable record; unreadable documents are logged into ``skipped``."""

    def on_malformed(notification_id: int, exc: Exception) -> None:
        skipped.append(notification_id)
        logger.warning(
            "Skipping malformed notification %s: %r",
            notification_id,
            exc,
        )

    repository = NotificationRepository(session)
    for batch in repository.iter_batches(
        batch_size=batch_size or get_notification_settings().notification_batch_size,
        on_malformed=on_malformed,
    ):
        yield from batch


def find_drifted(session: Session, *, batch_size: int | None = None) -> list[int]:
    """Return ids of records whose cached flag disagrees with their recipients."""

    return [record.id for record in _scan(session, batch_size, []) if is_drifted(record)]


def reconcile(session: Session, *, batch_size: int | None = None) -> int:
    """Correct every drifted record and return how many flags were fixed."""

    return reconcile_all(session, batch_size=batch_size).corrected


def reconcile_all(session: Session, *, batch_size: int | None = None) -> ReconciliationResult:
    scanned = 0
    skipped: list[int] = []
    drifted_ids: list[int] = []
    for record in _scan(session, batch_size, skipped):
        scanned += 1
        if is_drifted(record):
            drifted_ids.append(record.id)

    def mutate(record: NotificationRecord) -> bool:
        if not is_drifted(record):
            return False
        return reconcile_record(record)

    corrected = 0
    failures = 0
    for notification_id in drifted_ids:
        try:
            _, changed = update_record(session, notification_id, mutate)
        except NotificationNotFoundError:
            continue
        except (SQLAlchemyError, KeyError, ValueError, TypeError):
            failures += 1
            logger.exception("Failed to reconcile notification %s", notification_id)
            continue
        if changed:
            corrected += 1

    if drifted_ids:
        logger.info(
            "Reconciliation corrected %d of %d drifted notifications", corrected, len(drifted_ids)
        )
    return ReconciliationResult(
        scanned=scanned,
        drifted=len(drifted_ids),
        corrected=corrected,
        failures=failures,
        skipped=len(skipped),
    )


def inconsistency_report(session: Session) -> list[InconsistentGroup]:
    """Group drifted records by notification group, largest groups first."""

    grouped: dict[str, list[NotificationRecord]] = {}
    for record in _scan(session, None, []):
        if is_drifted(record):
            grouped.setdefault(record.notification_group, []).append(record)

    report = [
        InconsistentGroup(
            notification_group=group_key,
            count=len(records),
            types=tuple(dict.fromkeys(record.type for record in records)),
            notification_ids=tuple(record.id for record in records),
            oldest_created_at=min(record.created_at for record in records),
            newest_created_at=max(record.created_at for record in records),
        )
        for group_key, records in grouped.items()
    ]
    report.sort(key=lambda group: group.count, reverse=True)
    return report


def lifecycle_anomaly_report(session: Session) -> list[LifecycleAnomaly]:
    """List records whose lifecycle fields form a combination no transition produces."""

    report: list[LifecycleAnomaly] = []
    for record in _scan(session, None, []):
        anomalies = record.lifecycle_anomalies()
        if anomalies:
            report.append(
                LifecycleAnomaly(
                    notification_id=record.id,
                    notification_group=record.notification_group,
                    lifecycle_status=record.lifecycle_status,
                    anomalies=tuple(anomalies),
                )
            )
    return report


__all__ = [
    "InconsistentGroup",
    "LifecycleAnomaly",
    "ReconciliationResult",
    "find_drifted",
    "inconsistency_report",
    "is_drifted",
    "lifecycle_anomaly_report",
    "reconcile",
    "reconcile_all",
    "reconcile_record",
]
