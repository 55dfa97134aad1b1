"""Read-only aggregations over notification records for the admin dashboard."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from math import ceil
from typing import Final, Literal

from sqlalchemy.orm import Session

from mover_api.domain.entities import (
    LifecycleStatus,
    NotificationPriority,
    NotificationRecord,
    NotificationType,
)
from mover_api.infrastructure.repositories import NotificationCriteria, NotificationRepository
from mover_api.utils import days_between, now_in_app_timezone

from .lifecycle import URGENT_AGE_DAYS

SortField = Literal["oldest_created", "newest_created", "count", "read_percentage"]
SortOrder = Literal["asc", "desc"]

DEFAULT_PAGE_SIZE: Final[int] = 20
MAX_PAGE_SIZE: Final[int] = 100


@dataclass(frozen=True)
class NotificationFilter:
    """Filters shared by every summary."""

    lifecycle_status: LifecycleStatus | None = None
    type: NotificationType | None = None
    notification_group: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None

    def to_criteria(self) -> NotificationCriteria:
        return NotificationCriteria(
            lifecycle_status=self.lifecycle_status,
            type=self.type,
            notification_group=self.notification_group,
            created_from=self.date_from,
            created_to=self.date_to,
        )


@dataclass(frozen=True)
class SummaryBucket:
    """Counts shared by group, status and type summaries."""

    key: str
    count: int
    read_by_all_count: int
    read_percentage: float
    oldest_created_at: datetime | None
    newest_created_at: datetime | None


@dataclass(frozen=True)
class GroupSummary(SummaryBucket):
    types: tuple[NotificationType, ...] = ()
    lifecycle_statuses: tuple[LifecycleStatus, ...] = ()
    priorities: tuple[NotificationPriority, ...] = ()
    notification_ids: tuple[int, ...] = ()
    total_recipients: int = 0
    days_since_oldest: int = 0
    is_urgent: bool = False


@dataclass(frozen=True)
class OverallStats:
    total_notifications: int
    total_groups: int
    by_lifecycle_status: dict[LifecycleStatus, int]
    total_read_by_all: int
    read_percentage: float
    urgent_groups: int


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


@dataclass(frozen=True)
class GroupSummaryPage:
    groups: tuple[GroupSummary, ...]
    pagination: Pagination
    overall: OverallStats


def read_percentage(read_count: int, total: int) -> float:
    """Return ``read_count / total`` as a percentage rounded to one decimal."""

    if total <= 0:
        return 0.0
    return round(read_count / total * 100, 1)


def summary_by_group(
    session: Session,
    notification_filter: NotificationFilter | None = None,
    *,
    sort_by: SortField = "oldest_created",
    sort_order: SortOrder = "asc",
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    now: datetime | None = None,
) -> GroupSummaryPage:
    """Summarize the filtered records per notification group.

    An empty selection yields an empty page with zero-valued statistics.
    """

    current = now or now_in_app_timezone()
    records = _load(session, notification_filter)
    grouped = _group_by(records, lambda record: record.notification_group)
    groups = [_group_summary(key, items, current) for key, items in grouped.items()]
    groups.sort(key=_SORT_KEYS.get(sort_by, _SORT_KEYS["oldest_created"]), reverse=sort_order == "desc")

    limit = max(1, min(int(limit), MAX_PAGE_SIZE))
    page = max(1, int(page))
    start = (page - 1) * limit
    pagination = Pagination(
        page=page,
        limit=limit,
        total=len(groups),
        pages=ceil(len(groups) / limit) if groups else 0,
    )

    by_status = {status: 0 for status in LifecycleStatus}
    for record in records:
        by_status[record.lifecycle_status] += 1
    total_read = sum(1 for record in records if record.is_read_by_all_users)
    overall = OverallStats(
        total_notifications=len(records),
        total_groups=len(groups),
        by_lifecycle_status=by_status,
        total_read_by_all=total_read,
        read_percentage=read_percentage(total_read, len(records)),
        urgent_groups=sum(1 for group in groups if group.is_urgent),
    )
    return GroupSummaryPage(
        groups=tuple(groups[start : start + limit]),
        pagination=pagination,
        overall=overall,
    )


def lifecycle_breakdown(
    session: Session, notification_filter: NotificationFilter | None = None
) -> list[SummaryBucket]:
    """Return one bucket per lifecycle status, including empty ones."""

    records = _load(session, notification_filter)
    grouped = _group_by(records, lambda record: record.lifecycle_status.value)
    return [_bucket(status.value, grouped.get(status.value, [])) for status in LifecycleStatus]


def analytics_by_type(
    session: Session, notification_filter: NotificationFilter | None = None
) -> list[SummaryBucket]:
    """Return per-type buckets for the types present, largest first."""

    records = _load(session, notification_filter)
    grouped = _group_by(records, lambda record: record.type.value)
    buckets = [_bucket(key, items) for key, items in grouped.items()]
    buckets.sort(key=lambda bucket: (-bucket.count, bucket.key))
    return buckets


def _load(
    session: Session, notification_filter: NotificationFilter | None
) -> Sequence[NotificationRecord]:
    criteria = (notification_filter or NotificationFilter()).to_criteria()
    return NotificationRepository(session).list(criteria)


def _group_by(
    records: Iterable[NotificationRecord],
    key: Callable[[NotificationRecord], str],
) -> dict[str, list[NotificationRecord]]:
    grouped: dict[str, list[NotificationRecord]] = {}
    for record in records:
        grouped.setdefault(key(record), []).append(record)
    return grouped


def _bucket(key: str, records: Sequence[NotificationRecord]) -> SummaryBucket:
    read_count = sum(1 for record in records if record.is_read_by_all_users)
    return SummaryBucket(
        key=key,
        count=len(records),
        read_by_all_count=read_count,
        read_percentage=read_percentage(read_count, len(records)),
        oldest_created_at=min((record.created_at for record in records), default=None),
        newest_created_at=max((record.created_at for record in records), default=None),
    )


def _group_summary(
    key: str, records: Sequence[NotificationRecord], now: datetime
) -> GroupSummary:
    bucket = _bucket(key, records)
    age_days = int(days_between(bucket.oldest_created_at, now))
    return GroupSummary(
        key=bucket.key,
        count=bucket.count,
        read_by_all_count=bucket.read_by_all_count,
        read_percentage=bucket.read_percentage,
        oldest_created_at=bucket.oldest_created_at,
        newest_created_at=bucket.newest_created_at,
        types=tuple(dict.fromkeys(record.type for record in records)),
        lifecycle_statuses=tuple(dict.fromkeys(record.lifecycle_status for record in records)),
        priorities=tuple(dict.fromkeys(record.priority for record in records)),
        notification_ids=tuple(record.id for record in records),
        total_recipients=len(
            frozenset().union(*(record.recipient_user_ids for record in records))
        ),
        days_since_oldest=age_days,
        is_urgent=age_days > URGENT_AGE_DAYS,
    )


_SORT_KEYS: Final[dict[str, Callable[[GroupSummary], object]]] = {
    "oldest_created": lambda group: group.oldest_created_at,
    "newest_created": lambda group: group.newest_created_at,
    "count": lambda group: group.count,
    "read_percentage": lambda group: group.read_percentage,
}


__all__ = [
    "GroupSummary",
    "GroupSummaryPage",
    "NotificationFilter",
    "OverallStats",
    "Pagination",
    "SummaryBucket",
    "analytics_by_type",
    "lifecycle_breakdown",
    "read_percentage",
    "summary_by_group",
]
