"""Schemas for the admin notification dashboard."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mover_api.application.use_cases.notifications.lifecycle import (
    PendingReviewGroup,
    PendingReviewReport,
)
from mover_api.application.use_cases.notifications.reconciliation import (
    InconsistentGroup,
    LifecycleAnomaly,
)
from mover_api.application.use_cases.notifications.summary import (
    GroupSummary,
    GroupSummaryPage,
    SummaryBucket,
)
from mover_api.domain.entities import (
    LifecycleStatus,
    NotificationPriority,
    NotificationSettings,
    NotificationType,
)

from .notification import NotificationRead


class SummaryBucketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    count: int
    read_by_all_count: int
    read_percentage: float
    oldest_created_at: datetime | None = None
    newest_created_at: datetime | None = None


class GroupSummaryRead(SummaryBucketRead):
    types: list[NotificationType]
    lifecycle_statuses: list[LifecycleStatus]
    priorities: list[NotificationPriority]
    notification_ids: list[int]
    total_recipients: int
    days_since_oldest: int
    is_urgent: bool


class PaginationRead(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_previous: bool


class OverallStatsRead(BaseModel):
    total_notifications: int
    total_groups: int
    by_lifecycle_status: dict[str, int]
    total_read_by_all: int
    read_percentage: float
    urgent_groups: int


class GroupSummaryPageRead(BaseModel):
    groups: list[GroupSummaryRead]
    pagination: PaginationRead
    overall: OverallStatsRead

    @classmethod
    def from_page(cls, page: GroupSummaryPage) -> "GroupSummaryPageRead":
        return cls(
            groups=[_group_read(group) for group in page.groups],
            pagination=PaginationRead(
                page=page.pagination.page,
                limit=page.pagination.limit,
                total=page.pagination.total,
                pages=page.pagination.pages,
                has_next=page.pagination.has_next,
                has_previous=page.pagination.has_previous,
            ),
            overall=OverallStatsRead(
                total_notifications=page.overall.total_notifications,
                total_groups=page.overall.total_groups,
                by_lifecycle_status={
                    status.value: count
                    for status, count in page.overall.by_lifecycle_status.items()
                },
                total_read_by_all=page.overall.total_read_by_all,
                read_percentage=page.overall.read_percentage,
                urgent_groups=page.overall.urgent_groups,
            ),
        )


class PendingReviewGroupRead(BaseModel):
    notification_group: str
    count: int
    types: list[NotificationType]
    notification_ids: list[int]
    oldest_created_at: datetime
    newest_created_at: datetime
    reminder_sent_at: datetime | None = None
    days_since_oldest: int
    is_urgent: bool


class PendingReviewReportRead(BaseModel):
    total_pending: int
    groups: list[PendingReviewGroupRead]
    urgent_groups: list[str]
    expiring_soon: list[NotificationRead]

    @classmethod
    def from_report(cls, report: PendingReviewReport) -> "PendingReviewReportRead":
        return cls(
            total_pending=report.total_pending,
            groups=[_pending_group_read(group) for group in report.groups],
            urgent_groups=[group.notification_group for group in report.urgent_groups],
            expiring_soon=[NotificationRead.from_record(record) for record in report.expiring_soon],
        )


class ExtendNotificationRequest(BaseModel):
    extend_days: int = Field(..., description="Days to add to the current deadline (1-90)")
    reason: str = Field(..., min_length=1, max_length=200)


class BulkDeleteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    confirm_deletion: bool = False
    notification_ids: list[int] | None = None
    notification_group: str | None = None
    lifecycle_status: LifecycleStatus | None = None
    older_than_days: int | None = None
    read_by_all_only: bool = False


class BulkDeleteResponse(BaseModel):
    deleted: int


class NotificationSettingsRead(BaseModel):
    auto_delete_read_notifications: bool
    max_retention_days: int
    reminder_days_before_expiry: int
    important_notification_types: list[NotificationType]
    auto_extend_important: bool
    notification_batch_size: int
    updated_by: int | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_settings(cls, settings: NotificationSettings) -> "NotificationSettingsRead":
        values = asdict(settings)
        values["important_notification_types"] = list(settings.important_notification_types)
        return cls(**values)


class NotificationSettingsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    auto_delete_read_notifications: bool | None = None
    max_retention_days: int | None = None
    reminder_days_before_expiry: int | None = None
    important_notification_types: list[NotificationType] | None = None
    auto_extend_important: bool | None = None
    notification_batch_size: int | None = None


class InconsistentGroupRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notification_group: str
    count: int
    types: list[NotificationType]
    notification_ids: list[int]
    oldest_created_at: datetime
    newest_created_at: datetime

    @classmethod
    def from_group(cls, group: InconsistentGroup) -> "InconsistentGroupRead":
        return cls.model_validate(group)


class LifecycleAnomalyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notification_id: int
    notification_group: str
    lifecycle_status: LifecycleStatus
    anomalies: list[str]

    @classmethod
    def from_anomaly(cls, anomaly: LifecycleAnomaly) -> "LifecycleAnomalyRead":
        return cls.model_validate(anomaly)


class JobRunResponse(BaseModel):
    job: str
    results: dict[str, Any] = Field(default_factory=dict)


def bucket_read(bucket: SummaryBucket) -> SummaryBucketRead:
    return SummaryBucketRead.model_validate(bucket)


def _group_read(group: GroupSummary) -> GroupSummaryRead:
    return GroupSummaryRead.model_validate(group)


def _pending_group_read(group: PendingReviewGroup) -> PendingReviewGroupRead:
    return PendingReviewGroupRead(**asdict(group))


__all__ = [
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "ExtendNotificationRequest",
    "GroupSummaryPageRead",
    "GroupSummaryRead",
    "InconsistentGroupRead",
    "JobRunResponse",
    "LifecycleAnomalyRead",
    "NotificationSettingsRead",
    "NotificationSettingsUpdate",
    "OverallStatsRead",
    "PaginationRead",
    "PendingReviewGroupRead",
    "PendingReviewReportRead",
    "SummaryBucketRead",
    "bucket_read",
]
