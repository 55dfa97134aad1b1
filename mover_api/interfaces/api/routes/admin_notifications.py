"""Admin endpoints for reviewing, extending and cleaning up notifications."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from mover_api.application.jobs import get_jobs_status, lifecycle_job, read_status_job
from mover_api.application.use_cases.notifications import (
    NotificationFilter,
    analytics_by_type,
    archive_notification,
    bulk_delete_notifications,
    extend_notification,
    get_notification_settings,
    inconsistency_report,
    lifecycle_anomaly_report,
    lifecycle_breakdown,
    pending_review_report,
    summary_by_group,
    update_notification_settings,
)
from mover_api.application.use_cases.notifications.summary import SortField, SortOrder
from mover_api.domain.entities import LifecycleStatus, NotificationType, User
from mover_api.infrastructure.database import get_db
from mover_api.interfaces.api.dependencies import require_admin
from mover_api.interfaces.api.routes_helpers import to_http_exception
from mover_api.interfaces.api.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    ExtendNotificationRequest,
    GroupSummaryPageRead,
    InconsistentGroupRead,
    JobRunResponse,
    LifecycleAnomalyRead,
    NotificationRead,
    NotificationSettingsRead,
    NotificationSettingsUpdate,
    PendingReviewReportRead,
    SummaryBucketRead,
    bucket_read,
)

router = APIRouter(prefix="/admin/notifications", tags=["admin-notifications"])
logger = logging.getLogger(__name__)


def _filter(
    lifecycle_status: LifecycleStatus | None = Query(default=None),
    type: NotificationType | None = Query(default=None),
    notification_group: str | None = Query(default=None),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
) -> NotificationFilter:
    return NotificationFilter(
        lifecycle_status=lifecycle_status,
        type=type,
        notification_group=notification_group,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/summary", response_model=GroupSummaryPageRead)
def get_summary(
    notification_filter: NotificationFilter = Depends(_filter),
    sort_by: SortField = Query(default="oldest_created"),
    sort_order: SortOrder = Query(default="asc"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> GroupSummaryPageRead:
    """Return notification groups with read statistics, paginated."""

    summary = summary_by_group(
        db,
        notification_filter,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return GroupSummaryPageRead.from_page(summary)


@router.get("/lifecycle", response_model=list[SummaryBucketRead])
def get_lifecycle_breakdown(
    notification_filter: NotificationFilter = Depends(_filter),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> list[SummaryBucketRead]:
    return [bucket_read(bucket) for bucket in lifecycle_breakdown(db, notification_filter)]


@router.get("/analytics", response_model=list[SummaryBucketRead])
def get_analytics(
    notification_filter: NotificationFilter = Depends(_filter),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> list[SummaryBucketRead]:
    return [bucket_read(bucket) for bucket in analytics_by_type(db, notification_filter)]


@router.get("/pending-review", response_model=PendingReviewReportRead)
def get_pending_review(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> PendingReviewReportRead:
    """Return groups awaiting review and notifications about to expire."""

    return PendingReviewReportRead.from_report(pending_review_report(db))


@router.put("/{notification_id}/extend", response_model=NotificationRead)
def extend(
    notification_id: int,
    payload: ExtendNotificationRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> NotificationRead:
    try:
        notification = extend_notification(
            db,
            notification_id,
            payload.extend_days,
            payload.reason,
            current_user.id,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return NotificationRead.from_record(notification)


@router.put("/{notification_id}/archive", response_model=NotificationRead)
def archive(
    notification_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> NotificationRead:
    try:
        notification = archive_notification(db, notification_id)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return NotificationRead.from_record(notification)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete(
    payload: BulkDeleteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> BulkDeleteResponse:
    """Delete notifications matching the given criteria after explicit confirmation."""

    try:
        deleted = bulk_delete_notifications(
            db,
            confirm_deletion=payload.confirm_deletion,
            notification_ids=payload.notification_ids,
            notification_group=payload.notification_group,
            lifecycle_status=payload.lifecycle_status,
            older_than_days=payload.older_than_days,
            read_by_all_only=payload.read_by_all_only,
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    logger.info("Admin %s deleted %d notifications", current_user.id, deleted)
    return BulkDeleteResponse(deleted=deleted)


@router.get("/settings", response_model=NotificationSettingsRead)
def read_settings(_: User = Depends(require_admin)) -> NotificationSettingsRead:
    return NotificationSettingsRead.from_settings(get_notification_settings())


@router.put("/settings", response_model=NotificationSettingsRead)
def update_settings(
    payload: NotificationSettingsUpdate,
    current_user: User = Depends(require_admin),
) -> NotificationSettingsRead:
    """Update the engine settings; numeric values are clamped to their bounds."""

    try:
        settings = update_notification_settings(
            payload.model_dump(exclude_none=True), updated_by=current_user.id
        )
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return NotificationSettingsRead.from_settings(settings)


@router.post("/jobs/lifecycle", response_model=JobRunResponse)
def run_lifecycle_job(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> JobRunResponse:
    results = lifecycle_job.run(db)
    return _job_response("lifecycle", results)


@router.post("/jobs/read-status", response_model=JobRunResponse)
def run_read_status_job(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> JobRunResponse:
    results = read_status_job.run(db)
    return _job_response("read-status", results)


@router.get("/jobs/status")
def jobs_status(_: User = Depends(require_admin)) -> dict:
    return get_jobs_status()


@router.get("/inconsistencies", response_model=list[InconsistentGroupRead])
def get_inconsistencies(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> list[InconsistentGroupRead]:
    """Return groups whose cached read flag disagrees with their recipients."""

    return [InconsistentGroupRead.from_group(group) for group in inconsistency_report(db)]


@router.get("/anomalies", response_model=list[LifecycleAnomalyRead])
def get_lifecycle_anomalies(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> list[LifecycleAnomalyRead]:
    """Return records whose lifecycle fields no allowed transition could produce."""

    return [
        LifecycleAnomalyRead.from_anomaly(anomaly) for anomaly in lifecycle_anomaly_report(db)
    ]


def _job_response(job: str, results: dict | None) -> JobRunResponse:
    if results is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"The {job} job is already running",
        )
    return JobRunResponse(job=job, results=results)
