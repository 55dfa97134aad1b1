"""Notification use cases: creation, read tracking, lifecycle and reporting."""

from .bulk_delete import bulk_delete_notifications
from .events import (
    broadcast_system_notification,
    notify_document_created,
    notify_document_deleted,
    notify_document_updated,
    notify_payment_overdue,
    notify_payment_received,
    notify_quotation_converted,
    notify_quotation_expired,
    notify_user_created,
    notify_user_role_changed,
    notify_user_updated,
)
from .factory import (
    create_document_notification,
    create_lifecycle_reminder,
    create_notification,
    create_system_notification,
    create_user_notification,
)
from .group_identity import derive_group, lifecycle_reminder_group
from .lifecycle import (
    AgeCheckResult,
    PendingReviewReport,
    archive,
    archive_notification,
    archive_stale_reviews,
    auto_extend_important,
    extend,
    extend_notification,
    pending_review_report,
    run_age_check,
)
from .read_tracker import (
    list_notifications_for_user,
    mark_all_read_for_user,
    mark_notification_read,
    mark_notification_unread,
    mark_read,
    mark_unread,
    unread_count_for_user,
)
from .reconciliation import (
    ReconciliationResult,
    find_drifted,
    inconsistency_report,
    lifecycle_anomaly_report,
    reconcile,
    reconcile_all,
    reconcile_record,
)
from .settings import (
    get_notification_settings,
    reset_notification_settings,
    update_notification_settings,
)
from .summary import (
    NotificationFilter,
    analytics_by_type,
    lifecycle_breakdown,
    summary_by_group,
)

__all__ = [
    "AgeCheckResult",
    "NotificationFilter",
    "PendingReviewReport",
    "ReconciliationResult",
    "analytics_by_type",
    "archive",
    "archive_notification",
    "archive_stale_reviews",
    "auto_extend_important",
    "broadcast_system_notification",
    "bulk_delete_notifications",
    "create_document_notification",
    "create_lifecycle_reminder",
    "create_notification",
    "create_system_notification",
    "create_user_notification",
    "derive_group",
    "extend",
    "extend_notification",
    "find_drifted",
    "get_notification_settings",
    "inconsistency_report",
    "lifecycle_anomaly_report",
    "lifecycle_breakdown",
    "lifecycle_reminder_group",
    "list_notifications_for_user",
    "mark_all_read_for_user",
    "mark_notification_read",
    "mark_notification_unread",
    "mark_read",
    "mark_unread",
    "notify_document_created",
    "notify_document_deleted",
    "notify_document_updated",
    "notify_payment_overdue",
    "notify_payment_received",
    "notify_quotation_converted",
    "notify_quotation_expired",
    "notify_user_created",
    "notify_user_role_changed",
    "notify_user_updated",
    "pending_review_report",
    "reconcile",
    "reconcile_all",
    "reconcile_record",
    "reset_notification_settings",
    "run_age_check",
    "summary_by_group",
    "unread_count_for_user",
    "update_notification_settings",
]
