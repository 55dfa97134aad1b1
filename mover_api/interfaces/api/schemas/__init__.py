from .admin_notification import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    ExtendNotificationRequest,
    GroupSummaryPageRead,
    InconsistentGroupRead,
    JobRunResponse,
    LifecycleAnomalyRead,
    NotificationSettingsRead,
    NotificationSettingsUpdate,
    PendingReviewReportRead,
    SummaryBucketRead,
    bucket_read,
)
from .notification import (
    MarkAllReadResponse,
    NotificationRead,
    UnreadCountRead,
)

__all__ = [
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "ExtendNotificationRequest",
    "GroupSummaryPageRead",
    "InconsistentGroupRead",
    "JobRunResponse",
    "LifecycleAnomalyRead",
    "MarkAllReadResponse",
    "NotificationRead",
    "NotificationSettingsRead",
    "NotificationSettingsUpdate",
    "PendingReviewReportRead",
    "SummaryBucketRead",
    "UnreadCountRead",
    "bucket_read",
]
