"""Domain entities exposed by the application."""

from .notification import (
    DEFAULT_LIFETIME,
    LIFECYCLE_TRANSITIONS,
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    DocumentSubject,
    FieldChange,
    LifecycleExtension,
    LifecycleStatus,
    NotificationMetadata,
    NotificationPriority,
    NotificationRecord,
    NotificationSubject,
    NotificationType,
    ReminderSubject,
    SystemSubject,
    UserSubject,
    can_transition,
)
from .notification_settings import DEFAULT_IMPORTANT_TYPES, NotificationSettings
from .role import ADMIN_ROLE_ALIASES, Role
from .user import User

__all__ = [
    "ADMIN_ROLE_ALIASES",
    "DEFAULT_IMPORTANT_TYPES",
    "DEFAULT_LIFETIME",
    "LIFECYCLE_TRANSITIONS",
    "MESSAGE_MAX_LENGTH",
    "TITLE_MAX_LENGTH",
    "DocumentSubject",
    "FieldChange",
    "LifecycleExtension",
    "LifecycleStatus",
    "NotificationMetadata",
    "NotificationPriority",
    "NotificationRecord",
    "NotificationSettings",
    "NotificationSubject",
    "NotificationType",
    "ReminderSubject",
    "Role",
    "SystemSubject",
    "User",
    "UserSubject",
    "can_transition",
]
