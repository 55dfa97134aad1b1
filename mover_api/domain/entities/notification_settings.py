"""Process-wide configuration read by the notification engine and its jobs."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Final

from .notification import NotificationType

DEFAULT_IMPORTANT_TYPES: Final[tuple[NotificationType, ...]] = (
    NotificationType.PAYMENT_OVERDUE,
    NotificationType.SECURITY_ALERT,
)


def _clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, int(value)))


@dataclass(frozen=True)
class NotificationSettings:
    """Engine settings with the defaults and bounds admins may adjust."""

    auto_delete_read_notifications: bool = False
    max_retention_days: int = 30
    reminder_days_before_expiry: int = 1
    important_notification_types: tuple[NotificationType, ...] = DEFAULT_IMPORTANT_TYPES
    auto_extend_important: bool = True
    notification_batch_size: int = 100
    updated_by: int | None = None
    updated_at: datetime | None = field(default=None, compare=False)

    def normalized(self) -> "NotificationSettings":
        """Return a copy with numeric values clamped to their allowed ranges."""

        return replace(
            self,
            max_retention_days=_clamp(self.max_retention_days, 1, 365),
            reminder_days_before_expiry=_clamp(self.reminder_days_before_expiry, 1, 7),
            notification_batch_size=_clamp(self.notification_batch_size, 10, 1000),
            important_notification_types=tuple(
                dict.fromkeys(
                    NotificationType.parse(item) for item in self.important_notification_types
                )
            ),
        )

    def is_important(self, notification_type: NotificationType) -> bool:
        return notification_type in self.important_notification_types


__all__ = ["DEFAULT_IMPORTANT_TYPES", "NotificationSettings"]
