"""Errors raised by the notification domain."""

from __future__ import annotations


class NotificationError(ValueError):
    """Base class for notification rule violations."""


class InvalidEventType(NotificationError):
    """Raised when an event type is outside the closed notification type set."""

    def __init__(self, event_type: object) -> None:
        super().__init__(f"Invalid notification type: {event_type!r}")
        self.event_type = event_type


class EmptyRecipientSet(NotificationError):
    """Raised when a notification would be created without recipients."""

    def __init__(self) -> None:
        super().__init__("A notification requires at least one recipient")


class InvalidExtensionWindow(NotificationError):
    """Raised when a lifecycle extension is outside the allowed day range."""

    def __init__(self, days: object, *, minimum: int, maximum: int) -> None:
        super().__init__(
            f"Extension must be between {minimum} and {maximum} days (got {days!r})"
        )
        self.days = days


class InvalidLifecycleTransition(NotificationError):
    """Raised when a lifecycle status change is not allowed."""

    def __init__(self, source: object, target: object) -> None:
        super().__init__(f"Cannot move notification from {source} to {target}")
        self.source = source
        self.target = target


class NotificationNotFoundError(NotificationError):
    """Raised when a notification does not exist or is not visible to the caller."""

    def __init__(self, notification_id: object) -> None:
        super().__init__(f"Notification with id {notification_id} not found")
        self.notification_id = notification_id


__all__ = [
    "NotificationError",
    "InvalidEventType",
    "EmptyRecipientSet",
    "InvalidExtensionWindow",
    "InvalidLifecycleTransition",
    "NotificationNotFoundError",
]
