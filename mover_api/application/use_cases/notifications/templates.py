"""Title and message templates for notification event types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Final, Sequence

from mover_api.domain.entities import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    DocumentSubject,
    FieldChange,
    NotificationPriority,
    NotificationSubject,
    NotificationType,
    ReminderSubject,
    UserSubject,
)

ELLIPSIS: Final[str] = "..."
NOT_SET: Final[str] = "Not set"

_DOCUMENT_TITLES: Final[dict[NotificationType, str]] = {
    NotificationType.DOCUMENT_CREATED: "New {document_type} Created",
    NotificationType.DOCUMENT_UPDATED: "{document_type} Updated",
    NotificationType.DOCUMENT_DELETED: "{document_type} Deleted",
    NotificationType.QUOTATION_EXPIRED: "Quotation Expired",
    NotificationType.QUOTATION_CONVERTED: "Quotation Converted",
    NotificationType.PAYMENT_RECEIVED: "Payment Received",
    NotificationType.PAYMENT_OVERDUE: "Payment Overdue",
}

_DOCUMENT_MESSAGES: Final[dict[NotificationType, str]] = {
    NotificationType.DOCUMENT_CREATED: "{document_type} {document_number} has been created",
    NotificationType.DOCUMENT_UPDATED: "{document_type} {document_number} has been updated",
    NotificationType.DOCUMENT_DELETED: "{document_type} {document_number} has been deleted",
    NotificationType.QUOTATION_EXPIRED: "Quotation {document_number} has expired",
    NotificationType.QUOTATION_CONVERTED: (
        "Quotation {document_number} has been converted to receipt"
    ),
    NotificationType.PAYMENT_RECEIVED: (
        "Payment received for {document_type} {document_number}"
    ),
    NotificationType.PAYMENT_OVERDUE: (
        "Payment for {document_type} {document_number} is overdue"
    ),
}

_USER_TITLES: Final[dict[NotificationType, str]] = {
    NotificationType.USER_CREATED: "New User Added",
    NotificationType.USER_UPDATED: "User Profile Updated",
    NotificationType.USER_ROLE_CHANGED: "User Role Changed",
    NotificationType.USER_DELETED: "User Removed",
    NotificationType.PROFILE_INCOMPLETE: "Complete Your Profile",
}

_USER_MESSAGES: Final[dict[NotificationType, str]] = {
    NotificationType.USER_CREATED: "{user_name} has been added to the system",
    NotificationType.USER_UPDATED: "{user_name}'s profile has been updated",
    NotificationType.USER_ROLE_CHANGED: "{user_name}'s role has been changed",
    NotificationType.USER_DELETED: "{user_name} has been removed from the system",
    NotificationType.PROFILE_INCOMPLETE: "Please complete your profile to access all features",
}

_DOCUMENT_ROUTES: Final[dict[str, str]] = {
    "quotation": "/quotations/{document_id}",
    "receipt": "/receipts/{document_id}",
}

PRIORITY_BY_TYPE: Final[dict[NotificationType, NotificationPriority]] = {
    NotificationType.PAYMENT_OVERDUE: NotificationPriority.HIGH,
    NotificationType.PROFILE_INCOMPLETE: NotificationPriority.HIGH,
    NotificationType.SECURITY_ALERT: NotificationPriority.URGENT,
}

REMINDER_TITLE: Final[str] = "Notification Lifecycle Review Required"
REMINDER_ACTION_URL: Final[str] = "/admin/notifications/pending-review"
REMINDER_ACTION_TEXT: Final[str] = "Review Notifications"


@dataclass(frozen=True)
class RenderedNotification:
    """Display fields produced for a new notification."""

    title: str
    message: str
    action_url: str | None = None
    action_text: str | None = None


def default_priority(event_type: NotificationType) -> NotificationPriority:
    """Return the fixed default priority for ``event_type``."""

    return PRIORITY_BY_TYPE.get(event_type, NotificationPriority.NORMAL)


def render(
    event_type: NotificationType,
    subject: NotificationSubject | None,
    changes: Sequence[FieldChange] = (),
) -> RenderedNotification:
    """Render the title, message and action link for ``event_type``.

    Types without a dedicated template use the generic wording of their
    category. When ``changes`` are supplied the message gains a summary of
    the field-level differences and is truncated to the message size bound.
    """

    if isinstance(subject, DocumentSubject):
        rendered = _render_document(event_type, subject)
    elif isinstance(subject, UserSubject):
        rendered = _render_user(event_type, subject)
    elif isinstance(subject, ReminderSubject):
        rendered = RenderedNotification(
            title=REMINDER_TITLE,
            message="A notification requires admin review after 30 days.",
            action_url=REMINDER_ACTION_URL,
            action_text=REMINDER_ACTION_TEXT,
        )
    else:
        rendered = _render_generic(event_type)

    message = rendered.message
    if changes:
        message = f"{message}. Changes: {summarize_changes(changes)}"
    return RenderedNotification(
        title=truncate(rendered.title, TITLE_MAX_LENGTH),
        message=truncate(message, MESSAGE_MAX_LENGTH),
        action_url=rendered.action_url,
        action_text=rendered.action_text,
    )


def render_reminder_message(original_title: str, original_created_at: datetime) -> str:
    """Return the reminder text for the notification under review."""

    created = original_created_at.strftime("%a %b %d %Y")
    message = (
        f'Notification "{original_title}" (created {created}) '
        "requires admin review after 30 days."
    )
    return truncate(message, MESSAGE_MAX_LENGTH)


def summarize_changes(changes: Sequence[FieldChange]) -> str:
    """Return ``Field: old → new`` fragments joined by semicolons."""

    return "; ".join(
        f"{change.field}: {format_value(change.old_value)} → {format_value(change.new_value)}"
        for change in changes
    )


def format_value(value: Any) -> str:
    """Render a change value the way it is shown to admins."""

    if value is None or value == "":
        return NOT_SET
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(item) for item in value) or NOT_SET
    if isinstance(value, dict):
        return ", ".join(f"{key}={format_value(item)}" for key, item in value.items()) or NOT_SET
    return str(value)


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, ending with an ellipsis when cut."""

    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def _render_document(
    event_type: NotificationType, subject: DocumentSubject
) -> RenderedNotification:
    values = {
        "document_type": subject.document_type,
        "document_number": subject.document_number or subject.document_id,
    }
    title = _DOCUMENT_TITLES.get(event_type, "Document Notification").format(**values)
    message = _DOCUMENT_MESSAGES.get(
        event_type, "{document_type} {document_number} has been updated"
    ).format(**values)
    route = _DOCUMENT_ROUTES.get(subject.document_type.lower())
    return RenderedNotification(
        title=title,
        message=message,
        action_url=route.format(document_id=subject.document_id) if route else None,
        action_text="View Details",
    )


def _render_user(event_type: NotificationType, subject: UserSubject) -> RenderedNotification:
    values = {"user_name": subject.user_name}
    title = _USER_TITLES.get(event_type, "User Notification")
    message = _USER_MESSAGES.get(event_type, "User {user_name} has been updated").format(**values)
    if event_type is NotificationType.PROFILE_INCOMPLETE:
        return RenderedNotification(
            title=title,
            message=message,
            action_url="/profile",
            action_text="Complete Profile",
        )
    return RenderedNotification(
        title=title,
        message=message,
        action_url=f"/admin/users/{subject.target_user_id}",
        action_text="View Details",
    )


def _render_generic(event_type: NotificationType) -> RenderedNotification:
    category = event_type.category
    if category == "document":
        return RenderedNotification("Document Notification", "A document has been updated")
    if category == "user":
        return RenderedNotification("User Notification", "A user account has been updated")
    return RenderedNotification("System Notification", "A system event has been recorded")


__all__ = [
    "ELLIPSIS",
    "PRIORITY_BY_TYPE",
    "REMINDER_ACTION_TEXT",
    "REMINDER_ACTION_URL",
    "REMINDER_TITLE",
    "RenderedNotification",
    "default_priority",
    "format_value",
    "render",
    "render_reminder_message",
    "summarize_changes",
    "truncate",
]
