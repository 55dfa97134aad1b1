"""Domain entity representing a multi-recipient notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Final, Union

from mover_api.domain.errors import InvalidEventType, InvalidLifecycleTransition
from mover_api.utils import iso_or_none, parse_iso_datetime

DEFAULT_LIFETIME: Final[timedelta] = timedelta(days=30)
TITLE_MAX_LENGTH: Final[int] = 100
MESSAGE_MAX_LENGTH: Final[int] = 500


class NotificationType(str, Enum):
    """Closed set of domain events that produce notifications."""

    DOCUMENT_CREATED = "document_created"
    DOCUMENT_UPDATED = "document_updated"
    DOCUMENT_DELETED = "document_deleted"
    QUOTATION_EXPIRED = "quotation_expired"
    QUOTATION_CONVERTED = "quotation_converted"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_OVERDUE = "payment_overdue"

    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_ROLE_CHANGED = "user_role_changed"
    USER_DELETED = "user_deleted"
    PROFILE_INCOMPLETE = "profile_incomplete"

    SYSTEM_MAINTENANCE = "system_maintenance"
    BACKUP_COMPLETED = "backup_completed"
    SECURITY_ALERT = "security_alert"

    @classmethod
    def parse(cls, value: "NotificationType | str") -> "NotificationType":
        """Return the member for ``value`` or raise :class:`InvalidEventType`."""

        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidEventType(value) from exc

    @property
    def category(self) -> str:
        if self in _DOCUMENT_TYPES:
            return "document"
        if self in _USER_TYPES:
            return "user"
        return "system"


_DOCUMENT_TYPES: Final[frozenset[NotificationType]] = frozenset(
    {
        NotificationType.DOCUMENT_CREATED,
        NotificationType.DOCUMENT_UPDATED,
        NotificationType.DOCUMENT_DELETED,
        NotificationType.QUOTATION_EXPIRED,
        NotificationType.QUOTATION_CONVERTED,
        NotificationType.PAYMENT_RECEIVED,
        NotificationType.PAYMENT_OVERDUE,
    }
)
_USER_TYPES: Final[frozenset[NotificationType]] = frozenset(
    {
        NotificationType.USER_CREATED,
        NotificationType.USER_UPDATED,
        NotificationType.USER_ROLE_CHANGED,
        NotificationType.USER_DELETED,
        NotificationType.PROFILE_INCOMPLETE,
    }
)


class NotificationPriority(str, Enum):
    """Display priority of a notification."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class LifecycleStatus(str, Enum):
    """Administrative review state of a notification."""

    ACTIVE = "active"
    PENDING_REVIEW = "pending_review"
    EXTENDED = "extended"
    ARCHIVED = "archived"


LIFECYCLE_TRANSITIONS: Final[dict[LifecycleStatus, frozenset[LifecycleStatus]]] = {
    LifecycleStatus.ACTIVE: frozenset(
        {
            LifecycleStatus.PENDING_REVIEW,
            LifecycleStatus.EXTENDED,
            LifecycleStatus.ARCHIVED,
        }
    ),
    LifecycleStatus.PENDING_REVIEW: frozenset(
        {LifecycleStatus.EXTENDED, LifecycleStatus.ARCHIVED}
    ),
    LifecycleStatus.EXTENDED: frozenset(
        {
            LifecycleStatus.PENDING_REVIEW,
            LifecycleStatus.EXTENDED,
            LifecycleStatus.ARCHIVED,
        }
    ),
    # Archived records are never revived automatically, only by an explicit extension.
    LifecycleStatus.ARCHIVED: frozenset({LifecycleStatus.EXTENDED}),
}


def can_transition(source: LifecycleStatus, target: LifecycleStatus) -> bool:
    """Return ``True`` when ``source -> target`` is an allowed lifecycle move."""

    return target in LIFECYCLE_TRANSITIONS.get(source, frozenset())


@dataclass(frozen=True)
class FieldChange:
    """A single field-level change carried for display."""

    field: str
    old_value: Any
    new_value: Any

    def to_document(self) -> dict[str, Any]:
        return {"field": self.field, "old_value": self.old_value, "new_value": self.new_value}

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "FieldChange":
        return cls(
            field=str(data.get("field", "")),
            old_value=data.get("old_value"),
            new_value=data.get("new_value"),
        )


@dataclass(frozen=True)
class DocumentSubject:
    """Quotation or receipt the notification talks about."""

    document_type: str
    document_id: str
    document_number: str | None = None

    kind = "document"

    @property
    def subject_id(self) -> str:
        return self.document_id


@dataclass(frozen=True)
class UserSubject:
    """User account the notification talks about."""

    target_user_id: int
    user_name: str

    kind = "user"

    @property
    def subject_id(self) -> str:
        return str(self.target_user_id)


@dataclass(frozen=True)
class SystemSubject:
    """System-wide event without a specific subject record."""

    details: dict[str, Any] = field(default_factory=dict)

    kind = "system"

    @property
    def subject_id(self) -> str | None:
        return None


@dataclass(frozen=True)
class ReminderSubject:
    """Admin reminder pointing back at the notification under review."""

    original_notification_id: int
    original_notification_group: str
    review_reason: str
    original_created_at: datetime | None = None

    kind = "lifecycle_reminder"

    @property
    def subject_id(self) -> str:
        return str(self.original_notification_id)


NotificationSubject = Union[DocumentSubject, UserSubject, SystemSubject, ReminderSubject]


@dataclass(frozen=True)
class LifecycleExtension:
    """Entry of the append-only extension log."""

    extended_by: int | None
    extended_at: datetime
    extend_days: int
    reason: str
    previous_deadline: datetime | None

    def to_document(self) -> dict[str, Any]:
        return {
            "extended_by": self.extended_by,
            "extended_at": iso_or_none(self.extended_at),
            "extend_days": self.extend_days,
            "reason": self.reason,
            "previous_deadline": iso_or_none(self.previous_deadline),
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "LifecycleExtension":
        return cls(
            extended_by=data.get("extended_by"),
            extended_at=parse_iso_datetime(data.get("extended_at")),
            extend_days=int(data.get("extend_days") or 0),
            reason=str(data.get("reason") or ""),
            previous_deadline=parse_iso_datetime(data.get("previous_deadline")),
        )


@dataclass
class NotificationMetadata:
    """Typed payload attached to a notification.

    ``subject`` is a tagged union keyed by ``kind``; ``changes`` and
    ``extensions`` are ordered lists and ``extra`` keeps anything else the
    producers attach.
    """

    subject: NotificationSubject | None = None
    changes: list[FieldChange] = field(default_factory=list)
    extensions: list[LifecycleExtension] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = dict(self.extra)
        if self.subject is not None:
            document["kind"] = self.subject.kind
            document.update(_subject_to_document(self.subject))
        if self.changes:
            document["changes"] = [change.to_document() for change in self.changes]
        if self.extensions:
            document["extensions"] = [entry.to_document() for entry in self.extensions]
        return document

    @classmethod
    def from_document(cls, data: dict[str, Any] | None) -> "NotificationMetadata":
        payload = dict(data or {})
        changes = [FieldChange.from_document(item) for item in payload.pop("changes", None) or []]
        extensions = [
            LifecycleExtension.from_document(item)
            for item in payload.pop("extensions", None) or []
        ]
        subject, extra = _subject_from_document(payload)
        return cls(subject=subject, changes=changes, extensions=extensions, extra=extra)


_SUBJECT_FIELDS: Final[dict[str, tuple[str, ...]]] = {
    DocumentSubject.kind: ("document_type", "document_id", "document_number"),
    UserSubject.kind: ("target_user_id", "user_name"),
    SystemSubject.kind: ("details",),
    ReminderSubject.kind: (
        "original_notification_id",
        "original_notification_group",
        "review_reason",
        "original_created_at",
    ),
}


def _subject_to_document(subject: NotificationSubject) -> dict[str, Any]:
    if isinstance(subject, DocumentSubject):
        return {
            "document_type": subject.document_type,
            "document_id": subject.document_id,
            "document_number": subject.document_number,
        }
    if isinstance(subject, UserSubject):
        return {"target_user_id": subject.target_user_id, "user_name": subject.user_name}
    if isinstance(subject, ReminderSubject):
        return {
            "original_notification_id": subject.original_notification_id,
            "original_notification_group": subject.original_notification_group,
            "review_reason": subject.review_reason,
            "original_created_at": iso_or_none(subject.original_created_at),
        }
    return {"details": dict(subject.details)}


def _subject_from_document(
    payload: dict[str, Any],
) -> tuple[NotificationSubject | None, dict[str, Any]]:
    kind = payload.pop("kind", None)
    if kind not in _SUBJECT_FIELDS:
        if kind is not None:
            payload["kind"] = kind
        return None, payload

    values = {name: payload.pop(name, None) for name in _SUBJECT_FIELDS[kind]}
    if kind == DocumentSubject.kind:
        subject: NotificationSubject = DocumentSubject(
            document_type=str(values["document_type"] or ""),
            document_id=str(values["document_id"] or ""),
            document_number=values["document_number"],
        )
    elif kind == UserSubject.kind:
        subject = UserSubject(
            target_user_id=values["target_user_id"],
            user_name=str(values["user_name"] or ""),
        )
    elif kind == ReminderSubject.kind:
        subject = ReminderSubject(
            original_notification_id=values["original_notification_id"],
            original_notification_group=str(values["original_notification_group"] or ""),
            review_reason=str(values["review_reason"] or ""),
            original_created_at=parse_iso_datetime(values["original_created_at"]),
        )
    else:
        subject = SystemSubject(details=dict(values["details"] or {}))
    return subject, payload


@dataclass
class NotificationRecord:
    """One notification event addressed to a fixed set of recipients."""

    id: int | None
    notification_group: str
    recipient_user_ids: frozenset[int]
    type: NotificationType
    title: str
    message: str
    created_at: datetime
    expires_at: datetime
    priority: NotificationPriority = NotificationPriority.NORMAL
    lifecycle_status: LifecycleStatus = LifecycleStatus.ACTIVE
    read_by_users: dict[int, datetime] = field(default_factory=dict)
    is_read_by_all_users: bool = False
    read: bool = False
    read_at: datetime | None = None
    extended_until: datetime | None = None
    reminder_sent_at: datetime | None = None
    archived_at: datetime | None = None
    metadata: NotificationMetadata = field(default_factory=NotificationMetadata)
    actor_id: int | None = None
    action_url: str | None = None
    action_text: str | None = None

    @property
    def effective_deadline(self) -> datetime:
        """Return ``extended_until`` when set, otherwise ``expires_at``."""

        return self.extended_until or self.expires_at

    def is_recipient(self, user_id: int) -> bool:
        return user_id in self.recipient_user_ids

    def has_read(self, user_id: int) -> bool:
        return user_id in self.read_by_users

    def compute_read_by_all(self) -> bool:
        """Recompute the all-read condition from the authoritative fields."""

        return self.recipient_user_ids.issubset(self.read_by_users)

    def has_read_drift(self) -> bool:
        """Return ``True`` when the cached flag disagrees with the recipients."""

        return self.is_read_by_all_users != self.compute_read_by_all()

    def is_deadline_elapsed(self, now: datetime) -> bool:
        return self.effective_deadline <= now

    def transition_to(self, target: LifecycleStatus) -> None:
        """Move to ``target`` or raise :class:`InvalidLifecycleTransition`."""

        if not can_transition(self.lifecycle_status, target):
            raise InvalidLifecycleTransition(self.lifecycle_status.value, target.value)
        self.lifecycle_status = target

    def lifecycle_anomalies(self) -> list[str]:
        """Describe field combinations the lifecycle rules never produce."""

        anomalies: list[str] = []
        if self.lifecycle_status is LifecycleStatus.ACTIVE and self.reminder_sent_at:
            anomalies.append("active record with a reminder already sent")
        if (
            self.lifecycle_status is LifecycleStatus.PENDING_REVIEW
            and self.reminder_sent_at is None
        ):
            anomalies.append("pending review without a reminder")
        if self.lifecycle_status is LifecycleStatus.EXTENDED and self.extended_until is None:
            anomalies.append("extended record without an extension deadline")
        if (
            self.reminder_sent_at is not None
            and self.reminder_sent_at < self.created_at
        ):
            anomalies.append("reminder sent before the record was created")
        return anomalies


__all__ = [
    "DEFAULT_LIFETIME",
    "TITLE_MAX_LENGTH",
    "MESSAGE_MAX_LENGTH",
    "LIFECYCLE_TRANSITIONS",
    "DocumentSubject",
    "FieldChange",
    "LifecycleExtension",
    "LifecycleStatus",
    "NotificationMetadata",
    "NotificationPriority",
    "NotificationRecord",
    "NotificationSubject",
    "NotificationType",
    "ReminderSubject",
    "SystemSubject",
    "UserSubject",
    "can_transition",
]
