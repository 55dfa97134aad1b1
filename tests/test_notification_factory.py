from datetime import datetime, timedelta, timezone

import pytest

from mover_api.application.use_cases.notifications import (
    create_document_notification,
    create_notification,
    create_system_notification,
    create_user_notification,
)
from mover_api.application.use_cases.notifications.templates import summarize_changes
from mover_api.domain.entities import (
    DocumentSubject,
    FieldChange,
    LifecycleStatus,
    NotificationPriority,
    NotificationType,
    SystemSubject,
    UserSubject,
)
from mover_api.domain.errors import EmptyRecipientSet, InvalidEventType
from mover_api.infrastructure.repositories import NotificationRepository


def _quotation() -> DocumentSubject:
    return DocumentSubject(document_type="Quotation", document_id="17", document_number="Q-0017")


def test_create_notification_persists_record(session):
    created_at = datetime(2025, 2, 1, 9, 0, tzinfo=timezone.utc)

    record = create_notification(
        session,
        NotificationType.DOCUMENT_CREATED,
        _quotation(),
        actor_id=5,
        recipient_ids=[1, 2, 5],
        now=created_at,
    )

    assert record.id is not None
    assert record.title == "New Quotation Created"
    assert record.message == "Quotation Q-0017 has been created"
    assert record.notification_group == "document_created_17_2025_02_01"
    assert record.recipient_user_ids == frozenset({1, 2, 5})
    assert record.read_by_users == {}
    assert record.is_read_by_all_users is False
    assert record.lifecycle_status is LifecycleStatus.ACTIVE
    assert record.priority is NotificationPriority.NORMAL
    assert record.expires_at == created_at + timedelta(days=30)
    assert record.action_url == "/quotations/17"

    stored = NotificationRepository(session).get(record.id)
    assert stored is not None
    assert stored.metadata.subject == _quotation()


def test_unknown_type_is_rejected_before_recipients(session):
    with pytest.raises(InvalidEventType):
        create_notification(session, "invoice_sent", None, actor_id=None, recipient_ids=[])

    assert NotificationRepository(session).count() == 0


def test_empty_recipient_set_is_rejected(session):
    with pytest.raises(EmptyRecipientSet):
        create_notification(
            session, NotificationType.DOCUMENT_CREATED, _quotation(), actor_id=1, recipient_ids=[]
        )

    assert NotificationRepository(session).count() == 0


def test_explicit_group_overrides_derived_key(session):
    record = create_notification(
        session,
        NotificationType.DOCUMENT_DELETED,
        _quotation(),
        actor_id=1,
        recipient_ids=[1],
        notification_group="cleanup_batch_7",
    )

    assert record.notification_group == "cleanup_batch_7"


@pytest.mark.parametrize(
    ("event_type", "expected"),
    [
        (NotificationType.PAYMENT_OVERDUE, NotificationPriority.HIGH),
        (NotificationType.PROFILE_INCOMPLETE, NotificationPriority.HIGH),
        (NotificationType.SECURITY_ALERT, NotificationPriority.URGENT),
        (NotificationType.PAYMENT_RECEIVED, NotificationPriority.NORMAL),
    ],
)
def test_priority_follows_fixed_table(session, event_type, expected):
    subject = (
        UserSubject(target_user_id=3, user_name="Ana")
        if event_type.category == "user"
        else _quotation()
        if event_type.category == "document"
        else SystemSubject()
    )

    record = create_notification(session, event_type, subject, actor_id=None, recipient_ids=[3])

    assert record.priority is expected


def test_valid_type_without_template_uses_generic_text(session):
    record = create_notification(
        session, NotificationType.BACKUP_COMPLETED, None, actor_id=None, recipient_ids=[1]
    )

    assert record.title == "System Notification"
    assert record.notification_group.startswith("backup_completed_system_")


def test_change_summary_is_appended_and_truncated(session):
    changes = [
        FieldChange(field=f"Field {index}", old_value=None, new_value="x" * 40)
        for index in range(20)
    ]

    record = create_document_notification(
        session,
        NotificationType.DOCUMENT_UPDATED,
        document_type="Receipt",
        document_id=9,
        document_number="R-9",
        actor_id=1,
        recipient_ids=[1],
        changes=changes,
    )

    assert record.message.startswith("Receipt R-9 has been updated. Changes: Field 0: Not set → ")
    assert len(record.message) == 500
    assert record.message.endswith("...")
    assert len(record.metadata.changes) == 20


def test_short_change_summary_is_kept_whole():
    summary = summarize_changes(
        [
            FieldChange("Status", "draft", "sent"),
            FieldChange("Total", None, 120),
        ]
    )

    assert summary == "Status: draft → sent; Total: Not set → 120"


def test_user_notification_links_to_profile_when_incomplete(session):
    record = create_user_notification(
        session,
        NotificationType.PROFILE_INCOMPLETE,
        user_name="Luis",
        user_id=8,
        actor_id=1,
        recipient_ids=[8],
    )

    assert record.title == "Complete Your Profile"
    assert record.action_url == "/profile"
    assert record.priority is NotificationPriority.HIGH


def test_system_notification_keeps_caller_text_and_priority(session):
    record = create_system_notification(
        session,
        NotificationType.SYSTEM_MAINTENANCE,
        title="Planned downtime",
        message="The service will be unavailable on Sunday.",
        recipient_ids=[1, 2],
        priority="urgent",
    )

    assert record.title == "Planned downtime"
    assert record.priority is NotificationPriority.URGENT
    assert isinstance(record.metadata.subject, SystemSubject)
