from datetime import datetime, timezone

from mover_api.domain.entities import (
    DocumentSubject,
    FieldChange,
    LifecycleExtension,
    NotificationMetadata,
    ReminderSubject,
    UserSubject,
)


def test_document_metadata_document_shape():
    metadata = NotificationMetadata(
        subject=DocumentSubject(document_type="Receipt", document_id="3", document_number="R-3"),
        changes=[FieldChange("Amount", 10, 12)],
    )

    document = metadata.to_document()

    assert document["kind"] == "document"
    assert document["document_id"] == "3"
    assert document["changes"] == [{"field": "Amount", "old_value": 10, "new_value": 12}]
    assert NotificationMetadata.from_document(document) == metadata


def test_reminder_metadata_keeps_original_reference():
    created = datetime(2025, 1, 1, tzinfo=timezone.utc)
    metadata = NotificationMetadata(
        subject=ReminderSubject(
            original_notification_id=4,
            original_notification_group="document_created_4_2025_01_01",
            review_reason="30_day_lifecycle_check",
            original_created_at=created,
        ),
        extensions=[
            LifecycleExtension(
                extended_by=None,
                extended_at=created,
                extend_days=30,
                reason="auto_extend_important",
                previous_deadline=None,
            )
        ],
    )

    parsed = NotificationMetadata.from_document(metadata.to_document())

    assert parsed.subject == metadata.subject
    assert parsed.extensions == metadata.extensions


def test_unknown_kind_is_kept_as_extra():
    parsed = NotificationMetadata.from_document({"kind": "legacy", "foo": "bar"})

    assert parsed.subject is None
    assert parsed.extra == {"kind": "legacy", "foo": "bar"}


def test_extra_values_survive_alongside_subject():
    parsed = NotificationMetadata.from_document(
        {"kind": "user", "target_user_id": 2, "user_name": "Ana", "source": "import"}
    )

    assert parsed.subject == UserSubject(target_user_id=2, user_name="Ana")
    assert parsed.extra == {"source": "import"}
