from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from mover_api.application.use_cases.notifications import (
    archive,
    archive_notification,
    archive_stale_reviews,
    create_notification,
    extend,
    extend_notification,
    pending_review_report,
    run_age_check,
)
from mover_api.application.use_cases.notifications import lifecycle as lifecycle_module
from mover_api.domain.entities import (
    DocumentSubject,
    LifecycleStatus,
    NotificationPriority,
    NotificationRecord,
    NotificationSettings,
    NotificationType,
    ReminderSubject,
)
from mover_api.domain.errors import InvalidExtensionWindow, InvalidLifecycleTransition
from mover_api.infrastructure.repositories import NotificationCriteria, NotificationRepository
from mover_api.utils import now_in_app_timezone


def _record(**overrides) -> NotificationRecord:
    created = datetime(2024, 12, 2, tzinfo=timezone.utc)
    values = dict(
        id=1,
        notification_group="document_created_1_2024_12_02",
        recipient_user_ids=frozenset({1}),
        type=NotificationType.DOCUMENT_CREATED,
        title="New Quotation Created",
        message="Quotation Q-1 has been created",
        created_at=created,
        expires_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return NotificationRecord(**values)


def _persist(session, *, days_ago=0, event_type=NotificationType.DOCUMENT_CREATED, document_id="1"):
    return create_notification(
        session,
        event_type,
        DocumentSubject(document_type="Quotation", document_id=document_id, document_number="Q-1"),
        actor_id=None,
        recipient_ids=[10],
        now=now_in_app_timezone() - timedelta(days=days_ago),
    )


def test_extend_pushes_deadline_and_logs_entry():
    record = _record()

    extend(record, 30, "audit", 7, now=datetime(2025, 1, 2, tzinfo=timezone.utc))

    assert record.extended_until == datetime(2025, 1, 31, tzinfo=timezone.utc)
    assert record.expires_at == record.extended_until
    assert record.lifecycle_status is LifecycleStatus.EXTENDED
    assert len(record.metadata.extensions) == 1
    entry = record.metadata.extensions[0]
    assert (entry.extended_by, entry.extend_days, entry.reason) == (7, 30, "audit")
    assert entry.previous_deadline == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_extend_counts_from_existing_extension():
    record = _record()
    extend(record, 10, "first", 7)

    extend(record, 5, "second", 7)

    assert record.extended_until == datetime(2025, 1, 16, tzinfo=timezone.utc)
    assert [entry.reason for entry in record.metadata.extensions] == ["first", "second"]


@pytest.mark.parametrize("days", [0, 91, -3, True])
def test_extend_rejects_days_outside_window(days):
    record = _record()

    with pytest.raises(InvalidExtensionWindow):
        extend(record, days, "audit", 7)

    assert record.lifecycle_status is LifecycleStatus.ACTIVE
    assert record.extended_until is None
    assert record.metadata.extensions == []


def test_extend_accepts_upper_bound():
    record = _record()

    extend(record, 90, "audit", 7)

    assert record.extended_until == datetime(2025, 4, 1, tzinfo=timezone.utc)


def test_archive_is_idempotent_and_extension_reactivates():
    record = _record()

    assert archive(record) is True
    archived_at = record.archived_at
    assert archive(record) is False
    assert record.archived_at == archived_at

    extend(record, 15, "still relevant", 7)
    assert record.lifecycle_status is LifecycleStatus.EXTENDED
    assert record.archived_at is None


def test_archived_record_cannot_move_to_review():
    record = _record(lifecycle_status=LifecycleStatus.ARCHIVED)

    with pytest.raises(InvalidLifecycleTransition):
        record.transition_to(LifecycleStatus.PENDING_REVIEW)


def test_age_check_reminds_admins_and_moves_record_to_review(session, make_user):
    admin = make_user("Admin One", role="admin")
    other_admin = make_user("Admin Two", role="super_admin")
    make_user("Regular")
    stale = _persist(session, days_ago=31)
    fresh = _persist(session, days_ago=1, document_id="2")

    result = run_age_check(session)

    assert result.reminders_sent == 1
    assert result.moved_to_review == 1
    repository = NotificationRepository(session)
    updated = repository.get(stale.id)
    assert updated.lifecycle_status is LifecycleStatus.PENDING_REVIEW
    assert updated.reminder_sent_at is not None
    assert repository.get(fresh.id).lifecycle_status is LifecycleStatus.ACTIVE

    reminders = repository.list(NotificationCriteria(type=NotificationType.SYSTEM_MAINTENANCE))
    assert len(reminders) == 1
    reminder = reminders[0]
    assert reminder.recipient_user_ids == frozenset({admin.id, other_admin.id})
    assert reminder.priority is NotificationPriority.HIGH
    assert reminder.title == "Notification Lifecycle Review Required"
    assert reminder.notification_group.startswith("lifecycle_reminder_")
    assert isinstance(reminder.metadata.subject, ReminderSubject)
    assert reminder.metadata.subject.original_notification_id == stale.id
    assert reminder.metadata.subject.review_reason == "30_day_lifecycle_check"


def test_age_check_does_not_remind_twice(session, make_user):
    make_user("Admin", role="admin")
    _persist(session, days_ago=31)

    run_age_check(session)
    second = run_age_check(session)

    assert second.reminders_sent == 0
    assert NotificationRepository(session).count(
        NotificationCriteria(type=NotificationType.SYSTEM_MAINTENANCE)
    ) == 1


def test_failed_reminder_leaves_record_for_next_run(session, make_user, monkeypatch):
    make_user("Admin", role="admin")
    stale = _persist(session, days_ago=31)

    def _fail(*args, **kwargs):
        raise SQLAlchemyError("store unavailable")

    monkeypatch.setattr(lifecycle_module, "create_lifecycle_reminder", _fail)
    result = run_age_check(session)

    assert result.failures == 1
    assert result.moved_to_review == 0
    unchanged = NotificationRepository(session).get(stale.id)
    assert unchanged.lifecycle_status is LifecycleStatus.ACTIVE
    assert unchanged.reminder_sent_at is None

    monkeypatch.undo()
    retried = run_age_check(session)
    assert retried.moved_to_review == 1


def test_age_check_without_admins_changes_nothing(session):
    stale = _persist(session, days_ago=31)

    result = run_age_check(session)

    assert result.skipped_without_admins is True
    assert NotificationRepository(session).get(stale.id).lifecycle_status is LifecycleStatus.ACTIVE


def test_important_types_are_auto_extended(session, make_user):
    make_user("Admin", role="admin")
    overdue = _persist(session, days_ago=31, event_type=NotificationType.PAYMENT_OVERDUE)

    result = run_age_check(session, settings=NotificationSettings())

    assert result.auto_extended == 1
    updated = NotificationRepository(session).get(overdue.id)
    assert updated.lifecycle_status is LifecycleStatus.EXTENDED
    assert updated.reminder_sent_at is None
    assert updated.metadata.extensions[0].reason == "auto_extend_important"
    assert updated.metadata.extensions[0].extended_by is None


def test_auto_extension_can_be_disabled(session, make_user):
    make_user("Admin", role="admin")
    overdue = _persist(session, days_ago=31, event_type=NotificationType.PAYMENT_OVERDUE)

    run_age_check(session, settings=NotificationSettings(auto_extend_important=False))

    updated = NotificationRepository(session).get(overdue.id)
    assert updated.lifecycle_status is LifecycleStatus.PENDING_REVIEW


def test_extend_and_archive_persisted_records(session):
    record = _persist(session)

    with pytest.raises(InvalidExtensionWindow):
        extend_notification(session, record.id, 91, "too long", 1)
    assert NotificationRepository(session).get(record.id).lifecycle_status is LifecycleStatus.ACTIVE

    extended = extend_notification(session, record.id, 90, "contract", 1)
    assert extended.extended_until == record.expires_at + timedelta(days=90)

    archived = archive_notification(session, record.id)
    assert archived.lifecycle_status is LifecycleStatus.ARCHIVED
    assert archive_notification(session, record.id).archived_at == archived.archived_at


def test_archive_stale_reviews(session, make_user):
    make_user("Admin", role="admin")
    record = _persist(session, days_ago=31)
    run_age_check(session)

    assert archive_stale_reviews(session, older_than_days=90) == 0
    archived = archive_stale_reviews(
        session, older_than_days=90, now=now_in_app_timezone() + timedelta(days=91)
    )

    assert archived == 1
    assert NotificationRepository(session).get(record.id).lifecycle_status is LifecycleStatus.ARCHIVED


def test_pending_review_report_flags_urgent_groups(session, make_user):
    make_user("Admin", role="admin")
    old = _persist(session, days_ago=40, document_id="old")
    _persist(session, days_ago=31, document_id="recent")
    expiring = _persist(session, days_ago=29, document_id="soon")
    expiring_id = expiring.id
    run_age_check(session)

    report = pending_review_report(session)

    assert report.total_pending == 2
    assert [group.notification_group for group in report.urgent_groups] == [old.notification_group]
    assert [record.id for record in report.expiring_soon] == [expiring_id]


def test_extended_record_reenters_review_when_extension_elapses(session, make_user):
    make_user("Admin", role="admin")
    stale = _persist(session, days_ago=31)
    now = now_in_app_timezone()
    run_age_check(session, now=now)

    extended = extend_notification(session, stale.id, 1, "one more day", 1, now=now)
    assert extended.lifecycle_status is LifecycleStatus.EXTENDED
    assert extended.reminder_sent_at is None

    result = run_age_check(session, now=now + timedelta(days=3))

    assert result.reminders_sent == 1
    assert result.moved_to_review == 1
    repository = NotificationRepository(session)
    reviewed = repository.get(stale.id)
    assert reviewed.lifecycle_status is LifecycleStatus.PENDING_REVIEW
    assert reviewed.reminder_sent_at is not None
    assert len(reviewed.metadata.extensions) == 1
    assert repository.count(NotificationCriteria(type=NotificationType.SYSTEM_MAINTENANCE)) == 2


def test_unexpected_reminder_error_does_not_stop_the_sweep(session, make_user, monkeypatch):
    make_user("Admin", role="admin")
    first = _persist(session, days_ago=31)
    second = _persist(session, days_ago=31, document_id="2")
    original = lifecycle_module.create_lifecycle_reminder

    def _fail_first(session, record, admin_ids, **kwargs):
        if record.id == first.id:
            raise RuntimeError("template exploded")
        return original(session, record, admin_ids, **kwargs)

    monkeypatch.setattr(lifecycle_module, "create_lifecycle_reminder", _fail_first)
    result = run_age_check(session)

    assert (result.checked, result.failures, result.moved_to_review) == (2, 1, 1)
    repository = NotificationRepository(session)
    assert repository.get(first.id).lifecycle_status is LifecycleStatus.ACTIVE
    assert repository.get(second.id).lifecycle_status is LifecycleStatus.PENDING_REVIEW


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({}, []),
        (
            dict(reminder_sent_at=datetime(2025, 1, 2, tzinfo=timezone.utc)),
            ["active record with a reminder already sent"],
        ),
        (
            dict(lifecycle_status=LifecycleStatus.PENDING_REVIEW),
            ["pending review without a reminder"],
        ),
        (
            dict(lifecycle_status=LifecycleStatus.EXTENDED),
            ["extended record without an extension deadline"],
        ),
        (
            dict(
                lifecycle_status=LifecycleStatus.PENDING_REVIEW,
                reminder_sent_at=datetime(2024, 11, 1, tzinfo=timezone.utc),
            ),
            ["reminder sent before the record was created"],
        ),
    ],
)
def test_lifecycle_anomalies(overrides, expected):
    assert _record(**overrides).lifecycle_anomalies() == expected


def test_regular_lifecycle_produces_no_anomalies():
    record = _record()
    lifecycle_module.mark_pending_review(record, datetime(2025, 1, 2, tzinfo=timezone.utc))
    assert record.lifecycle_anomalies() == []

    extend(record, 5, "audit", 7)
    assert record.lifecycle_anomalies() == []


def test_auto_extension_leaves_unimportant_records_in_review(session, make_user):
    make_user("Admin", role="admin")
    overdue = _persist(session, days_ago=31, event_type=NotificationType.PAYMENT_OVERDUE)
    routine = _persist(session, days_ago=31, document_id="2")

    result = run_age_check(session, settings=NotificationSettings())

    assert result.auto_extended == 1
    repository = NotificationRepository(session)
    assert repository.get(overdue.id).lifecycle_status is LifecycleStatus.EXTENDED
    assert repository.get(routine.id).lifecycle_status is LifecycleStatus.PENDING_REVIEW
