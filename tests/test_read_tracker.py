from datetime import datetime, timedelta, timezone

import pytest

from mover_api.application.use_cases.notifications import (
    create_notification,
    list_notifications_for_user,
    mark_all_read_for_user,
    mark_notification_read,
    mark_notification_unread,
    mark_read,
    mark_unread,
    unread_count_for_user,
)
from mover_api.domain.entities import (
    DocumentSubject,
    NotificationRecord,
    NotificationType,
)
from mover_api.domain.errors import NotificationNotFoundError
from mover_api.infrastructure.repositories import NotificationRepository

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


def _record(recipients=(1, 2)) -> NotificationRecord:
    return NotificationRecord(
        id=1,
        notification_group="document_created_1_2025_05_01",
        recipient_user_ids=frozenset(recipients),
        type=NotificationType.DOCUMENT_CREATED,
        title="New Quotation Created",
        message="Quotation Q-1 has been created",
        created_at=NOW,
        expires_at=NOW + timedelta(days=30),
    )


def _persist(session, recipients=(1, 2)) -> NotificationRecord:
    return create_notification(
        session,
        NotificationType.DOCUMENT_CREATED,
        DocumentSubject(document_type="Quotation", document_id="1", document_number="Q-1"),
        actor_id=None,
        recipient_ids=recipients,
    )


def test_read_by_all_only_after_every_recipient_reads():
    record = _record()

    mark_read(record, 1, NOW)
    assert record.is_read_by_all_users is False
    assert record.read is False

    mark_read(record, 2, NOW + timedelta(minutes=5))
    assert record.is_read_by_all_users is True
    assert record.read is True
    assert record.read_at == NOW + timedelta(minutes=5)


def test_mark_read_twice_is_a_no_op():
    record = _record()
    assert mark_read(record, 1, NOW) is True

    assert mark_read(record, 1, NOW + timedelta(hours=1)) is False
    assert record.read_by_users == {1: NOW}


def test_mark_read_never_removes_entries():
    record = _record(recipients=(1, 2, 3))
    mark_read(record, 1, NOW)
    before = dict(record.read_by_users)

    mark_read(record, 2, NOW)

    assert before.items() <= record.read_by_users.items()


def test_unread_of_last_reader_clears_read_state():
    record = _record(recipients=(1,))
    mark_read(record, 1, NOW)

    assert mark_unread(record, 1) is True

    assert record.read_by_users == {}
    assert record.read is False
    assert record.read_at is None
    assert record.is_read_by_all_users is False


def test_unread_without_entry_is_a_no_op():
    record = _record()

    assert mark_unread(record, 1) is False
    assert record.read_by_users == {}


def test_unread_keeps_read_mirror_while_other_readers_remain():
    record = _record()
    mark_read(record, 1, NOW)
    mark_read(record, 2, NOW)

    mark_unread(record, 2)

    assert record.is_read_by_all_users is False
    assert record.read is True
    assert record.read_by_users == {1: NOW}


def test_persisted_mark_read_and_unread(session):
    record = _persist(session)

    mark_notification_read(session, record.id, 1)
    updated = mark_notification_read(session, record.id, 2)
    assert updated.is_read_by_all_users is True

    stored = NotificationRepository(session).get(record.id)
    assert set(stored.read_by_users) == {1, 2}
    assert stored.is_read_by_all_users is True
    assert stored.read is True

    reverted = mark_notification_unread(session, record.id, 1)
    assert reverted.is_read_by_all_users is False
    assert set(reverted.read_by_users) == {2}


def test_non_recipient_cannot_mark_read(session):
    record = _persist(session)

    with pytest.raises(NotificationNotFoundError):
        mark_notification_read(session, record.id, 99)

    assert NotificationRepository(session).get(record.id).read_by_users == {}


def test_missing_notification_raises_not_found(session):
    with pytest.raises(NotificationNotFoundError):
        mark_notification_read(session, 12345, 1)


def test_mark_all_read_for_user_counts_touched_records(session):
    first = _persist(session, recipients=(1, 2))
    second = _persist(session, recipients=(1,))
    _persist(session, recipients=(2,))
    mark_notification_read(session, first.id, 1)

    touched = mark_all_read_for_user(session, 1)

    assert touched == 1
    assert NotificationRepository(session).get(second.id).is_read_by_all_users is True
    assert mark_all_read_for_user(session, 1) == 0


def test_unread_count_and_listing(session):
    first = _persist(session, recipients=(1, 2))
    _persist(session, recipients=(1,))
    mark_notification_read(session, first.id, 1)

    assert unread_count_for_user(session, 1) == 1
    assert unread_count_for_user(session, 2) == 1
    assert len(list_notifications_for_user(session, 1)) == 2
    assert [item.id for item in list_notifications_for_user(session, 1, unread_only=False)] == [
        first.id
    ]
