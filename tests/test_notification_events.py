from sqlalchemy.exc import SQLAlchemyError

from mover_api.application.use_cases.notifications import (
    broadcast_system_notification,
    notify_document_created,
    notify_document_updated,
    notify_payment_overdue,
    notify_user_created,
)
from mover_api.application.use_cases.notifications import events as events_module
from mover_api.domain.entities import NotificationPriority, NotificationType
from mover_api.infrastructure.repositories import NotificationRepository


def test_document_created_reaches_admins_and_creator(session, make_user):
    admin = make_user("Admin", role="admin")
    creator = make_user("Seller")
    make_user("Bystander")

    record = notify_document_created(
        session,
        document_type="Quotation",
        document_id=21,
        document_number="Q-0021",
        created_by=creator.id,
    )

    assert record is not None
    assert record.recipient_user_ids == frozenset({admin.id, creator.id})
    assert record.actor_id == creator.id


def test_document_update_without_changes_is_skipped(session, make_user):
    make_user("Admin", role="admin")

    result = notify_document_updated(
        session,
        document_type="Receipt",
        document_id=1,
        document_number="R-1",
        actor_id=None,
        changes=[],
    )

    assert result is None
    assert NotificationRepository(session).count() == 0


def test_payment_overdue_is_high_priority(session, make_user):
    make_user("Admin", role="admin")

    record = notify_payment_overdue(session, receipt_id=5, receipt_number="R-5")

    assert record.type is NotificationType.PAYMENT_OVERDUE
    assert record.priority is NotificationPriority.HIGH
    assert record.action_url == "/receipts/5"


def test_new_user_with_incomplete_profile_gets_own_notice(session, make_user):
    admin = make_user("Admin", role="admin")
    new_user = make_user("Newcomer", profile_completed=False)

    created = notify_user_created(
        session,
        user_name=new_user.name,
        user_id=new_user.id,
        created_by=admin.id,
        profile_completed=False,
    )

    assert [item.type for item in created] == [
        NotificationType.USER_CREATED,
        NotificationType.PROFILE_INCOMPLETE,
    ]
    assert created[0].recipient_user_ids == frozenset({admin.id})
    assert created[1].recipient_user_ids == frozenset({new_user.id})


def test_producer_failure_is_logged_not_raised(session, make_user, monkeypatch, caplog):
    make_user("Admin", role="admin")

    def _fail(*args, **kwargs):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(events_module, "create_document_notification", _fail)

    result = notify_document_created(
        session,
        document_type="Quotation",
        document_id=1,
        document_number="Q-1",
        created_by=None,
    )

    assert result is None
    assert "Failed to create document_created notification" in caplog.text


def test_producer_without_recipients_returns_none(session):
    assert notify_payment_overdue(session, receipt_id=1, receipt_number="R-1") is None


def test_broadcast_reaches_every_active_user(session, make_user):
    first = make_user("First")
    second = make_user("Second", role="admin")
    make_user("Gone", is_active=False)

    record = broadcast_system_notification(
        session,
        event_type=NotificationType.SECURITY_ALERT,
        title="Password policy updated",
        message="Please review the new password policy.",
        priority="urgent",
    )

    assert record.recipient_user_ids == frozenset({first.id, second.id})
    assert record.priority is NotificationPriority.URGENT
