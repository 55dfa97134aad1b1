import pytest

from mover_api.application.use_cases.notifications import (
    get_notification_settings,
    update_notification_settings,
)
from mover_api.domain.entities import NotificationType
from mover_api.domain.errors import InvalidEventType


def test_defaults():
    settings = get_notification_settings()

    assert settings.auto_delete_read_notifications is False
    assert settings.max_retention_days == 30
    assert settings.reminder_days_before_expiry == 1
    assert settings.important_notification_types == (
        NotificationType.PAYMENT_OVERDUE,
        NotificationType.SECURITY_ALERT,
    )
    assert settings.auto_extend_important is True
    assert settings.notification_batch_size == 100


@pytest.mark.parametrize(
    ("changes", "field", "expected"),
    [
        ({"max_retention_days": 0}, "max_retention_days", 1),
        ({"max_retention_days": 1000}, "max_retention_days", 365),
        ({"reminder_days_before_expiry": 30}, "reminder_days_before_expiry", 7),
        ({"notification_batch_size": 5}, "notification_batch_size", 10),
        ({"notification_batch_size": 5000}, "notification_batch_size", 1000),
    ],
)
def test_numeric_values_are_clamped(changes, field, expected):
    updated = update_notification_settings(changes, updated_by=1)

    assert getattr(updated, field) == expected
    assert getattr(get_notification_settings(), field) == expected


def test_update_records_author_and_ignores_unknown_keys():
    updated = update_notification_settings(
        {"auto_extend_important": False, "unknown": 1, "max_retention_days": None},
        updated_by=3,
    )

    assert updated.auto_extend_important is False
    assert updated.max_retention_days == 30
    assert updated.updated_by == 3
    assert updated.updated_at is not None


def test_important_types_are_parsed_and_deduplicated():
    updated = update_notification_settings(
        {"important_notification_types": ["security_alert", "security_alert", "user_deleted"]}
    )

    assert updated.important_notification_types == (
        NotificationType.SECURITY_ALERT,
        NotificationType.USER_DELETED,
    )


def test_unknown_important_type_is_rejected():
    with pytest.raises(InvalidEventType):
        update_notification_settings({"important_notification_types": ["newsletter"]})

    assert NotificationType.PAYMENT_OVERDUE in get_notification_settings().important_notification_types


def test_is_important_follows_configured_types():
    settings = update_notification_settings(
        {"important_notification_types": ["document_created", NotificationType.SECURITY_ALERT]}
    )

    assert settings.is_important(NotificationType.DOCUMENT_CREATED) is True
    assert settings.is_important(NotificationType.SECURITY_ALERT) is True
    assert settings.is_important(NotificationType.PAYMENT_OVERDUE) is False
