"""Process-wide notification settings holder."""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from threading import Lock
from typing import Any, Mapping

from mover_api.domain.entities import NotificationSettings
from mover_api.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset(
    item.name for item in fields(NotificationSettings) if item.name not in {"updated_by", "updated_at"}
)

_lock = Lock()
_current = NotificationSettings()


def get_notification_settings() -> NotificationSettings:
    with _lock:
        return _current


def update_notification_settings(
    changes: Mapping[str, Any], *, updated_by: int | None = None
) -> NotificationSettings:
    """Apply ``changes`` to the current settings and return the stored value.

    Unknown keys and ``None`` values are ignored; numeric values are clamped
    to their allowed range.
    """

    global _current

    values = {
        key: value
        for key, value in changes.items()
        if key in _EDITABLE_FIELDS and value is not None
    }
    if "important_notification_types" in values:
        values["important_notification_types"] = tuple(values["important_notification_types"])

    with _lock:
        updated = replace(
            _current,
            **values,
            updated_by=updated_by,
            updated_at=now_in_app_timezone(),
        ).normalized()
        _current = updated

    logger.info("Notification settings updated by %s: %s", updated_by, sorted(values))
    return updated


def reset_notification_settings() -> NotificationSettings:
    """Restore the default settings."""

    global _current
    with _lock:
        _current = NotificationSettings()
        return _current


__all__ = [
    "get_notification_settings",
    "reset_notification_settings",
    "update_notification_settings",
]
