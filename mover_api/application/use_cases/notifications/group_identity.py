"""Deterministic grouping keys for notifications."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Final

from mover_api.domain.entities import NotificationType
from mover_api.utils import ensure_app_timezone

_UNSAFE_CHARACTERS: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9_.-]+")


def derive_group(
    event_type: NotificationType | str,
    subject_id: object | None,
    when: datetime,
) -> str:
    """Return the group key shared by same-day events about the same subject.

    The key only depends on the event type, the subject identifier and the
    calendar day of ``when`` in the application timezone, so repeated events
    collapse into one administrative group without a lookup.
    """

    notification_type = NotificationType.parse(event_type)
    subject = _normalize_subject(subject_id)
    day = ensure_app_timezone(when).strftime("%Y_%m_%d")
    return f"{notification_type.value}_{subject}_{day}"


def lifecycle_reminder_group(when: datetime) -> str:
    """Return the group key used for the admin reminders of one day."""

    return f"lifecycle_reminder_{ensure_app_timezone(when).strftime('%Y_%m_%d')}"


def _normalize_subject(subject_id: object | None) -> str:
    if subject_id is None:
        return "system"
    text = _UNSAFE_CHARACTERS.sub("-", str(subject_id).strip()).strip("-")
    return text or "system"


__all__ = ["derive_group", "lifecycle_reminder_group"]
