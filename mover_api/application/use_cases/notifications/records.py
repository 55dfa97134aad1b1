"""Single-record read-modify-write helper shared by the notification use cases."""

from __future__ import annotations

from typing import Callable, TypeVar

from sqlalchemy.orm import Session

from mover_api.domain.entities import NotificationRecord
from mover_api.infrastructure.repositories import NotificationRepository

T = TypeVar("T")


def update_record(
    session: Session,
    notification_id: int,
    mutate: Callable[[NotificationRecord], T],
) -> tuple[NotificationRecord, T]:
    """Lock, mutate and persist one notification as a single unit of work.

    ``mutate`` returns a value describing what it did; when it returns a
    falsy value the record is left untouched and the transaction is closed
    without writing.
    """

    repository = NotificationRepository(session)
    try:
        record = repository.get_for_update(notification_id)
        outcome = mutate(record)
        if not outcome:
            session.rollback()
            return record, outcome
        return repository.save(record), outcome
    except Exception:
        session.rollback()
        raise


__all__ = ["update_record"]
