"""Helpers that turn domain events into notifications.

Controllers call these after their own work has been committed. A failure to
notify is logged and never propagated to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mover_api.domain.entities import (
    FieldChange,
    NotificationPriority,
    NotificationRecord,
    NotificationType,
)
from mover_api.domain.errors import NotificationError
from mover_api.infrastructure.repositories import UserRepository

from .factory import (
    create_document_notification,
    create_system_notification,
    create_user_notification,
)

logger = logging.getLogger(__name__)

Changes = Sequence[FieldChange | dict[str, Any]]


def _safely(
    session: Session, description: str, build: Callable[[], NotificationRecord]
) -> NotificationRecord | None:
    try:
        return build()
    except (SQLAlchemyError, NotificationError):
        session.rollback()
        logger.exception("Failed to create %s notification", description)
        return None


def _admins_and(session: Session, *extra: int | None) -> set[int]:
    """Return every active admin id plus the given users."""

    recipients = set(UserRepository(session).list_active_admin_ids())
    recipients.update(user_id for user_id in extra if user_id)
    return recipients


def _notify_document(
    session: Session,
    event_type: NotificationType,
    *,
    document_type: str,
    document_id: str | int,
    document_number: str | None,
    actor_id: int | None,
    include: Iterable[int | None] = (),
    changes: Changes | None = None,
) -> NotificationRecord | None:
    return _safely(
        session,
        event_type.value,
        lambda: create_document_notification(
            session,
            event_type,
            document_type=document_type,
            document_id=document_id,
            document_number=document_number,
            actor_id=actor_id,
            recipient_ids=_admins_and(session, *include),
            changes=changes,
        ),
    )


def notify_document_created(
    session: Session,
    *,
    document_type: str,
    document_id: str | int,
    document_number: str | None,
    created_by: int | None,
) -> NotificationRecord | None:
    return _notify_document(
        session,
        NotificationType.DOCUMENT_CREATED,
        document_type=document_type,
        document_id=document_id,
        document_number=document_number,
        actor_id=created_by,
        include=(created_by,),
    )


def notify_document_updated(
    session: Session,
    *,
    document_type: str,
    document_id: str | int,
    document_number: str | None,
    actor_id: int | None,
    changes: Changes,
) -> NotificationRecord | None:
    """Notify admins about an edited document; nothing is sent without changes."""

    if not changes:
        logger.debug("Skipping update notification for %s %s without changes", document_type, document_id)
        return None
    return _notify_document(
        session,
        NotificationType.DOCUMENT_UPDATED,
        document_type=document_type,
        document_id=document_id,
        document_number=document_number,
        actor_id=actor_id,
        changes=changes,
    )


def notify_document_deleted(
    session: Session,
    *,
    document_type: str,
    document_id: str | int,
    document_number: str | None,
    actor_id: int | None,
) -> NotificationRecord | None:
    return _notify_document(
        session,
        NotificationType.DOCUMENT_DELETED,
        document_type=document_type,
        document_id=document_id,
        document_number=document_number,
        actor_id=actor_id,
    )


def notify_quotation_converted(
    session: Session,
    *,
    quotation_id: str | int,
    quotation_number: str | None,
    actor_id: int | None,
    created_by: int | None = None,
) -> NotificationRecord | None:
    return _notify_document(
        session,
        NotificationType.QUOTATION_CONVERTED,
        document_type="Quotation",
        document_id=quotation_id,
        document_number=quotation_number,
        actor_id=actor_id,
        include=(created_by,),
    )


def notify_quotation_expired(
    session: Session,
    *,
    quotation_id: str | int,
    quotation_number: str | None,
    created_by: int | None = None,
) -> NotificationRecord | None:
    return _notify_document(
        session,
        NotificationType.QUOTATION_EXPIRED,
        document_type="Quotation",
        document_id=quotation_id,
        document_number=quotation_number,
        actor_id=None,
        include=(created_by,),
    )


def notify_payment_received(
    session: Session,
    *,
    receipt_id: str | int,
    receipt_number: str | None,
    actor_id: int | None,
    created_by: int | None = None,
) -> NotificationRecord | None:
    return _notify_document(
        session,
        NotificationType.PAYMENT_RECEIVED,
        document_type="Receipt",
        document_id=receipt_id,
        document_number=receipt_number,
        actor_id=actor_id,
        include=(created_by,),
    )


def notify_payment_overdue(
    session: Session,
    *,
    receipt_id: str | int,
    receipt_number: str | None,
    created_by: int | None = None,
) -> NotificationRecord | None:
    return _notify_document(
        session,
        NotificationType.PAYMENT_OVERDUE,
        document_type="Receipt",
        document_id=receipt_id,
        document_number=receipt_number,
        actor_id=None,
        include=(created_by,),
    )


def notify_user_created(
    session: Session,
    *,
    user_name: str,
    user_id: int,
    created_by: int | None,
    profile_completed: bool = True,
) -> list[NotificationRecord]:
    """Tell admins about a new user and ask the user to finish an incomplete profile."""

    created: list[NotificationRecord] = []
    notification = _safely(
        session,
        NotificationType.USER_CREATED.value,
        lambda: create_user_notification(
            session,
            NotificationType.USER_CREATED,
            user_name=user_name,
            user_id=user_id,
            actor_id=created_by,
            recipient_ids=UserRepository(session).list_active_admin_ids(exclude=[user_id]),
        ),
    )
    if notification:
        created.append(notification)

    if not profile_completed:
        notification = _safely(
            session,
            NotificationType.PROFILE_INCOMPLETE.value,
            lambda: create_user_notification(
                session,
                NotificationType.PROFILE_INCOMPLETE,
                user_name=user_name,
                user_id=user_id,
                actor_id=created_by,
                recipient_ids=[user_id],
            ),
        )
        if notification:
            created.append(notification)
    return created


def notify_user_updated(
    session: Session,
    *,
    user_name: str,
    user_id: int,
    actor_id: int | None,
    changes: Changes,
) -> NotificationRecord | None:
    if not changes:
        return None
    return _safely(
        session,
        NotificationType.USER_UPDATED.value,
        lambda: create_user_notification(
            session,
            NotificationType.USER_UPDATED,
            user_name=user_name,
            user_id=user_id,
            actor_id=actor_id,
            recipient_ids=_admins_and(session, user_id),
            changes=changes,
        ),
    )


def notify_user_role_changed(
    session: Session,
    *,
    user_name: str,
    user_id: int,
    actor_id: int | None = None,
    changes: Changes | None = None,
) -> NotificationRecord | None:
    return _safely(
        session,
        NotificationType.USER_ROLE_CHANGED.value,
        lambda: create_user_notification(
            session,
            NotificationType.USER_ROLE_CHANGED,
            user_name=user_name,
            user_id=user_id,
            actor_id=actor_id,
            recipient_ids=_admins_and(session, user_id),
            changes=changes,
        ),
    )


def broadcast_system_notification(
    session: Session,
    *,
    event_type: NotificationType | str,
    title: str,
    message: str,
    priority: NotificationPriority | str = NotificationPriority.NORMAL,
) -> NotificationRecord | None:
    """Send one system notification addressed to every active user."""

    return _safely(
        session,
        getattr(event_type, "value", event_type),
        lambda: create_system_notification(
            session,
            event_type,
            title=title,
            message=message,
            recipient_ids=[user.id for user in UserRepository(session).list_active()],
            priority=priority,
        ),
    )


__all__ = [
    "broadcast_system_notification",
    "notify_document_created",
    "notify_document_deleted",
    "notify_document_updated",
    "notify_payment_overdue",
    "notify_payment_received",
    "notify_quotation_converted",
    "notify_quotation_expired",
    "notify_user_created",
    "notify_user_role_changed",
    "notify_user_updated",
]
