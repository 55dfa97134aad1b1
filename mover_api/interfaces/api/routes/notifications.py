"""Endpoints for the notifications of the authenticated user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mover_api.application.use_cases.notifications import (
    list_notifications_for_user,
    mark_all_read_for_user,
    mark_notification_read,
    mark_notification_unread,
    unread_count_for_user,
)
from mover_api.domain.entities import NotificationPriority, NotificationType, User
from mover_api.infrastructure.database import get_db
from mover_api.interfaces.api.dependencies import get_current_active_user
from mover_api.interfaces.api.routes_helpers import to_http_exception
from mover_api.interfaces.api.schemas import (
    MarkAllReadResponse,
    NotificationRead,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    unread_only: bool | None = Query(default=None),
    type: NotificationType | None = Query(default=None),
    priority: NotificationPriority | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[NotificationRead]:
    """Return the visible notifications of the authenticated user, newest first."""

    notifications = list_notifications_for_user(
        db,
        current_user.id,
        unread_only=unread_only,
        type=type,
        priority=priority,
        limit=limit,
    )
    return [
        NotificationRead.from_record(notification, viewer_id=current_user.id)
        for notification in notifications
    ]


@router.get("/unread-count", response_model=UnreadCountRead)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UnreadCountRead:
    return UnreadCountRead(unread_count=unread_count_for_user(db, current_user.id))


@router.put("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=mark_all_read_for_user(db, current_user.id))


@router.put("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationRead:
    try:
        notification = mark_notification_read(db, notification_id, current_user.id)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return NotificationRead.from_record(notification, viewer_id=current_user.id)


@router.put("/{notification_id}/unread", response_model=NotificationRead)
def mark_unread(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationRead:
    try:
        notification = mark_notification_unread(db, notification_id, current_user.id)
    except ValueError as exc:
        raise to_http_exception(exc) from exc
    return NotificationRead.from_record(notification, viewer_id=current_user.id)
