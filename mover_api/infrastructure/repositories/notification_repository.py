"""Persistence helpers for notification records."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Query, Session

from mover_api.domain.entities import (
    LifecycleStatus,
    NotificationMetadata,
    NotificationPriority,
    NotificationRecord,
    NotificationType,
)
from mover_api.domain.errors import NotificationNotFoundError
from mover_api.infrastructure.models import NotificationModel
from mover_api.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    iso_or_none,
    parse_iso_datetime,
)


@dataclass(frozen=True)
class NotificationCriteria:
    """Scalar filters that can be pushed down to the store."""

    lifecycle_status: LifecycleStatus | None = None
    lifecycle_statuses: tuple[LifecycleStatus, ...] | None = None
    type: NotificationType | None = None
    types: tuple[NotificationType, ...] | None = None
    notification_group: str | None = None
    is_read_by_all_users: bool | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    created_before: datetime | None = None
    expires_before: datetime | None = None
    reminder_sent_before: datetime | None = None
    exclude_archived: bool = False

    def is_empty(self) -> bool:
        return self == NotificationCriteria()


class NotificationRepository:
    """Provide document-style operations for :class:`NotificationRecord` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> NotificationRecord | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def get_for_update(self, notification_id: int) -> NotificationRecord:
        """Load ``notification_id`` locking the row until the next commit."""

        model = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id == notification_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if model is None:
            raise NotificationNotFoundError(notification_id)
        return self._to_entity(model)

    def create(self, record: NotificationRecord) -> NotificationRecord:
        model = NotificationModel()
        self._apply_entity_to_model(model, record)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def save(self, record: NotificationRecord) -> NotificationRecord:
        """Overwrite the stored document for ``record`` and commit."""

        if record.id is None:
            raise ValueError("Notification id is required for updates")
        model = self.session.get(NotificationModel, record.id)
        if model is None:
            raise NotificationNotFoundError(record.id)
        self._apply_entity_to_model(model, record)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list(self, criteria: NotificationCriteria | None = None) -> Sequence[NotificationRecord]:
        query = self._filtered_query(criteria or NotificationCriteria())
        query = query.order_by(NotificationModel.created_at.asc(), NotificationModel.id.asc())
        return [self._to_entity(model) for model in query.all()]

    def count(self, criteria: NotificationCriteria | None = None) -> int:
        return self._filtered_query(criteria or NotificationCriteria()).count()

    def iter_batches(
        self,
        criteria: NotificationCriteria | None = None,
        *,
        batch_size: int = 100,
        on_malformed: Callable[[int, Exception], None] | None = None,
    ) -> Iterator[list[NotificationRecord]]:
        """Yield matching records in id order, ``batch_size`` at a time.

        Each batch is fetched with a fresh query keyed on the last seen id, so
        records updated between batches are never skipped or revisited.

        When ``on_malformed`` is given, rows whose stored document cannot be
        mapped to a record are left out of the batch and reported to it with
        their id instead of raising.
        """

        last_id = 0
        while True:
            query = (
                self._filtered_query(criteria or NotificationCriteria())
                .filter(NotificationModel.id > last_id)
                .order_by(NotificationModel.id.asc())
                .limit(batch_size)
            )
            models = query.all()
            if not models:
                return
            last_id = models[-1].id
            if on_malformed is None:
                yield [self._to_entity(model) for model in models]
                continue

            batch: list[NotificationRecord] = []
            for model in models:
                try:
                    batch.append(self._to_entity(model))
                except (KeyError, ValueError, TypeError) as exc:
                    on_malformed(model.id, exc)
            yield batch

    def list_for_user(
        self,
        user_id: int,
        *,
        now: datetime,
        unread_only: bool | None = None,
        type: NotificationType | None = None,
        priority: NotificationPriority | None = None,
        limit: int | None = 50,
    ) -> Sequence[NotificationRecord]:
        """Return visible notifications addressed to ``user_id``, newest first.

        Recipient membership lives inside the JSON document, so it is checked
        after the scalar filters have narrowed the candidate rows.
        """

        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.lifecycle_status != LifecycleStatus.ARCHIVED.value)
            .filter(NotificationModel.expires_at > ensure_app_naive_datetime(now))
        )
        if type is not None:
            query = query.filter(NotificationModel.type == type.value)
        if priority is not None:
            query = query.filter(NotificationModel.priority == priority.value)
        query = query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())

        results: list[NotificationRecord] = []
        for model in query.all():
            record = self._to_entity(model)
            if not record.is_recipient(user_id):
                continue
            if unread_only is True and record.has_read(user_id):
                continue
            if unread_only is False and not record.has_read(user_id):
                continue
            results.append(record)
            if limit is not None and len(results) >= limit:
                break
        return results

    def list_unread_ids_for_user(self, user_id: int) -> list[int]:
        """Return ids of every record still unread by ``user_id``."""

        query = self.session.query(NotificationModel).order_by(NotificationModel.id.asc())
        ids: list[int] = []
        for model in query.all():
            recipients = {int(value) for value in model.recipient_user_ids or []}
            readers = {int(entry["user_id"]) for entry in model.read_by_users or []}
            if user_id in recipients and user_id not in readers:
                ids.append(model.id)
        return ids

    def delete_many(self, notification_ids: Iterable[int]) -> int:
        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        deleted = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def _filtered_query(self, criteria: NotificationCriteria) -> Query:
        query = self.session.query(NotificationModel)
        if criteria.lifecycle_status is not None:
            query = query.filter(
                NotificationModel.lifecycle_status == criteria.lifecycle_status.value
            )
        if criteria.lifecycle_statuses:
            query = query.filter(
                NotificationModel.lifecycle_status.in_(
                    [status.value for status in criteria.lifecycle_statuses]
                )
            )
        if criteria.exclude_archived:
            query = query.filter(
                NotificationModel.lifecycle_status != LifecycleStatus.ARCHIVED.value
            )
        if criteria.type is not None:
            query = query.filter(NotificationModel.type == criteria.type.value)
        if criteria.types:
            query = query.filter(
                NotificationModel.type.in_([item.value for item in criteria.types])
            )
        if criteria.notification_group is not None:
            query = query.filter(
                NotificationModel.notification_group == criteria.notification_group
            )
        if criteria.is_read_by_all_users is not None:
            query = query.filter(
                NotificationModel.is_read_by_all_users.is_(criteria.is_read_by_all_users)
            )
        if criteria.created_from is not None:
            query = query.filter(
                NotificationModel.created_at >= ensure_app_naive_datetime(criteria.created_from)
            )
        if criteria.created_to is not None:
            query = query.filter(
                NotificationModel.created_at <= ensure_app_naive_datetime(criteria.created_to)
            )
        if criteria.created_before is not None:
            query = query.filter(
                NotificationModel.created_at < ensure_app_naive_datetime(criteria.created_before)
            )
        if criteria.expires_before is not None:
            query = query.filter(
                NotificationModel.expires_at <= ensure_app_naive_datetime(criteria.expires_before)
            )
        if criteria.reminder_sent_before is not None:
            query = query.filter(
                NotificationModel.reminder_sent_at
                < ensure_app_naive_datetime(criteria.reminder_sent_before)
            )
        return query

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, record: NotificationRecord) -> None:
        model.notification_group = record.notification_group
        model.type = record.type.value
        model.title = record.title
        model.message = record.message
        model.priority = record.priority.value
        model.lifecycle_status = record.lifecycle_status.value
        model.recipient_user_ids = sorted(record.recipient_user_ids)
        model.read_by_users = [
            {"user_id": user_id, "read_at": iso_or_none(read_at)}
            for user_id, read_at in record.read_by_users.items()
        ]
        model.is_read_by_all_users = record.is_read_by_all_users
        model.read = record.read
        model.read_at = ensure_app_naive_datetime(record.read_at)
        model.created_at = ensure_app_naive_datetime(record.created_at)
        model.expires_at = ensure_app_naive_datetime(record.expires_at)
        model.extended_until = ensure_app_naive_datetime(record.extended_until)
        model.reminder_sent_at = ensure_app_naive_datetime(record.reminder_sent_at)
        model.archived_at = ensure_app_naive_datetime(record.archived_at)
        model.payload = record.metadata.to_document()
        model.actor_id = record.actor_id
        model.action_url = record.action_url
        model.action_text = record.action_text

    @staticmethod
    def _to_entity(model: NotificationModel) -> NotificationRecord:
        return NotificationRecord(
            id=model.id,
            notification_group=model.notification_group,
            recipient_user_ids=frozenset(int(value) for value in model.recipient_user_ids or []),
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            created_at=ensure_app_timezone(model.created_at),
            expires_at=ensure_app_timezone(model.expires_at),
            priority=NotificationPriority(model.priority),
            lifecycle_status=LifecycleStatus(model.lifecycle_status),
            read_by_users={
                int(entry["user_id"]): parse_iso_datetime(entry.get("read_at"))
                for entry in model.read_by_users or []
            },
            is_read_by_all_users=bool(model.is_read_by_all_users),
            read=bool(model.read),
            read_at=ensure_app_timezone(model.read_at),
            extended_until=ensure_app_timezone(model.extended_until),
            reminder_sent_at=ensure_app_timezone(model.reminder_sent_at),
            archived_at=ensure_app_timezone(model.archived_at),
            metadata=NotificationMetadata.from_document(model.payload),
            actor_id=model.actor_id,
            action_url=model.action_url,
            action_text=model.action_text,
        )


__all__ = ["NotificationCriteria", "NotificationRepository"]
