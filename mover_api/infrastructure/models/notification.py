"""SQLAlchemy model for persisted notification documents."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text

from mover_api.infrastructure.database import Base
from mover_api.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation of a multi-recipient notification.

    Collection-valued fields are stored as JSON so each row behaves like a
    self-contained document that is read and written as a whole.
    """

    __tablename__ = "notification"

    id = Column(Integer, primary_key=True, index=True)
    notification_group = Column(String(200), nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(String(10), nullable=False, default="normal")
    lifecycle_status = Column(String(20), nullable=False, default="active", index=True)
    recipient_user_ids = Column(JSON, nullable=False, default=list)
    read_by_users = Column(JSON, nullable=False, default=list)
    is_read_by_all_users = Column(Boolean, nullable=False, default=False, index=True)
    read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True)
    expires_at = Column(DateTime(), nullable=False)
    extended_until = Column(DateTime(), nullable=True)
    reminder_sent_at = Column(DateTime(), nullable=True)
    archived_at = Column(DateTime(), nullable=True)
    payload = Column("metadata", JSON, nullable=False, default=dict)
    actor_id = Column(Integer, nullable=True, index=True)
    action_url = Column(String(200), nullable=True)
    action_text = Column(String(50), nullable=True)

    __table_args__ = (
        Index("ix_notification_lifecycle_expires", "lifecycle_status", "expires_at"),
    )


__all__ = ["NotificationModel"]
