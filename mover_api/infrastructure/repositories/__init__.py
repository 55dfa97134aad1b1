"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationCriteria, NotificationRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationCriteria",
    "NotificationRepository",
    "UserRepository",
]
