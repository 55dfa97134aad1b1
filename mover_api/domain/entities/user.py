"""Domain entity representing a user of the directory."""

from dataclasses import dataclass
from datetime import datetime


from .role import Role


@dataclass
class User:
    """Directory attributes needed to address and authorize notifications."""

    id: int | None
    role: Role
    name: str
    email: str
    is_active: bool
    profile_completed: bool = True
    created_by: int | None = None
    created_at: datetime | None = None

    def has_role(self, alias: str) -> bool:
        """Return ``True`` when the user's role alias matches ``alias``."""

        return self.role.alias.lower() == alias.lower()

    def is_admin(self) -> bool:
        """Return ``True`` when the user is an administrator."""

        return self.role.grants_admin


__all__ = ["User"]
