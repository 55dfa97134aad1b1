"""Domain entity representing a user role."""

from dataclasses import dataclass
from typing import Final

# Role aliases that carry the admin capability on notification endpoints.
ADMIN_ROLE_ALIASES: Final[tuple[str, ...]] = ("admin", "super_admin")


@dataclass
class Role:
    """Role assigned to a user; ``alias`` drives capability checks."""

    id: int | None
    name: str
    alias: str

    @property
    def grants_admin(self) -> bool:
        return self.alias.lower() in ADMIN_ROLE_ALIASES


__all__ = ["ADMIN_ROLE_ALIASES", "Role"]
