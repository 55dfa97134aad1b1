"""Role table backing the admin capability check."""

from sqlalchemy import Column, Integer, String, func

from mover_api.domain.entities import ADMIN_ROLE_ALIASES
from mover_api.infrastructure.database import Base


class RoleModel(Base):
    """Named role; admin recipients are resolved through ``alias``."""

    __tablename__ = "role"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, unique=True)
    alias = Column(String(50), nullable=False, unique=True)

    @classmethod
    def grants_admin(cls):
        """SQL condition matching the roles whose alias carries the admin capability."""

        return func.lower(cls.alias).in_(ADMIN_ROLE_ALIASES)


__all__ = ["RoleModel"]
