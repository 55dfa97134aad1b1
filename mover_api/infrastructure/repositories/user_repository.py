"""Persistence layer for the user directory."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session, joinedload

from mover_api.domain.entities import Role, User
from mover_api.infrastructure.models import RoleModel, UserModel


class UserRepository:
    """Provide lookups over user entities used to address notifications."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(UserModel.id == user_id)
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    def list_active(self) -> Sequence[User]:
        query = (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(UserModel.is_active.is_(True))
            .order_by(UserModel.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def list_active_admin_ids(self, *, exclude: Sequence[int] = ()) -> list[int]:
        """Return identifiers of every active administrator."""

        query = (
            self.session.query(UserModel.id)
            .join(RoleModel, UserModel.role_id == RoleModel.id)
            .filter(UserModel.is_active.is_(True))
            .filter(RoleModel.grants_admin())
            .order_by(UserModel.id.asc())
        )
        excluded = set(exclude)
        return [user_id for (user_id,) in query.all() if user_id not in excluded]

    def create(self, user: User) -> User:
        role_model = self._get_or_create_role(user.role)
        model = UserModel(
            role_id=role_model.id,
            name=user.name,
            email=user.email,
            is_active=user.is_active,
            profile_completed=user.profile_completed,
            created_by=user.created_by,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _get_or_create_role(self, role: Role) -> RoleModel:
        model = (
            self.session.query(RoleModel)
            .filter(RoleModel.alias == role.alias)
            .one_or_none()
        )
        if model is not None:
            return model
        model = RoleModel(name=role.name, alias=role.alias)
        self.session.add(model)
        self.session.flush()
        return model

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        role = Role(id=model.role.id, name=model.role.name, alias=model.role.alias)
        return User(
            id=model.id,
            role=role,
            name=model.name,
            email=model.email,
            is_active=model.is_active,
            profile_completed=model.profile_completed,
            created_by=model.created_by,
            created_at=model.created_at,
        )


__all__ = ["UserRepository"]
