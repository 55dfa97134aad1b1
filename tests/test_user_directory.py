from mover_api.domain.entities import Role
from mover_api.infrastructure.repositories import UserRepository


def test_active_admin_ids_match_role_alias_case_insensitively(session, make_user):
    upper = make_user("Upper Admin", role="ADMIN")
    super_admin = make_user("Root", role="super_admin")
    make_user("Regular")
    make_user("Former Admin", role="ADMIN", is_active=False)

    repository = UserRepository(session)

    assert repository.list_active_admin_ids() == [upper.id, super_admin.id]
    assert repository.list_active_admin_ids(exclude=[upper.id]) == [super_admin.id]
    assert repository.get(upper.id).is_admin() is True


def test_role_grants_admin_only_for_admin_aliases():
    assert Role(id=None, name="Admin", alias="Admin").grants_admin is True
    assert Role(id=None, name="Super Admin", alias="super_admin").grants_admin is True
    assert Role(id=None, name="Dispatcher", alias="dispatcher").grants_admin is False
