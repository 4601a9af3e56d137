import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser

from custom_field_permissions.admin_form import FieldPermissionsAdminForm
from custom_field_permissions.models import (
    DjangoFieldStorageRepository,
    DjangoRoleStorage,
    FieldRole,
    FieldStorageConfig,
    UserAccount,
)
from custom_field_permissions.service import build_field_permissions_service
from tests.fakes import FakeEntity, FakeFieldDefinition, FakeItems

pytestmark = [pytest.mark.unit, pytest.mark.django_db]


@pytest.fixture
def salary_field():
    return FieldStorageConfig.objects.create(
        entity_type="node", field_name="field_salary", bundles=["article"]
    )


@pytest.fixture
def django_roles():
    FieldRole.objects.create(id="anonymous", label="Anonymous", weight=0)
    FieldRole.objects.create(id="authenticated", label="Authenticated", weight=1)
    editor = FieldRole.objects.create(id="editor", label="Editor", weight=2)
    FieldRole.objects.create(id="administrator", label="Administrator", admin=True, weight=3)
    return editor


def test_field_storage_third_party_settings_and_version(salary_field):
    assert salary_field.get_version() == 1
    assert salary_field.get_third_party_setting("custom_field_permissions", "role_permissions", {}) == {}

    salary_field.set_third_party_setting(
        "custom_field_permissions", "role_permissions", {"article": {"view": {"editor": True}}}
    )
    salary_field.save()
    salary_field.refresh_from_db()

    assert salary_field.get_version() == 2
    assert salary_field.get_third_party_setting("custom_field_permissions", "role_permissions") == {
        "article": {"view": {"editor": True}}
    }
    assert str(salary_field) == "node.field_salary"


def test_role_permissions_are_sorted_and_unique(django_roles):
    django_roles.set_permissions(["view b", "view a", "view b"])
    django_roles.save()
    django_roles.refresh_from_db()

    assert django_roles.get_permissions() == ["view a", "view b"]
    assert django_roles.has_permission("view a")
    assert FieldRole.objects.get(pk="administrator").has_permission("anything")


def test_role_storage_loads_by_id(django_roles):
    storage = DjangoRoleStorage()

    assert list(storage.load_multiple()) == ["anonymous", "authenticated", "editor", "administrator"]
    assert list(storage.load_multiple(["editor"])) == ["editor"]


def test_user_account_roles(django_roles):
    user = get_user_model().objects.create_user("alice", password="x")
    django_roles.users.add(user)
    django_roles.set_permissions(["view field_salary"])
    django_roles.save()

    account = UserAccount(user)

    assert account.id == user.pk
    assert account.get_roles() == ["authenticated", "editor"]
    assert account.has_permission("view field_salary")
    assert not account.has_permission("edit field_salary")
    assert UserAccount(AnonymousUser()).get_roles() == ["anonymous"]


def test_superuser_account_is_administrator(django_roles):
    user = get_user_model().objects.create_superuser("root", "root@example.org", "x")

    account = UserAccount(user)

    assert "administrator" in account.get_roles()
    assert account.has_permission("anything")


def test_end_to_end_with_django_storage(salary_field, django_roles, hosts_file, settings):
    settings.CUSTOM_FIELD_PERMISSIONS = {"instances": {"source_file": str(hosts_file)}}
    service = build_field_permissions_service()
    form = FieldPermissionsAdminForm(service.registry, DjangoRoleStorage())
    user = get_user_model().objects.create_user("bob", password="x")
    django_roles.users.add(user)

    result = form.submit(
        salary_field,
        "article",
        "custom",
        {"permissions": {"article": {"view": {"editor": "1"}}}},
        expected_version=salary_field.get_version(),
    )
    salary_field.refresh_from_db()
    definition = FakeFieldDefinition(salary_field)
    account = UserAccount(user)

    assert result.saved is True
    assert FieldRole.objects.get(pk="editor").get_permissions() == ["view field_salary"]
    assert service.get_field_access("view", FakeItems(FakeEntity()), account, definition)
    assert not service.get_field_access("edit", FakeItems(FakeEntity()), account, definition)
    assert service.get_permissions_by_role()["editor"] == ["view field_salary"]
    assert isinstance(service.field_repository, DjangoFieldStorageRepository)
