from dataclasses import replace

import pytest

from custom_field_permissions.exceptions import InvalidOperationError, UnknownPermissionTypeError
from custom_field_permissions.permission_types import (
    UNRESTRICTED,
    InstanceAccess,
    PermissionType,
    PrivateAccess,
    RoleAccess,
    build_default_registry,
    decide_field_access,
    is_custom_permissions,
    is_entity_owner,
)
from tests.conftest import NAMESPACE
from tests.fakes import FakeAccount, FakeEntity, FakeFieldStorage, OwnerlessEntity

pytestmark = pytest.mark.unit


def _grid(**cells):
    """Build ``kind -> role -> granted`` grants; keys use ``_`` for spaces."""
    return {kind.replace("_", " "): roles for kind, roles in cells.items()}


def _storage_with(key, matrix, bundle_types=None):
    storage = FakeFieldStorage()
    storage.set_third_party_setting(NAMESPACE, key, matrix)
    if bundle_types:
        storage.set_third_party_setting(NAMESPACE, "bundles_types_permissions", bundle_types)
    return storage


# decide_field_access


def test_unconfigured_scope_uses_fallback():
    entity = FakeEntity()
    account = FakeAccount()

    assert decide_field_access("view", entity, account, None) is True
    assert decide_field_access("view", entity, account, None, unconfigured_access=False) is False


def test_unrestricted_scope_grants_every_operation():
    account = FakeAccount(roles=["editor"])

    assert decide_field_access("view", FakeEntity(), account, UNRESTRICTED, False) is True
    assert decide_field_access("edit", FakeEntity(new=True), account, UNRESTRICTED, False) is True


def test_new_entity_edit_only_checks_create():
    entity = FakeEntity(new=True, owner_id=1)
    account = FakeAccount(roles=["editor"])
    grants = _grid(create={"editor": False}, edit={"editor": True}, edit_own={"editor": True})

    assert decide_field_access("edit", entity, account, grants) is False
    grants["create"]["editor"] = True
    assert decide_field_access("edit", entity, account, grants) is True


def test_own_grant_requires_ownership():
    account = FakeAccount(account_id=7, roles=["editor"])
    grants = _grid(view={"editor": False}, view_own={"editor": True})

    assert decide_field_access("view", FakeEntity(owner_id=7), account, grants) is True
    assert decide_field_access("view", FakeEntity(owner_id=8), account, grants) is False


def test_user_entity_is_owned_by_itself():
    account = FakeAccount(account_id=3)

    assert is_entity_owner(FakeEntity(entity_type_id="user", entity_id=3), account) is True
    assert is_entity_owner(FakeEntity(entity_type_id="user", entity_id=4), account) is False
    assert is_entity_owner(OwnerlessEntity(), account) is False


# private


def test_private_access(dependencies):
    strategy = PrivateAccess(FakeFieldStorage(), dependencies)
    owner = FakeAccount(account_id=1)
    other = FakeAccount(account_id=2)
    privileged = FakeAccount(account_id=3, permissions=["access private fields"])
    entity = FakeEntity(owner_id=1)

    assert strategy.has_field_access("view", entity, owner) is True
    assert strategy.has_field_access("edit", entity, other) is False
    assert strategy.has_field_access("edit", entity, privileged) is True
    assert strategy.has_field_access("edit", FakeEntity(new=True), other) is True
    assert strategy.has_field_access("view", OwnerlessEntity(), other) is False


def test_private_view_for_every_entity(dependencies):
    strategy = PrivateAccess(FakeFieldStorage(), dependencies)

    assert strategy.has_field_view_access_for_every_entity(FakeAccount()) is False
    assert strategy.has_field_view_access_for_every_entity(
        FakeAccount(permissions=["access private fields"])
    ) is True


def test_private_rejects_unknown_operation(dependencies):
    strategy = PrivateAccess(FakeFieldStorage(), dependencies)

    with pytest.raises(InvalidOperationError):
        strategy.has_field_access("delete", FakeEntity(), FakeAccount())


# custom (role based)


def test_role_access_grants_by_role(dependencies):
    storage = _storage_with(
        "role_permissions",
        {"article": _grid(view={"editor": True, "anonymous": False}, edit={"editor": False})},
    )
    strategy = RoleAccess(storage, dependencies)

    assert strategy.has_field_access("view", FakeEntity(), FakeAccount(roles=["editor"])) is True
    assert strategy.has_field_access("view", FakeEntity(), FakeAccount(roles=["anonymous"])) is False
    assert strategy.has_field_access("edit", FakeEntity(), FakeAccount(roles=["editor"])) is False


def test_role_access_unconfigured_bundle(dependencies):
    storage = _storage_with("role_permissions", {"article": _grid(view={"editor": False})})
    account = FakeAccount(roles=["editor"])

    assert RoleAccess(storage, dependencies).has_field_access("view", FakeEntity("page"), account)

    deny = replace(dependencies, unconfigured_access=False)
    assert not RoleAccess(storage, deny).has_field_access("view", FakeEntity("page"), account)


def test_role_access_empty_bundle_mapping_is_unconfigured(dependencies):
    storage = _storage_with("role_permissions", {"article": {}})

    assert RoleAccess(storage, dependencies).has_field_access(
        "view", FakeEntity(), FakeAccount(roles=["editor"])
    )


def test_role_access_never_grants_view_on_every_entity(dependencies):
    strategy = RoleAccess(FakeFieldStorage(), dependencies)

    assert strategy.has_field_view_access_for_every_entity(FakeAccount(roles=["editor"])) is False


def test_role_access_permissions(dependencies):
    strategy = RoleAccess(FakeFieldStorage(), dependencies)

    permissions = strategy.get_permissions()

    assert list(permissions) == [
        "create field_salary",
        "edit own field_salary",
        "edit field_salary",
        "view own field_salary",
        "view field_salary",
    ]
    assert is_custom_permissions(strategy)


def test_role_access_granted_permission_names(dependencies):
    strategy = RoleAccess(FakeFieldStorage(), dependencies)
    matrix = {
        "article": _grid(view={"editor": True, "anonymous": False}),
        "page": _grid(edit={"editor": True}),
    }

    assert strategy.granted_permission_names(matrix) == {
        "editor": {"view field_salary", "edit field_salary"}
    }


# custom_instance


def test_instance_access_uses_current_instance(dependencies, current_instance):
    storage = _storage_with(
        "instance_permissions",
        {"article": {"amtt": _grid(view={"editor": True}), "bcde": _grid(view={"editor": False})}},
    )
    strategy = InstanceAccess(storage, dependencies)
    account = FakeAccount(roles=["editor"])

    assert strategy.has_field_access("view", FakeEntity(), account) is True
    current_instance["value"] = "bcde"
    assert strategy.has_field_access("view", FakeEntity(), account) is False


def test_instance_access_without_grants_for_current_instance_denies(dependencies, current_instance):
    storage = _storage_with("instance_permissions", {"article": {"bcde": _grid(view={"editor": True})}})
    strategy = InstanceAccess(storage, dependencies)

    assert strategy.has_field_access("view", FakeEntity(), FakeAccount(roles=["editor"])) is False


def test_instance_access_unconfigured_bundle_uses_fallback(dependencies):
    storage = _storage_with("instance_permissions", {"page": {"amtt": _grid(view={"editor": True})}})

    assert InstanceAccess(storage, dependencies).has_field_access(
        "view", FakeEntity(), FakeAccount(roles=["editor"])
    )
    deny = replace(dependencies, unconfigured_access=False)
    assert not InstanceAccess(storage, deny).has_field_access(
        "view", FakeEntity(), FakeAccount(roles=["editor"])
    )


def test_instance_access_without_instance_behaves_as_public(dependencies, current_instance):
    current_instance["value"] = None
    storage = _storage_with("instance_permissions", {"article": {"amtt": _grid(view={"editor": False})}})
    strategy = InstanceAccess(storage, dependencies)
    account = FakeAccount(roles=["editor"])

    assert strategy.has_field_access("view", FakeEntity(), account) is True
    assert strategy.has_field_access("edit", FakeEntity(), account) is True
    assert strategy.has_field_view_access_for_every_entity(account) is True
    with pytest.raises(InvalidOperationError):
        strategy.has_field_access("publish", FakeEntity(), account)


def test_instance_scope_resolution(dependencies, current_instance):
    matrix = {"article": {"amtt": _grid(view={"editor": True})}}
    strategy = InstanceAccess(FakeFieldStorage(), dependencies)

    assert strategy.resolve_scope(matrix, FakeEntity()) == _grid(view={"editor": True})
    assert strategy.resolve_scope(matrix, FakeEntity(bundle="page")) is None
    current_instance["value"] = "bcde"
    assert strategy.resolve_scope(matrix, FakeEntity()) == {}
    current_instance["value"] = None
    assert strategy.resolve_scope(matrix, FakeEntity()) is UNRESTRICTED


def test_instance_view_for_every_entity_uses_scoped_permission(dependencies):
    strategy = InstanceAccess(FakeFieldStorage(), dependencies)

    assert strategy.has_field_view_access_for_every_entity(
        FakeAccount(permissions=["amtt view field_salary"])
    ) is True
    assert strategy.has_field_view_access_for_every_entity(
        FakeAccount(permissions=["bcde view field_salary"])
    ) is False


def test_instance_permissions_cover_every_instance(dependencies):
    permissions = InstanceAccess(FakeFieldStorage(), dependencies).get_permissions()

    assert len(permissions) == 10
    assert permissions["amtt view own field_salary"]["instance"] == "amtt"
    assert permissions["bcde create field_salary"]["description"] == (
        "bcde: Create own value for field field_salary"
    )


# registry


def test_registry_definitions_are_ordered_by_weight(registry):
    assert [d.type_id for d in registry.definitions()] == [
        "public",
        "private",
        "custom",
        "custom_instance",
    ]
    assert [d.type_id for d in registry.custom_types()] == ["custom", "custom_instance"]


def test_registry_create(registry):
    strategy = registry.create(PermissionType.CUSTOM, FakeFieldStorage())

    assert isinstance(strategy, RoleAccess)
    assert strategy.label == "Custom permissions"


def test_registry_rejects_public_and_unknown(registry):
    with pytest.raises(UnknownPermissionTypeError):
        registry.create("public", FakeFieldStorage())
    with pytest.raises(UnknownPermissionTypeError):
        registry.create("nope", FakeFieldStorage())
    with pytest.raises(UnknownPermissionTypeError):
        registry.get_definition("nope")
    assert registry.get_definition("public").title == "Not set"


def test_registry_ignores_duplicate_registration(dependencies):
    registry = build_default_registry(dependencies)
    registry.register(RoleAccess, factory=lambda storage, deps: None)

    assert isinstance(registry.create("custom", FakeFieldStorage()), RoleAccess)
