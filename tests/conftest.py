import pytest

from custom_field_permissions.cache import PermanentCache
from custom_field_permissions.config_proxy import settings_proxy
from custom_field_permissions.instances import CurrentInstanceResolver, InstanceRegistry
from custom_field_permissions.matrix import PermissionMatrixStore
from custom_field_permissions.permission_types import (
    PermissionTypeDependencies,
    build_default_registry,
)
from custom_field_permissions.service import (
    FieldPermissionsService,
    reset_field_permissions_service,
)
from tests.fakes import DictCacheBackend, FakeRole, FakeRoleStorage

NAMESPACE = "custom_field_permissions"

HOSTS_YAML = """\
prd:
  bcde:
    host: bcde.example.org
  amtt:
    host: amtt.example.org
dev:
  local:
    host: localhost
"""


@pytest.fixture(autouse=True)
def _fresh_settings():
    settings_proxy.clear_cache()
    reset_field_permissions_service()
    yield
    settings_proxy.clear_cache()
    reset_field_permissions_service()


@pytest.fixture
def hosts_file(tmp_path):
    path = tmp_path / "hosts.yaml"
    path.write_text(HOSTS_YAML, encoding="utf-8")
    return path


@pytest.fixture
def instance_registry(hosts_file):
    cache = PermanentCache("test:instances", backend=DictCacheBackend())
    return InstanceRegistry(cache=cache, source_file=hosts_file, source_key="prd")


@pytest.fixture
def current_instance():
    """Mutable current instance; set ``current_instance["value"]`` in tests."""
    return {"value": "amtt"}


@pytest.fixture
def dependencies(instance_registry, current_instance):
    return PermissionTypeDependencies(
        matrix_store=PermissionMatrixStore(namespace=NAMESPACE),
        instance_registry=instance_registry,
        instance_resolver=CurrentInstanceResolver(override=lambda: current_instance["value"]),
        private_permission="access private fields",
        unconfigured_access=True,
    )


@pytest.fixture
def registry(dependencies):
    return build_default_registry(dependencies)


@pytest.fixture
def roles():
    return FakeRoleStorage(
        [
            FakeRole("anonymous", "Anonymous"),
            FakeRole("authenticated", "Authenticated"),
            FakeRole("editor", "Editor"),
            FakeRole("administrator", "Administrator", admin=True),
        ]
    )


@pytest.fixture
def service(registry, roles):
    return FieldPermissionsService(registry, role_storage=roles, admin_role="administrator")
