import pytest

from custom_field_permissions.report import FieldPermissionsReport
from custom_field_permissions.service import FieldPermissionsService
from tests.conftest import NAMESPACE
from tests.fakes import FakeFieldStorage

pytestmark = pytest.mark.unit


class Repository:
    def __init__(self, storages):
        self.storages = storages

    def load_multiple(self):
        return list(self.storages)


def _storage(name, bundle_types, locked=False):
    storage = FakeFieldStorage(name=name, bundles=list(bundle_types), locked=locked)
    storage.set_third_party_setting(NAMESPACE, "bundles_types_permissions", bundle_types)
    return storage


@pytest.fixture
def report(registry, roles):
    roles.roles["anonymous"].permissions = ["view field_salary", "edit field_salary"]
    roles.roles["authenticated"].permissions = ["view field_salary"]
    storages = [
        _storage("field_salary", {"article": "custom"}),
        _storage("field_notes", {"article": "private"}, locked=True),
        _storage("field_body", {"article": "public", "page": "public"}),
    ]
    service = FieldPermissionsService(
        registry, field_repository=Repository(storages), role_storage=roles
    )
    return FieldPermissionsReport(service)


def test_header_lists_permission_kinds(report):
    assert report.header() == [
        "Field name",
        "Field type",
        "Entity type",
        "Used in",
        "Create field",
        "Edit own field",
        "Edit field",
        "View own field",
        "View field",
    ]


def test_rows(report):
    rows = report.rows()

    assert len(rows) == 4
    salary, notes, body_article, body_page = rows
    assert salary == ["field_salary", "string", "node", "article", "off", "off", "off", "off", "on"]
    assert notes == [
        "field_notes (Locked)",
        "string",
        "node",
        "article",
        "Private (Only author and administrators can edit and view.)",
    ]
    assert body_article[-1] == "Not set (Field inherits content permissions.)"
    assert body_page[3] == "page"


def test_report_without_repository_is_empty(registry):
    assert FieldPermissionsReport(FieldPermissionsService(registry)).rows() == []
