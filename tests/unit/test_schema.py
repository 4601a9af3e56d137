from types import SimpleNamespace

import graphene
import pytest

from custom_field_permissions.schema import FieldPermissionsQuery

pytestmark = pytest.mark.unit

schema = graphene.Schema(query=FieldPermissionsQuery)


def _context(**user_attrs):
    user = SimpleNamespace(is_authenticated=True, is_staff=False, is_superuser=False)
    for key, value in user_attrs.items():
        setattr(user, key, value)
    return SimpleNamespace(user=user)


def test_permission_kinds_for_staff():
    result = schema.execute(
        '{ fieldPermissionKinds(fieldName: "salary") { kind label description } }',
        context_value=_context(is_staff=True),
    )

    assert result.errors is None
    kinds = result.data["fieldPermissionKinds"]
    assert [item["kind"] for item in kinds] == ["create", "edit own", "edit", "view own", "view"]
    assert kinds[2]["description"] == "Edit anyone's value for field salary"


def test_permission_kinds_denied_for_non_staff():
    result = schema.execute(
        "{ fieldPermissionKinds { kind } }",
        context_value=_context(),
    )

    assert result.errors
    assert "Staff access required" in str(result.errors[0])


def test_permission_kinds_denied_for_anonymous():
    result = schema.execute(
        "{ fieldPermissionKinds { kind } }",
        context_value=_context(is_authenticated=False),
    )

    assert "Authentication required" in str(result.errors[0])


@pytest.mark.django_db
def test_overview_for_superuser():
    result = schema.execute(
        "{ fieldPermissionsOverview { header rows } }",
        context_value=_context(is_superuser=True),
    )

    assert result.errors is None
    assert result.data["fieldPermissionsOverview"]["header"][0] == "Field name"
    assert result.data["fieldPermissionsOverview"]["rows"] == []
