"""
GraphQL queries for field permissions.
"""

import graphene
from django.core.exceptions import PermissionDenied

from .catalog import get_permission_list
from .report import FieldPermissionsReport
from .service import get_field_permissions_service


class FieldPermissionKindInfo(graphene.ObjectType):
    """A permission kind of a field."""

    kind = graphene.String()
    label = graphene.String()
    description = graphene.String()


class FieldPermissionsOverviewInfo(graphene.ObjectType):
    """Field permissions overview table."""

    header = graphene.List(graphene.String)
    rows = graphene.List(graphene.List(graphene.String))


def _require_staff(info):
    user = getattr(info.context, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        raise PermissionDenied("Authentication required")
    if not (getattr(user, "is_staff", False) or getattr(user, "is_superuser", False)):
        raise PermissionDenied("Staff access required")
    return user


class FieldPermissionsQuery(graphene.ObjectType):
    """Read-only queries describing field permissions."""

    field_permission_kinds = graphene.List(
        FieldPermissionKindInfo,
        field_name=graphene.String(),
        description="Permission kinds a field exposes",
    )
    field_permission_instances = graphene.List(
        graphene.String, description="Known deployment instances"
    )
    field_permissions_overview = graphene.Field(
        FieldPermissionsOverviewInfo, description="Permissions of every field per bundle"
    )

    def resolve_field_permission_kinds(self, info, field_name: str = ""):
        _require_staff(info)
        return [
            FieldPermissionKindInfo(kind=kind, label=data["label"], description=data["description"])
            for kind, data in get_permission_list(field_name).items()
        ]

    def resolve_field_permission_instances(self, info):
        _require_staff(info)
        service = get_field_permissions_service()
        return service.registry.dependencies.instance_registry.list_instances()

    def resolve_field_permissions_overview(self, info):
        _require_staff(info)
        overview = FieldPermissionsReport(get_field_permissions_service()).build()
        rows = [[str(cell) for cell in row] for row in overview["rows"]]
        return FieldPermissionsOverviewInfo(header=overview["header"], rows=rows)
