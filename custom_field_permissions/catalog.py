"""
Catalog of the permission kinds every field exposes.

Each field governed by a custom permission type carries exactly five
permission kinds. The machine name of a kind is ``"<kind> <field>"``, or
``"<instance> <kind> <field>"`` when scoped to a deployment instance.
"""

from enum import Enum
from typing import Optional

from django.utils.translation import gettext as _


class PermissionKind(Enum):
    """The abstract operations a field permission can grant."""

    CREATE = "create"
    EDIT_OWN = "edit own"
    EDIT = "edit"
    VIEW_OWN = "view own"
    VIEW = "view"


# Catalog order; grids and reports render kinds in this order.
PERMISSION_KINDS: tuple[PermissionKind, ...] = (
    PermissionKind.CREATE,
    PermissionKind.EDIT_OWN,
    PermissionKind.EDIT,
    PermissionKind.VIEW_OWN,
    PermissionKind.VIEW,
)

OPERATIONS: frozenset[str] = frozenset({"view", "edit"})


def get_permission_list(field_label: str = "") -> dict[str, dict[str, str]]:
    """
    List the permission kinds for a field with human readable labels.

    Args:
        field_label: Display name of the field, interpolated into descriptions.

    Returns:
        Ordered mapping of kind machine name to ``{"label", "description"}``.

    Example:
        >>> list(get_permission_list("salary"))
        ['create', 'edit own', 'edit', 'view own', 'view']
    """
    params = {"field": field_label}
    return {
        PermissionKind.CREATE.value: {
            "label": _("Create field"),
            "description": _("Create own value for field %(field)s") % params,
        },
        PermissionKind.EDIT_OWN.value: {
            "label": _("Edit own field"),
            "description": _("Edit own value for field %(field)s") % params,
        },
        PermissionKind.EDIT.value: {
            "label": _("Edit field"),
            "description": _("Edit anyone's value for field %(field)s") % params,
        },
        PermissionKind.VIEW_OWN.value: {
            "label": _("View own field"),
            "description": _("View own value for field %(field)s") % params,
        },
        PermissionKind.VIEW.value: {
            "label": _("View field"),
            "description": _("View anyone's value for field %(field)s") % params,
        },
    }


def permission_name(kind: str, field_name: str, instance: Optional[str] = None) -> str:
    """Build the machine name of a field permission."""
    if isinstance(kind, PermissionKind):
        kind = kind.value
    if instance:
        return f"{instance} {kind} {field_name}"
    return f"{kind} {field_name}"
