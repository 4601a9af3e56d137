"""
Role-based field permission type.

Grants are stored per bundle as ``bundle -> kind -> role -> granted`` under
the ``role_permissions`` key of the field storage settings.
"""

from typing import Any, Mapping, Optional

from ..catalog import permission_name
from ..interfaces import Account, ContentEntity
from ..matrix import PermissionMatrix, is_granted
from .base import CustomPermissionType, PermissionType


class RoleAccess(CustomPermissionType):
    type_id = PermissionType.CUSTOM.value
    title = "Custom permissions"
    description = "Define custom permissions for this field."
    weight = 50

    config_key = "role_permissions"
    form_id = "permissions"
    scoped = False

    def resolve_scope(
        self, matrix: PermissionMatrix, entity: ContentEntity
    ) -> Optional[Mapping[str, Mapping[str, Any]]]:
        return matrix.get(entity.bundle()) or None

    def has_field_view_access_for_every_entity(self, account: Account) -> bool:
        # Role grants are bundle and owner dependent, never entity independent.
        return False

    def get_permissions(self) -> dict[str, dict[str, str]]:
        field_name = self.field_storage.get_name()
        return {
            permission_name(kind, field_name): info
            for kind, info in self._permission_labels().items()
        }

    def granted_permission_names(self, matrix: PermissionMatrix) -> dict[str, set[str]]:
        field_name = self.field_storage.get_name()
        granted: dict[str, set[str]] = {}
        for grants in matrix.values():
            for kind, cells in (grants or {}).items():
                for role, value in (cells or {}).items():
                    if is_granted(value):
                        granted.setdefault(role, set()).add(permission_name(kind, field_name))
        return granted
