"""
Administrative overview of field permissions.

One row per field storage and bundle, with the permission type in use and,
for custom types, whether each permission kind is open to everybody
(granted to both the anonymous and authenticated roles).
"""

from typing import Any, Optional

from django.utils.translation import gettext as _

from .catalog import get_permission_list
from .config_proxy import get_setting
from .interfaces import FieldStorage, Role
from .permission_types import is_custom_permissions
from .service import PUBLIC, FieldPermissionsService

STATUS_ON = "on"
STATUS_OFF = "off"


class FieldPermissionsReport:
    """Builds the field permissions overview table."""

    def __init__(self, service: FieldPermissionsService):
        self.service = service

    def header(self) -> list[str]:
        labels = [info["label"] for info in get_permission_list().values()]
        return [_("Field name"), _("Field type"), _("Entity type"), _("Used in"), *labels]

    def rows(self) -> list[list[Any]]:
        if self.service.field_repository is None:
            return []
        anonymous, authenticated = self._implicit_roles()
        rows: list[list[Any]] = []
        for field_storage in self.service.field_repository.load_multiple():
            for bundle in field_storage.get_bundles():
                rows.append(self._build_row(field_storage, bundle, anonymous, authenticated))
        return rows

    def build(self) -> dict[str, Any]:
        return {"header": self.header(), "rows": self.rows()}

    def _build_row(
        self,
        field_storage: FieldStorage,
        bundle: str,
        anonymous: Optional[Role],
        authenticated: Optional[Role],
    ) -> list[Any]:
        field_name = field_storage.get_name()
        if field_storage.is_locked():
            field_name = _("%(field)s (Locked)") % {"field": field_name}
        row: list[Any] = [
            field_name,
            field_storage.get_type(),
            field_storage.get_target_entity_type_id(),
            bundle,
        ]

        type_id = self.service.field_get_permission_type(field_storage, bundle)
        if type_id == PUBLIC:
            row.append(_("Not set (Field inherits content permissions.)"))
            return row

        strategy = self.service.registry.create(type_id, field_storage)
        if not is_custom_permissions(strategy):
            row.append(f"{strategy.label} ({strategy.description})")
            return row

        for permission in strategy.get_permissions():
            open_to_all = _role_has(anonymous, permission) and _role_has(
                authenticated, permission
            )
            row.append(STATUS_ON if open_to_all else STATUS_OFF)
        return row

    def _implicit_roles(self) -> tuple[Optional[Role], Optional[Role]]:
        if self.service.role_storage is None:
            return None, None
        anonymous_id = get_setting("anonymous_role", "anonymous")
        authenticated_id = get_setting("authenticated_role", "authenticated")
        roles = self.service.role_storage.load_multiple([anonymous_id, authenticated_id])
        return roles.get(anonymous_id), roles.get(authenticated_id)


def _role_has(role: Optional[Role], permission: str) -> bool:
    if role is None:
        return False
    return role.is_admin() or permission in set(role.get_permissions())
