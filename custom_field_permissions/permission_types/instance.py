"""
Instance-scoped field permission type.

Same decision as the role-based type, with grants additionally keyed by the
deployment instance the request runs for:
``bundle -> instance -> kind -> role -> granted``, stored under
``instance_permissions``.
"""

import logging
from typing import Any, Mapping, Optional

from ..catalog import permission_name
from ..interfaces import Account, ContentEntity
from ..matrix import PermissionMatrix, is_granted
from .base import UNRESTRICTED, CustomPermissionType, PermissionType

logger = logging.getLogger(__name__)


class InstanceAccess(CustomPermissionType):
    type_id = PermissionType.CUSTOM_INSTANCE.value
    title = "Custom instance permissions"
    description = "Define custom permissions for this field in an instance context."
    weight = 51

    config_key = "instance_permissions"
    form_id = "instance_perms"
    scoped = True

    def current_instance(self) -> Optional[str]:
        return self.dependencies.instance_resolver()

    def resolve_scope(
        self, matrix: PermissionMatrix, entity: ContentEntity
    ) -> Optional[Mapping[str, Mapping[str, Any]]]:
        instance = self.current_instance()
        if instance is None:
            # Not instance aware (CLI, cron, migrations): behave as public.
            logger.debug("No current instance, %r is unrestricted", self)
            return UNRESTRICTED
        instances = matrix.get(entity.bundle())
        if not instances:
            return None
        # The bundle is configured; an instance without grants grants nothing.
        return instances.get(instance) or {}

    def has_field_view_access_for_every_entity(self, account: Account) -> bool:
        instance = self.current_instance()
        if instance is None:
            return True
        return account.has_permission(
            permission_name("view", self.field_storage.get_name(), instance)
        )

    def get_permissions(self) -> dict[str, dict[str, str]]:
        field_name = self.field_storage.get_name()
        labels = self._permission_labels()
        permissions: dict[str, dict[str, str]] = {}
        for instance in self.dependencies.instance_registry.list_instances():
            for kind, info in labels.items():
                permissions[permission_name(kind, field_name, instance)] = {
                    "label": f"{instance}: {info['label']}",
                    "description": f"{instance}: {info['description']}",
                    "instance": instance,
                }
        return permissions

    def granted_permission_names(self, matrix: PermissionMatrix) -> dict[str, set[str]]:
        field_name = self.field_storage.get_name()
        granted: dict[str, set[str]] = {}
        for instances in matrix.values():
            for instance, grants in (instances or {}).items():
                for kind, cells in (grants or {}).items():
                    for role, value in (cells or {}).items():
                        if is_granted(value):
                            granted.setdefault(role, set()).add(
                                permission_name(kind, field_name, instance)
                            )
        return granted
