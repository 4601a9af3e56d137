"""
Field access decisions.

``FieldPermissionsService`` is the entry point hosts call from their field
access hooks. It applies the administrator and comment-field overrides,
resolves the permission type configured for the field and bundle, and hands
the decision to the matching strategy.
"""

import logging
from typing import Any, Optional

from django.utils.module_loading import import_string

from .catalog import get_permission_list
from .config_proxy import get_setting
from .instances import CurrentInstanceResolver, InstanceRegistry
from .interfaces import (
    Account,
    CommentManager,
    FieldDefinition,
    FieldItems,
    FieldStorage,
    FieldStorageRepository,
    RoleStorage,
)
from .matrix import BUNDLE_TYPES_KEY, PermissionMatrixStore
from .permission_types import (
    BasePermissionType,
    PermissionType,
    PermissionTypeDependencies,
    PermissionTypeRegistry,
    build_default_registry,
    check_operation,
    is_custom_permissions,
)

logger = logging.getLogger(__name__)

PUBLIC = PermissionType.PUBLIC.value


class FieldPermissionsService:
    """Decides field access and exposes the read accessors used by reports."""

    def __init__(
        self,
        registry: PermissionTypeRegistry,
        matrix_store: Optional[PermissionMatrixStore] = None,
        field_repository: Optional[FieldStorageRepository] = None,
        role_storage: Optional[RoleStorage] = None,
        comment_manager: Optional[CommentManager] = None,
        admin_role: Optional[str] = None,
    ):
        self.registry = registry
        self.matrix_store = matrix_store or registry.dependencies.matrix_store
        self.field_repository = field_repository
        self.role_storage = role_storage
        self.comment_manager = comment_manager
        self.admin_role = admin_role or get_setting("admin_role", "administrator")

    @staticmethod
    def get_permission_list(field_label: str = "") -> dict[str, dict[str, str]]:
        return get_permission_list(field_label)

    def is_admin(self, account: Account) -> bool:
        """Return True if the account holds the admin role or any role flagged admin."""
        role_ids = list(account.get_roles())
        if self.admin_role in role_ids:
            return True
        if self.role_storage is None or not role_ids:
            return False
        roles = self.role_storage.load_multiple(role_ids)
        return any(role.is_admin() for role in roles.values())

    def is_comment_field(self, field_definition: FieldDefinition) -> bool:
        """Return True if the field is a comment field of its entity type."""
        if self.comment_manager is None:
            return False
        field_names = self.comment_manager.get_fields(
            field_definition.get_target_entity_type_id()
        )
        return field_definition.get_name() in (field_names or {})

    def field_get_permission_type(self, field_storage: FieldStorage, bundle: Optional[str]) -> str:
        """
        Return the permission type id configured for a field storage and bundle.

        Falls back to ``public`` when nothing is configured, the storage has no
        third-party settings or the stored id is not registered.
        """
        if bundle is None:
            return PUBLIC
        getter = getattr(field_storage, "get_third_party_setting", None)
        if getter is None:
            return PUBLIC
        bundle_types = getter(self.matrix_store.namespace, BUNDLE_TYPES_KEY, {}) or {}
        type_id = bundle_types.get(bundle, PUBLIC) if isinstance(bundle_types, dict) else PUBLIC
        if type_id != PUBLIC and not self.registry.has(type_id):
            logger.warning(
                "Unknown field permission type '%s' on %s.%s, treating as public",
                type_id,
                field_storage.get_name(),
                bundle,
            )
            return PUBLIC
        return type_id

    resolve_permission_type = field_get_permission_type

    def get_strategy(
        self, field_storage: FieldStorage, bundle: Optional[str]
    ) -> Optional[BasePermissionType]:
        """Build the strategy governing a field and bundle, None for public."""
        type_id = self.field_get_permission_type(field_storage, bundle)
        if type_id == PUBLIC:
            return None
        return self.registry.create(type_id, field_storage)

    def get_field_access(
        self,
        operation: str,
        items: FieldItems,
        account: Account,
        field_definition: FieldDefinition,
    ) -> bool:
        """
        Decide whether ``account`` may view or edit the field values ``items``.

        Raises:
            InvalidOperationError: If ``operation`` is not "view" or "edit".
        """
        check_operation(operation)
        if self.is_admin(account):
            return True
        if self.is_comment_field(field_definition):
            return True

        entity = items.get_entity()
        bundle = _entity_bundle(entity)
        strategy = self.get_strategy(field_definition.get_field_storage_definition(), bundle)
        if strategy is None:
            return True

        allowed = strategy.applies_to_field(field_definition) and strategy.has_field_access(
            operation, entity, account
        )
        logger.debug(
            "Field access %s on %s.%s via %s: %s",
            operation,
            bundle,
            field_definition.get_name(),
            strategy.type_id,
            allowed,
        )
        return allowed

    def has_field_view_access_for_every_entity(
        self, account: Account, field_definition: FieldDefinition
    ) -> bool:
        """
        Determine if the account may view the field on every entity.

        Only True when ``get_field_access("view", ...)`` would be True for all
        possible field values.
        """
        if self.is_admin(account):
            return True
        if self.is_comment_field(field_definition):
            return True

        strategy = self.get_strategy(
            field_definition.get_field_storage_definition(),
            field_definition.get_target_bundle(),
        )
        if strategy is None:
            return True
        return strategy.applies_to_field(
            field_definition
        ) and strategy.has_field_view_access_for_every_entity(account)

    def get_custom_strategies(self, field_storage: FieldStorage) -> list[BasePermissionType]:
        """Return one strategy per custom type used by any bundle of the field."""
        type_ids: list[str] = []
        for bundle in field_storage.get_bundles():
            type_id = self.field_get_permission_type(field_storage, bundle)
            if type_id != PUBLIC and type_id not in type_ids:
                type_ids.append(type_id)
        strategies = [self.registry.create(type_id, field_storage) for type_id in type_ids]
        return [strategy for strategy in strategies if is_custom_permissions(strategy)]

    def get_all_permissions(self) -> dict[str, dict[str, str]]:
        """Return every field permission contributed by custom permission types."""
        permissions: dict[str, dict[str, str]] = {}
        if self.field_repository is None:
            return permissions
        for field_storage in self.field_repository.load_multiple():
            for strategy in self.get_custom_strategies(field_storage):
                permissions.update(strategy.get_permissions())
        return permissions

    def get_permissions_by_role(self) -> dict[str, list[str]]:
        """
        Return the field permissions held by each role.

        Administrator roles hold every field permission.
        """
        if self.role_storage is None:
            return {}
        all_permissions = self.get_all_permissions()
        by_role: dict[str, list[str]] = {}
        for role_id, role in self.role_storage.load_multiple().items():
            if role.is_admin():
                by_role[role_id] = list(all_permissions)
            else:
                by_role[role_id] = sorted(
                    permission
                    for permission in set(role.get_permissions())
                    if permission in all_permissions
                )
        return by_role


def _entity_bundle(entity: Any) -> Optional[str]:
    bundle = getattr(entity, "bundle", None)
    if callable(bundle):
        return bundle()
    return None


def build_field_permissions_service(
    *,
    registry: Optional[PermissionTypeRegistry] = None,
    field_repository: Optional[FieldStorageRepository] = None,
    role_storage: Optional[RoleStorage] = None,
    comment_manager: Optional[CommentManager] = None,
    instance_registry: Optional[InstanceRegistry] = None,
) -> FieldPermissionsService:
    """
    Build a service wired from settings.

    Collaborators not given explicitly default to the Django models shipped in
    ``custom_field_permissions.models``.
    """
    if registry is None:
        dependencies = PermissionTypeDependencies(
            matrix_store=PermissionMatrixStore(),
            instance_registry=instance_registry or InstanceRegistry(),
            instance_resolver=CurrentInstanceResolver.from_settings(),
            private_permission=get_setting("private_permission"),
            unconfigured_access=get_setting("unconfigured_bundle_access", "allow") != "deny",
        )
        registry = build_default_registry(dependencies)

    if field_repository is None or role_storage is None:
        from .models import DjangoFieldStorageRepository, DjangoRoleStorage

        field_repository = field_repository or DjangoFieldStorageRepository()
        role_storage = role_storage or DjangoRoleStorage()

    if comment_manager is None:
        comment_manager = _load_comment_manager()

    return FieldPermissionsService(
        registry,
        field_repository=field_repository,
        role_storage=role_storage,
        comment_manager=comment_manager,
    )


def _load_comment_manager() -> Optional[CommentManager]:
    path = get_setting("comment_field_manager")
    if not path:
        return None
    manager = import_string(path) if isinstance(path, str) else path
    if isinstance(manager, type):
        manager = manager()
    return manager


_default_service: Optional[FieldPermissionsService] = None


def get_field_permissions_service() -> FieldPermissionsService:
    """Return the process-wide service, building it on first use."""
    global _default_service
    if _default_service is None:
        _default_service = build_field_permissions_service()
    return _default_service


def reset_field_permissions_service() -> None:
    """Forget the process-wide service (settings changes, tests)."""
    global _default_service
    _default_service = None
