"""
Administrative configuration of field permissions.

``FieldPermissionsAdminForm`` backs the permission section of a field edit
form: it builds the render-agnostic permission grid and applies a submitted
grid. A submission changes the bundle's permission type, replaces the
matrices of the custom permission types and synchronises role permission
sets in one transaction with a single field storage save.

The submission is a read-modify-write without locking; two administrators
saving the same field concurrently can lose one update. Set
``enable_version_check`` and pass ``expected_version`` to reject stale
submissions instead.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from django.db import transaction
from django.utils.translation import gettext as _

from .catalog import PERMISSION_KINDS, get_permission_list
from .config_proxy import get_setting
from .exceptions import ConcurrentModificationError, UnsupportedStorageError
from .interfaces import FieldStorage, Role, RoleStorage
from .matrix import (
    PermissionMatrix,
    PermissionMatrixStore,
    is_granted,
    parse_permission_submission,
    supports_settings,
    unflatten_submission,
)
from .permission_types import CustomPermissionType, PermissionType, PermissionTypeRegistry
from .permission_types.base import coerce_type_id

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    """Outcome of an admin submission, reported back to the administrator."""

    field_name: str
    saved: bool = False
    messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    roles_updated: list[str] = field(default_factory=list)


@dataclass
class GridCell:
    checked: bool = False
    disabled: bool = False


@dataclass
class GridRow:
    permission: str
    title: str
    cells: dict[str, GridCell] = field(default_factory=dict)


@dataclass
class GridSection:
    """One permission table; instance-scoped grids have one per instance."""

    key: Optional[str]
    title: str
    open: bool
    rows: list[GridRow] = field(default_factory=list)


@dataclass
class PermissionGrid:
    type_id: str
    bundle: str
    form_id: str
    header: list[str]
    sections: list[GridSection] = field(default_factory=list)


class FieldPermissionsAdminForm:
    """Builds and submits the permission settings of a field."""

    def __init__(
        self,
        registry: PermissionTypeRegistry,
        role_storage: RoleStorage,
        matrix_store: Optional[PermissionMatrixStore] = None,
        version_check: Optional[bool] = None,
    ):
        self.registry = registry
        self.role_storage = role_storage
        self.matrix_store = matrix_store or registry.dependencies.matrix_store
        if version_check is None:
            version_check = bool(get_setting("enable_version_check", False))
        self.version_check = version_check

    def type_options(self) -> list[dict[str, Any]]:
        """Return the selectable permission types ordered by weight."""
        return [
            {
                "type_id": definition.type_id,
                "title": definition.title,
                "description": definition.description,
            }
            for definition in self.registry.definitions()
        ]

    def current_type(self, field_storage: FieldStorage, bundle: str) -> str:
        return self.matrix_store.get_bundle_types(field_storage).get(
            bundle, PermissionType.PUBLIC.value
        )

    def build_grid(
        self,
        field_storage: FieldStorage,
        bundle: str,
        type_id: Any,
        roles: Optional[Mapping[str, Role]] = None,
    ) -> PermissionGrid:
        """
        Build the permission grid of a custom permission type for one bundle.

        Administrator roles are always checked and cannot be changed.
        """
        strategy = self.registry.create(type_id, field_storage)
        if not isinstance(strategy, CustomPermissionType):
            raise ValueError(f"Permission type {strategy.type_id!r} has no permission grid")

        roles = self._roles(roles)
        labels = get_permission_list(field_storage.get_name())
        bundle_data = strategy.get_matrix().get(bundle) or {}
        grid = PermissionGrid(
            type_id=strategy.type_id,
            bundle=bundle,
            form_id=strategy.form_id,
            header=[_("Permission"), *(role.label for role in roles.values())],
        )

        if strategy.scoped:
            for instance in strategy.dependencies.instance_registry.list_instances():
                grants = bundle_data.get(instance) or {}
                grid.sections.append(
                    GridSection(
                        key=instance,
                        title=instance,
                        open=_has_non_admin_grant(grants, roles),
                        rows=_build_rows(labels, grants, roles),
                    )
                )
        else:
            grid.sections.append(
                GridSection(
                    key=None,
                    title=strategy.title,
                    open=True,
                    rows=_build_rows(labels, bundle_data, roles),
                )
            )
        return grid

    def submit(
        self,
        field_storage: FieldStorage,
        bundle: str,
        type_id: Any,
        payload: Optional[Mapping[str, Any]] = None,
        roles: Optional[Mapping[str, Role]] = None,
        expected_version: Optional[int] = None,
    ) -> SubmissionResult:
        """
        Apply a submitted permission form for one bundle of a field.

        Args:
            field_storage: The field storage being edited.
            bundle: The bundle whose form was submitted.
            type_id: The permission type selected for the bundle.
            payload: Submitted form values, nested (``{"permissions": {...}}``)
                or flat (``{"permissions[bundle][kind][role]": "1"}``).
            roles: Roles shown in the grid, all roles by default.
            expected_version: Storage version the form was built from.

        Returns:
            A ``SubmissionResult``; errors identify the field and mean nothing
            was saved.
        """
        field_name = field_storage.get_name()
        result = SubmissionResult(field_name=field_name)
        type_id = coerce_type_id(type_id)

        if type_id != PermissionType.PUBLIC.value and not self.registry.has(type_id):
            result.errors.append(_("Unknown permission type %(type)s.") % {"type": type_id})
            return result

        if not supports_settings(field_storage):
            error = UnsupportedStorageError(field_name)
            logger.error("%s", error)
            result.errors.append(str(error))
            return result

        try:
            self._check_version(field_storage, expected_version)
        except ConcurrentModificationError as exc:
            logger.warning("%s", exc)
            result.errors.append(str(exc))
            return result

        payload = payload or {}
        roles = self._roles(roles)
        grid_roles = [role_id for role_id, role in roles.items() if not role.is_admin()]
        bundle_types = self.matrix_store.get_bundle_types(field_storage)
        bundle_types[bundle] = type_id

        with transaction.atomic():
            self.matrix_store.stage_bundle_type(field_storage, bundle, type_id)
            granted: dict[str, set[str]] = {}
            instances = set(self.registry.dependencies.instance_registry.list_instances())
            for definition in self.registry.custom_types():
                strategy = self.registry.create(definition.type_id, field_storage)
                if strategy.scoped:
                    instances.update(_matrix_instances(strategy.get_matrix()))
                applies = definition.type_id == type_id
                values = dict(_form_values(payload, strategy.form_id))
                if applies:
                    values[bundle] = self._complete_bundle(strategy, values.get(bundle))
                incoming = parse_permission_submission(
                    values,
                    strategy.kinds(),
                    roles=grid_roles,
                    scoped=strategy.scoped,
                )
                retained = [b for b, t in bundle_types.items() if t == definition.type_id]
                matrix = self.matrix_store.merge(
                    strategy.get_matrix(), incoming, applies, retain_bundles=retained
                )
                self.matrix_store.stage(field_storage, strategy.config_key, matrix)
                for role_id, names in strategy.granted_permission_names(matrix).items():
                    granted.setdefault(role_id, set()).update(names)

            field_storage.save()
            result.roles_updated = self._sync_roles(field_name, roles, granted, instances)

        result.saved = True
        result.messages.append(
            _("Permissions have been saved for the field %(field)s.") % {"field": field_name}
        )
        logger.info(
            "Field permissions saved for %s.%s (type=%s, roles updated=%s)",
            bundle,
            field_name,
            type_id,
            result.roles_updated,
        )
        return result

    def _roles(self, roles: Optional[Mapping[str, Role]]) -> Mapping[str, Role]:
        return roles if roles is not None else self.role_storage.load_multiple()

    @staticmethod
    def _complete_bundle(strategy: CustomPermissionType, submitted: Any) -> dict[str, Any]:
        # Unchecked checkboxes are not submitted; an empty grid still configures
        # the bundle (and every known instance) as "nothing granted".
        bundle_values = dict(submitted) if isinstance(submitted, Mapping) else {}
        if strategy.scoped:
            for instance in strategy.dependencies.instance_registry.list_instances():
                bundle_values.setdefault(instance, {})
        return bundle_values

    def _check_version(self, field_storage: FieldStorage, expected_version: Optional[int]) -> None:
        if not self.version_check or expected_version is None:
            return
        get_version = getattr(field_storage, "get_version", None)
        current = get_version() if callable(get_version) else None
        if current != expected_version:
            raise ConcurrentModificationError(
                field_storage.get_name(), expected_version, current
            )

    def _sync_roles(
        self,
        field_name: str,
        roles: Mapping[str, Role],
        granted: Mapping[str, set[str]],
        instances: Iterable[str] = (),
    ) -> list[str]:
        """
        Replace each role's permissions for this field with the granted ones.

        Permission sets are compared unordered; unchanged roles are not saved.
        """
        belongs_to_field = _field_permission_matcher(field_name, instances)
        updated: list[str] = []
        for role_id, role in roles.items():
            if role.is_admin():
                continue
            current = set(role.get_permissions())
            removed = {name for name in current if belongs_to_field(name)}
            added = set(granted.get(role_id, set()))
            if removed == added:
                continue
            role.set_permissions(sorted((current - removed) | added))
            role.save()
            updated.append(role_id)
        return updated


def _form_values(payload: Mapping[str, Any], form_id: str) -> Mapping[str, Any]:
    nested = payload.get(form_id)
    if isinstance(nested, Mapping):
        return nested
    return unflatten_submission(payload, form_id)


def _field_permission_matcher(field_name: str, instances: Iterable[str] = ()):
    """Match "[instance ]<kind> <field>" names, for known instances only."""
    kinds = "|".join(re.escape(kind.value) for kind in PERMISSION_KINDS)
    names = "|".join(re.escape(instance) for instance in sorted(instances))
    prefix = rf"(?:(?:{names}) )?" if names else ""
    pattern = re.compile(rf"^{prefix}(?:{kinds}) {re.escape(field_name)}$")
    return lambda name: bool(pattern.match(name))


def _matrix_instances(matrix: PermissionMatrix) -> set[str]:
    return {instance for instances in matrix.values() for instance in (instances or {})}


def _has_non_admin_grant(grants: PermissionMatrix, roles: Mapping[str, Role]) -> bool:
    for cells in grants.values():
        for role_id, value in (cells or {}).items():
            role = roles.get(role_id)
            if role is not None and not role.is_admin() and is_granted(value):
                return True
    return False


def _build_rows(
    labels: Mapping[str, Mapping[str, str]],
    grants: PermissionMatrix,
    roles: Mapping[str, Role],
) -> list[GridRow]:
    rows: list[GridRow] = []
    for kind, info in labels.items():
        cells_data = grants.get(kind) or {}
        row = GridRow(permission=kind, title=info["description"])
        for role_id, role in roles.items():
            if role.is_admin():
                row.cells[role_id] = GridCell(checked=True, disabled=True)
            else:
                row.cells[role_id] = GridCell(checked=is_granted(cells_data.get(role_id)))
        rows.append(row)
    return rows
