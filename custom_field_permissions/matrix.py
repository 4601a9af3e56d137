"""
Persisted permission matrices and their submission format.

A permission matrix maps ``bundle -> [instance ->] kind -> role -> granted``.
It is stored inside the third-party settings of a field storage under a key
that depends on the strategy (``role_permissions`` or
``instance_permissions``). The permission type selected per bundle is stored
next to it under ``bundles_types_permissions``.
"""

import copy
import logging
import re
from typing import Any, Iterable, Mapping, Optional

from .config_proxy import get_setting
from .exceptions import UnsupportedStorageError
from .interfaces import FieldStorage

logger = logging.getLogger(__name__)

BUNDLE_TYPES_KEY = "bundles_types_permissions"

PermissionMatrix = dict[str, Any]

_TRUTHY = {"1", "true", "on", "yes"}
_BRACKET_RE = re.compile(r"\[([^\[\]]*)\]")


def is_granted(value: Any) -> bool:
    """Interpret a submitted checkbox value."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


def supports_settings(field_storage: Any) -> bool:
    """Return True if the storage can hold third-party settings."""
    return callable(getattr(field_storage, "set_third_party_setting", None))


class PermissionMatrixStore:
    """Reads and writes permission matrices on field storages."""

    def __init__(self, namespace: Optional[str] = None):
        self.namespace = namespace or get_setting("settings_namespace")

    def get(self, field_storage: FieldStorage, key: str) -> PermissionMatrix:
        """Return the stored matrix for ``key``, or an empty mapping."""
        getter = getattr(field_storage, "get_third_party_setting", None)
        if getter is None:
            return {}
        value = getter(self.namespace, key, {})
        return copy.deepcopy(value) if isinstance(value, dict) else {}

    def stage(self, field_storage: FieldStorage, key: str, matrix: PermissionMatrix) -> None:
        """
        Write a matrix onto the storage without saving it.

        Raises:
            UnsupportedStorageError: If the storage lacks third-party settings.
        """
        if not supports_settings(field_storage):
            raise UnsupportedStorageError(_field_name(field_storage))
        field_storage.set_third_party_setting(self.namespace, key, matrix)

    def set(self, field_storage: FieldStorage, key: str, matrix: PermissionMatrix) -> bool:
        """
        Persist a matrix and save the storage.

        Returns:
            False when the storage does not support third-party settings; the
            field is left unconfigured and the caller reports it.
        """
        try:
            self.stage(field_storage, key, matrix)
        except UnsupportedStorageError as exc:
            logger.error("%s", exc)
            return False
        field_storage.save()
        logger.info("Permissions have been saved for the field %s", _field_name(field_storage))
        return True

    def get_bundle_types(self, field_storage: FieldStorage) -> dict[str, str]:
        return self.get(field_storage, BUNDLE_TYPES_KEY)

    def stage_bundle_type(self, field_storage: FieldStorage, bundle: str, type_id: str) -> None:
        bundle_types = self.get_bundle_types(field_storage)
        bundle_types[bundle] = type_id
        self.stage(field_storage, BUNDLE_TYPES_KEY, bundle_types)

    @staticmethod
    def merge(
        existing: Mapping[str, Any],
        incoming: Mapping[str, Any],
        applies: bool,
        retain_bundles: Iterable[str] = (),
    ) -> PermissionMatrix:
        """
        Combine a stored matrix with a submitted one.

        When the strategy is the one selected for the field, submitted bundles
        replace stored bundles and other bundles are kept. When it is not, the
        matrix is cleared so stale grants cannot come back by switching the
        type back; only ``retain_bundles``, other bundles of the field still
        governed by this strategy, keep their grants.
        """
        if not applies:
            keep = set(retain_bundles)
            return {
                bundle: copy.deepcopy(grants)
                for bundle, grants in existing.items()
                if bundle in keep
            }
        merged = copy.deepcopy(dict(existing))
        merged.update(copy.deepcopy(dict(incoming)))
        return merged


def _field_name(field_storage: Any) -> str:
    getter = getattr(field_storage, "get_name", None)
    return getter() if callable(getter) else str(field_storage)


def unflatten_submission(data: Mapping[str, Any], form_id: str) -> dict[str, Any]:
    """
    Turn flat ``form_id[a][b][c]=value`` keys into a nested mapping.

    Works with plain dicts and Django ``QueryDict`` objects; for a QueryDict
    the last value of each key wins.
    """
    nested: dict[str, Any] = {}
    prefix = f"{form_id}["
    for raw_key in data.keys():
        if not raw_key.startswith(prefix):
            continue
        parts = _BRACKET_RE.findall(raw_key[len(form_id):])
        if not parts:
            continue
        value = data[raw_key]
        node = nested
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = value
    return nested


def parse_permission_submission(
    payload: Optional[Mapping[str, Any]],
    kinds: Iterable[str],
    roles: Optional[Iterable[str]] = None,
    scoped: bool = False,
) -> PermissionMatrix:
    """
    Parse a submitted permission grid into a permission matrix.

    Args:
        payload: ``bundle -> [instance ->] kind -> role -> value`` mapping.
        kinds: The permission kinds to keep; unknown kinds are dropped.
        roles: Known role ids. Absent cells for these roles become ``False``
            so a submitted grid with nothing checked still counts as
            configured.
        scoped: Whether the payload carries an instance level.

    Returns:
        A matrix with boolean grants.
    """
    kinds = list(kinds)
    role_ids = list(roles) if roles is not None else None
    matrix: PermissionMatrix = {}
    for bundle, bundle_values in (payload or {}).items():
        if not isinstance(bundle_values, Mapping):
            continue
        if scoped:
            matrix[bundle] = {
                instance: _parse_grants(values, kinds, role_ids)
                for instance, values in bundle_values.items()
                if isinstance(values, Mapping)
            }
        else:
            matrix[bundle] = _parse_grants(bundle_values, kinds, role_ids)
    return matrix


def _parse_grants(
    values: Mapping[str, Any], kinds: list[str], role_ids: Optional[list[str]]
) -> dict[str, dict[str, bool]]:
    grants: dict[str, dict[str, bool]] = {}
    for kind in kinds:
        cells = values.get(kind)
        cells = cells if isinstance(cells, Mapping) else {}
        row = {str(role): is_granted(value) for role, value in cells.items()}
        if role_ids is not None:
            row = {role: row.get(role, False) for role in role_ids}
        grants[kind] = row
    return grants
