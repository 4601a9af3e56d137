"""
Custom field permissions.

Field-level view/edit access control for content entities: each bundle of a
field selects a permission type (public, private, custom, custom_instance)
and custom types store a role matrix in the field storage settings.
"""

from .catalog import PERMISSION_KINDS, PermissionKind, get_permission_list, permission_name
from .exceptions import (
    ConcurrentModificationError,
    FieldPermissionsError,
    InvalidOperationError,
    UnknownPermissionTypeError,
    UnsupportedStorageError,
)
from .permission_types import PermissionType
from .service import (
    FieldPermissionsService,
    build_field_permissions_service,
    get_field_permissions_service,
    reset_field_permissions_service,
)

__all__ = [
    "PERMISSION_KINDS",
    "PermissionKind",
    "get_permission_list",
    "permission_name",
    "ConcurrentModificationError",
    "FieldPermissionsError",
    "InvalidOperationError",
    "UnknownPermissionTypeError",
    "UnsupportedStorageError",
    "PermissionType",
    "FieldPermissionsService",
    "build_field_permissions_service",
    "get_field_permissions_service",
    "reset_field_permissions_service",
]
