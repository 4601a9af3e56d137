"""
Pluggable field permission types.
"""

from .base import (
    UNRESTRICTED,
    BasePermissionType,
    CustomPermissionType,
    PermissionType,
    PermissionTypeDependencies,
    check_operation,
    decide_field_access,
    is_custom_permissions,
    is_entity_owner,
)
from .instance import InstanceAccess
from .private import PrivateAccess
from .registry import (
    PermissionTypeDefinition,
    PermissionTypeRegistry,
    build_default_registry,
)
from .role import RoleAccess

__all__ = [
    "UNRESTRICTED",
    "BasePermissionType",
    "CustomPermissionType",
    "PermissionType",
    "PermissionTypeDependencies",
    "check_operation",
    "decide_field_access",
    "is_custom_permissions",
    "is_entity_owner",
    "InstanceAccess",
    "PrivateAccess",
    "RoleAccess",
    "PermissionTypeDefinition",
    "PermissionTypeRegistry",
    "build_default_registry",
]
