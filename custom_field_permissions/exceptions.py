"""
Exceptions raised by the field permissions engine.
"""

from typing import Optional


class FieldPermissionsError(Exception):
    """Base exception for field permission errors."""


class InvalidOperationError(FieldPermissionsError, ValueError):
    """Raised when an access check is asked for an operation other than view/edit."""

    def __init__(self, operation: object):
        self.operation = operation
        super().__init__(
            f'The operation is either "edit" or "view", "{operation}" given instead.'
        )


class UnknownPermissionTypeError(FieldPermissionsError, KeyError):
    """Raised when a permission type id has no registered strategy."""

    def __init__(self, type_id: object):
        self.type_id = type_id
        super().__init__(f"Unknown field permission type: {type_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class UnsupportedStorageError(FieldPermissionsError):
    """Raised when a field storage cannot hold third-party settings."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(
            f"The field {field_name} does not support third party settings."
        )


class ConcurrentModificationError(FieldPermissionsError):
    """Raised when a submission was built from a stale field storage version."""

    def __init__(
        self,
        field_name: str,
        expected_version: Optional[int],
        current_version: Optional[int],
    ):
        self.field_name = field_name
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"The field {field_name} was modified by another user "
            f"(expected version {expected_version}, found {current_version})."
        )


class ImproperlyConfiguredPermissions(FieldPermissionsError):
    """Raised when the CUSTOM_FIELD_PERMISSIONS setting is invalid."""
