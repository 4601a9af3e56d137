"""
Base classes for field permission types.

A permission type decides access to one field storage. ``public`` needs no
strategy object; every other type subclasses ``BasePermissionType``. The two
matrix-driven types share ``CustomPermissionType``, which runs one decision
algorithm over a permission scope resolved by the subclass.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from ..catalog import OPERATIONS, PERMISSION_KINDS, get_permission_list
from ..exceptions import InvalidOperationError
from ..instances import InstanceRegistry
from ..interfaces import Account, ContentEntity, FieldDefinition, FieldStorage
from ..matrix import PermissionMatrix, PermissionMatrixStore, is_granted

# Scope returned by `resolve_scope` when the field is not restricted in the
# current context; access is granted as for a public field.
UNRESTRICTED: Any = object()


class PermissionType(Enum):
    """Identifiers of the available permission types."""

    PUBLIC = "public"
    PRIVATE = "private"
    CUSTOM = "custom"
    CUSTOM_INSTANCE = "custom_instance"


def coerce_type_id(value: Any) -> str:
    """Return the string id of a permission type or type id."""
    if isinstance(value, PermissionType):
        return value.value
    return str(value)


@dataclass
class PermissionTypeDependencies:
    """Collaborators shared by every strategy built by a registry."""

    matrix_store: PermissionMatrixStore
    instance_registry: InstanceRegistry
    instance_resolver: Callable[[], Optional[str]]
    private_permission: str = "access private fields"
    unconfigured_access: bool = True


def check_operation(operation: str) -> None:
    """
    Fail fast on operations other than view and edit.

    Raises:
        InvalidOperationError: For any other operation.
    """
    if operation not in OPERATIONS:
        raise InvalidOperationError(operation)


def is_entity_owner(entity: ContentEntity, account: Account) -> bool:
    """
    Check whether the account owns the entity.

    User entities own themselves; other entities expose ``get_owner_id()``.
    Entities with no ownership concept are owned by nobody.
    """
    if getattr(entity, "entity_type_id", None) == "user":
        return entity.id == account.id
    get_owner_id = getattr(entity, "get_owner_id", None)
    if callable(get_owner_id):
        owner_id = get_owner_id()
        return owner_id is not None and owner_id == account.id
    return False


def user_has_grant(account: Account, grants: Optional[Mapping[str, Any]]) -> bool:
    """Return True if any role of the account is granted in ``grants``."""
    if not grants:
        return False
    return any(is_granted(grants.get(role)) for role in account.get_roles())


def decide_field_access(
    operation: str,
    entity: ContentEntity,
    account: Account,
    grants: Optional[Mapping[str, Mapping[str, Any]]],
    unconfigured_access: bool = True,
) -> bool:
    """
    Turn the ``kind -> role -> granted`` grants of a scope into a decision.

    Args:
        operation: "view" or "edit".
        entity: The entity holding the field.
        account: The account asking for access.
        grants: Grants for the entity's scope, None when the scope is not
            configured at all, ``UNRESTRICTED`` when nothing restricts it.
        unconfigured_access: Decision for an unconfigured scope.
    """
    if grants is UNRESTRICTED:
        return True
    if grants is None:
        return unconfigured_access

    # A new entity can only be created, so only the create grant matters.
    if operation == "edit" and entity.is_new():
        return user_has_grant(account, grants.get("create"))

    if user_has_grant(account, grants.get(operation)):
        return True

    return is_entity_owner(entity, account) and user_has_grant(
        account, grants.get(f"{operation} own")
    )


class BasePermissionType(ABC):
    """An abstract field permission strategy bound to one field storage."""

    type_id: str = ""
    title: str = ""
    description: str = ""
    weight: int = 0

    def __init__(self, field_storage: FieldStorage, dependencies: PermissionTypeDependencies):
        self.field_storage = field_storage
        self.dependencies = dependencies

    @property
    def label(self) -> str:
        return self.title

    def applies_to_field(self, field_definition: FieldDefinition) -> bool:
        return True

    @abstractmethod
    def has_field_access(self, operation: str, entity: ContentEntity, account: Account) -> bool:
        """Decide whether ``account`` may view or edit the field on ``entity``."""

    def has_field_view_access_for_every_entity(self, account: Account) -> bool:
        """
        Determine if the account may view the field regardless of entity.

        Only returns True when ``has_field_access("view", entity, account)``
        would be True for every possible entity.
        """
        return False

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} field={self.field_storage.get_name()!r}>"


class CustomPermissionType(BasePermissionType):
    """
    A permission type driven by a stored role matrix.

    Subclasses define where the matrix is stored (``config_key``) and how the
    grants that apply to an entity are located in it (``resolve_scope``).
    """

    config_key: str = ""
    form_id: str = ""
    scoped: bool = False

    @abstractmethod
    def resolve_scope(
        self, matrix: PermissionMatrix, entity: ContentEntity
    ) -> Optional[Mapping[str, Mapping[str, Any]]]:
        """
        Locate the ``kind -> role -> granted`` grants for an entity.

        Returns None when nothing is configured for the entity's scope and
        ``UNRESTRICTED`` when the scope does not apply in the current context.
        """

    @abstractmethod
    def get_permissions(self) -> dict[str, dict[str, str]]:
        """Return permission machine names with their label information."""

    @abstractmethod
    def granted_permission_names(self, matrix: PermissionMatrix) -> dict[str, set[str]]:
        """Return ``role -> machine names`` granted anywhere in ``matrix``."""

    def get_matrix(self) -> PermissionMatrix:
        return self.dependencies.matrix_store.get(self.field_storage, self.config_key)

    def has_field_access(self, operation: str, entity: ContentEntity, account: Account) -> bool:
        check_operation(operation)
        return decide_field_access(
            operation,
            entity,
            account,
            self.resolve_scope(self.get_matrix(), entity),
            self.dependencies.unconfigured_access,
        )

    def kinds(self) -> list[str]:
        return [kind.value for kind in PERMISSION_KINDS]

    def _permission_labels(self) -> dict[str, dict[str, str]]:
        return get_permission_list(self.field_storage.get_name())


def is_custom_permissions(strategy: Any) -> bool:
    """Return True if the strategy contributes role permissions."""
    return isinstance(strategy, CustomPermissionType)
