"""
Registry mapping permission type ids to strategy factories.

Types are registered explicitly at startup; there is no discovery. The
``public`` type is the implicit default and never has a strategy.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..exceptions import UnknownPermissionTypeError
from ..interfaces import FieldStorage
from .base import (
    BasePermissionType,
    CustomPermissionType,
    PermissionType,
    PermissionTypeDependencies,
    coerce_type_id,
)
from .instance import InstanceAccess
from .private import PrivateAccess
from .role import RoleAccess

logger = logging.getLogger(__name__)

StrategyFactory = Callable[[FieldStorage, PermissionTypeDependencies], BasePermissionType]


@dataclass(frozen=True)
class PermissionTypeDefinition:
    """Registration entry of a permission type."""

    type_id: str
    title: str
    description: str
    weight: int
    factory: Optional[StrategyFactory]
    strategy_class: Optional[type[BasePermissionType]] = None


PUBLIC_DEFINITION = PermissionTypeDefinition(
    type_id=PermissionType.PUBLIC.value,
    title="Not set",
    description="Field inherits content permissions.",
    weight=0,
    factory=None,
)


class PermissionTypeRegistry:
    """Closed table of permission types and the strategies implementing them."""

    def __init__(self, dependencies: PermissionTypeDependencies):
        self.dependencies = dependencies
        self._definitions: dict[str, PermissionTypeDefinition] = {}

    def register(
        self,
        strategy_class: type[BasePermissionType],
        factory: Optional[StrategyFactory] = None,
    ) -> None:
        """Register a strategy class, optionally with a custom factory."""
        type_id = strategy_class.type_id
        if not type_id or type_id == PermissionType.PUBLIC.value:
            raise ValueError(f"Cannot register permission type {type_id!r}")
        if type_id in self._definitions:
            logger.debug("Field permission type '%s' already registered", type_id)
            return
        self._definitions[type_id] = PermissionTypeDefinition(
            type_id=type_id,
            title=strategy_class.title,
            description=strategy_class.description,
            weight=strategy_class.weight,
            factory=factory or strategy_class,
            strategy_class=strategy_class,
        )
        logger.debug("Field permission type '%s' registered", type_id)

    def has(self, type_id: object) -> bool:
        return coerce_type_id(type_id) in self._definitions

    def get_definition(self, type_id: object) -> PermissionTypeDefinition:
        type_id = coerce_type_id(type_id)
        if type_id == PermissionType.PUBLIC.value:
            return PUBLIC_DEFINITION
        try:
            return self._definitions[type_id]
        except KeyError:
            raise UnknownPermissionTypeError(type_id) from None

    def definitions(self) -> list[PermissionTypeDefinition]:
        """Return every selectable type, ``public`` first, ordered by weight."""
        ordered = sorted(self._definitions.values(), key=lambda d: (d.weight, d.type_id))
        return [PUBLIC_DEFINITION, *ordered]

    def create(self, type_id: object, field_storage: FieldStorage) -> BasePermissionType:
        """
        Build the strategy for a field storage.

        Raises:
            UnknownPermissionTypeError: For ``public`` and unregistered ids.
        """
        type_id = coerce_type_id(type_id)
        definition = self._definitions.get(type_id)
        if definition is None:
            raise UnknownPermissionTypeError(type_id)
        return definition.factory(field_storage, self.dependencies)

    def custom_types(self) -> list[PermissionTypeDefinition]:
        """Return the types whose strategies store a role matrix."""
        return [
            definition
            for definition in self.definitions()[1:]
            if definition.strategy_class is not None
            and issubclass(definition.strategy_class, CustomPermissionType)
        ]


def build_default_registry(dependencies: PermissionTypeDependencies) -> PermissionTypeRegistry:
    """Build a registry holding the private, custom and custom_instance types."""
    registry = PermissionTypeRegistry(dependencies)
    registry.register(PrivateAccess)
    registry.register(RoleAccess)
    registry.register(InstanceAccess)
    return registry
