"""
Protocols for the host collaborators the permission engine talks to.

The engine never owns fields, roles or accounts; it only reads them and
writes back permission matrices and role permission sets through these
interfaces. ``models.py`` ships Django-backed implementations.
"""

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence


class FieldStorage(Protocol):
    def get_name(self) -> str:
        ...

    def get_type(self) -> str:
        ...

    def get_target_entity_type_id(self) -> str:
        ...

    def get_bundles(self) -> Sequence[str]:
        ...

    def is_locked(self) -> bool:
        ...

    def get_third_party_setting(self, module: str, key: str, default: Any = None) -> Any:
        ...

    def set_third_party_setting(self, module: str, key: str, value: Any) -> None:
        ...

    def save(self) -> None:
        ...


class FieldDefinition(Protocol):
    def get_name(self) -> str:
        ...

    def get_target_entity_type_id(self) -> str:
        ...

    def get_target_bundle(self) -> Optional[str]:
        ...

    def get_field_storage_definition(self) -> FieldStorage:
        ...


class ContentEntity(Protocol):
    entity_type_id: str

    @property
    def id(self) -> Any:
        ...

    def bundle(self) -> str:
        ...

    def is_new(self) -> bool:
        ...


class FieldItems(Protocol):
    def get_entity(self) -> ContentEntity:
        ...


class Account(Protocol):
    @property
    def id(self) -> Any:
        ...

    def get_roles(self) -> Sequence[str]:
        ...

    def has_permission(self, permission: str) -> bool:
        ...


class Role(Protocol):
    id: str
    label: str

    def get_permissions(self) -> Iterable[str]:
        ...

    def set_permissions(self, permissions: Iterable[str]) -> None:
        ...

    def is_admin(self) -> bool:
        ...

    def save(self) -> None:
        ...


class RoleStorage(Protocol):
    def load_multiple(self, ids: Optional[Iterable[str]] = None) -> Mapping[str, Role]:
        ...


class FieldStorageRepository(Protocol):
    def load_multiple(self) -> Iterable[FieldStorage]:
        ...


class CommentManager(Protocol):
    def get_fields(self, entity_type_id: str) -> Mapping[str, Any]:
        ...


class CacheBackend(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any, timeout: Optional[int] = None) -> None:
        ...

    def delete(self, key: str) -> Any:
        ...
