"""
Django-backed storage for field permissions.

``FieldStorageConfig`` persists field storage definitions with their
third-party settings, ``FieldRole`` persists roles with their permission
sets. ``UserAccount``, ``DjangoRoleStorage`` and
``DjangoFieldStorageRepository`` adapt them to the interfaces the service
expects.
"""

from __future__ import annotations

import copy
from typing import Any, Iterable, Optional

from django.conf import settings
from django.db import models

from .config_proxy import get_setting


class FieldStorageConfig(models.Model):
    """A field storage definition shared by every bundle using the field."""

    entity_type = models.CharField(max_length=64, verbose_name="Entity type")
    field_name = models.CharField(max_length=128, verbose_name="Field name")
    field_type = models.CharField(max_length=64, default="string", verbose_name="Field type")
    bundles = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Bundles",
        help_text="Bundles of the entity type that use this field.",
    )
    locked = models.BooleanField(default=False, verbose_name="Locked")
    third_party_settings = models.JSONField(default=dict, blank=True)
    version = models.PositiveIntegerField(default=0, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "custom_field_permissions"
        db_table = "custom_field_permissions_field_storage"
        ordering = ["entity_type", "field_name"]
        unique_together = [("entity_type", "field_name")]
        verbose_name = "Field storage"
        verbose_name_plural = "Field storages"

    def __str__(self) -> str:
        return f"{self.entity_type}.{self.field_name}"

    def get_name(self) -> str:
        return self.field_name

    def get_type(self) -> str:
        return self.field_type

    def get_target_entity_type_id(self) -> str:
        return self.entity_type

    def get_bundles(self) -> list[str]:
        return list(self.bundles or [])

    def is_locked(self) -> bool:
        return bool(self.locked)

    def get_version(self) -> int:
        return self.version

    def get_third_party_setting(self, module: str, key: str, default: Any = None) -> Any:
        value = (self.third_party_settings or {}).get(module, {}).get(key)
        if value is None:
            return default
        return copy.deepcopy(value)

    def set_third_party_setting(self, module: str, key: str, value: Any) -> None:
        module_settings = dict((self.third_party_settings or {}).get(module, {}))
        module_settings[key] = copy.deepcopy(value)
        self.third_party_settings = {**(self.third_party_settings or {}), module: module_settings}

    def save(self, *args, **kwargs):
        self.version = (self.version or 0) + 1
        super().save(*args, **kwargs)


class FieldRole(models.Model):
    """A role with the permission names granted to it."""

    id = models.CharField(max_length=64, primary_key=True, verbose_name="Machine name")
    label = models.CharField(max_length=128, verbose_name="Label")
    admin = models.BooleanField(
        default=False,
        verbose_name="Administrator",
        help_text="Administrator roles hold every permission.",
    )
    weight = models.IntegerField(default=0)
    permissions = models.JSONField(default=list, blank=True)
    users = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="field_roles",
        verbose_name="Users",
    )

    class Meta:
        app_label = "custom_field_permissions"
        db_table = "custom_field_permissions_role"
        ordering = ["weight", "id"]
        verbose_name = "Role"
        verbose_name_plural = "Roles"

    def __str__(self) -> str:
        return self.label or self.id

    def is_admin(self) -> bool:
        return bool(self.admin)

    def get_permissions(self) -> list[str]:
        return list(self.permissions or [])

    def set_permissions(self, permissions: Iterable[str]) -> None:
        self.permissions = sorted(set(permissions))

    def has_permission(self, permission: str) -> bool:
        return self.is_admin() or permission in (self.permissions or [])

    def save(self, *args, **kwargs):
        self.permissions = sorted(set(self.permissions or []))
        super().save(*args, **kwargs)


class UserAccount:
    """Adapts a Django user to the account interface."""

    def __init__(self, user: Any):
        self.user = user
        self._roles: Optional[list[FieldRole]] = None

    @property
    def id(self) -> Any:
        return getattr(self.user, "pk", None)

    def is_authenticated(self) -> bool:
        return bool(getattr(self.user, "is_authenticated", False))

    def _field_roles(self) -> list[FieldRole]:
        if self._roles is None:
            if self.is_authenticated():
                self._roles = list(FieldRole.objects.filter(users=self.user))
            else:
                self._roles = []
        return self._roles

    def get_roles(self) -> list[str]:
        """Return role ids, including the implicit anonymous/authenticated role."""
        if not self.is_authenticated():
            return [get_setting("anonymous_role", "anonymous")]
        roles = [get_setting("authenticated_role", "authenticated")]
        roles.extend(role.id for role in self._field_roles())
        if getattr(self.user, "is_superuser", False):
            roles.append(get_setting("admin_role", "administrator"))
        return roles

    def has_permission(self, permission: str) -> bool:
        if getattr(self.user, "is_superuser", False):
            return True
        implicit = DjangoRoleStorage().load_multiple(
            [get_setting("anonymous_role", "anonymous")]
            if not self.is_authenticated()
            else [get_setting("authenticated_role", "authenticated")]
        )
        roles = [*implicit.values(), *self._field_roles()]
        return any(role.has_permission(permission) for role in roles)

    def __repr__(self) -> str:
        return f"<UserAccount id={self.id!r}>"


class DjangoRoleStorage:
    """Loads roles from ``FieldRole``."""

    def load_multiple(self, ids: Optional[Iterable[str]] = None) -> dict[str, FieldRole]:
        queryset = FieldRole.objects.all()
        if ids is not None:
            queryset = queryset.filter(pk__in=list(ids))
        return {role.id: role for role in queryset}


class DjangoFieldStorageRepository:
    """Loads field storages from ``FieldStorageConfig``."""

    def load_multiple(self) -> list[FieldStorageConfig]:
        return list(FieldStorageConfig.objects.all())

    def load(self, entity_type: str, field_name: str) -> Optional[FieldStorageConfig]:
        return FieldStorageConfig.objects.filter(
            entity_type=entity_type, field_name=field_name
        ).first()
