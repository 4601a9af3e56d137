"""
Deployment instances and current-instance resolution.

Instances are named partitions (environments, tenants) read from a YAML file
whose top-level ``prd`` mapping lists them as keys::

    prd:
      amtt: {host: amtt.example.org}
      bcde: {host: bcde.example.org}

The sorted list is cached permanently, even when empty. A missing or
malformed file is logged and yields an uncached empty list, which callers
treat as "no instance permissions".
"""

from __future__ import annotations

import logging
import os
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Callable, Optional, Union

import yaml
from django.conf import settings
from django.utils.module_loading import import_string

from .cache import PermanentCache, build_instance_cache
from .config_proxy import get_setting

logger = logging.getLogger(__name__)

_current_instance: ContextVar[Optional[str]] = ContextVar(
    "custom_field_permissions_current_instance", default=None
)


def _resolve_source_path(path: Union[str, Path, None]) -> Optional[Path]:
    if not path:
        return None
    source = Path(path)
    if not source.is_absolute():
        base_dir = getattr(settings, "BASE_DIR", None)
        if base_dir:
            source = Path(base_dir) / source
    return source


class InstanceRegistry:
    """Loads and caches the list of known deployment instances."""

    def __init__(
        self,
        cache: Optional[PermanentCache] = None,
        source_file: Union[str, Path, None] = None,
        source_key: Optional[str] = None,
    ):
        self.cache = cache if cache is not None else build_instance_cache()
        self.source_file = _resolve_source_path(
            source_file or get_setting("instances.source_file")
        )
        self.source_key = source_key or get_setting("instances.source_key", "prd")

    def list_instances(self) -> list[str]:
        """
        Return the sorted, de-duplicated instance names.

        The list is read from the source file on first use and served from the
        cache afterwards until ``invalidate()`` is called. Read failures are
        not cached, so a fixed file is picked up on the next call.
        """
        cached = self.cache.get()
        if cached is not None:
            logger.debug("Instance list served from cache (%d entries)", len(cached))
            return list(cached)

        instances = self._load()
        if instances is None:
            return []
        self.cache.set(instances)
        return instances

    def invalidate(self) -> None:
        """Drop the cached instance list so the next read reloads the file."""
        self.cache.invalidate()
        logger.info("Instance list cache invalidated")

    def _load(self) -> Optional[list[str]]:
        if self.source_file is None or not self.source_file.exists():
            logger.error("Instance source file not found at path: %s", self.source_file)
            return None

        try:
            payload = yaml.safe_load(self.source_file.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Could not read instance source file %s: %s", self.source_file, exc)
            return None

        entries = payload.get(self.source_key) if isinstance(payload, dict) else None
        if not isinstance(entries, (dict, list)):
            logger.error(
                'The key "%s" is missing or is not a collection in %s',
                self.source_key,
                self.source_file,
            )
            return None

        return sorted({str(name) for name in entries})


def set_current_instance(instance: Optional[str]) -> Any:
    """
    Set the request-scoped current instance.

    Returns:
        A token for ``reset_current_instance``.
    """
    return _current_instance.set(instance or None)


def reset_current_instance(token: Any) -> None:
    _current_instance.reset(token)


class CurrentInstanceResolver:
    """
    Resolves the deployment instance the current process or request runs for.

    Resolution order: explicit override callable, request-scoped value set by
    ``CurrentInstanceMiddleware``, configured value, environment variable.
    Returns ``None`` when nothing resolves (CLI, cron, migrations).
    """

    def __init__(
        self,
        override: Optional[Callable[[], Optional[str]]] = None,
        value: Optional[str] = None,
        env_var: Optional[str] = None,
    ):
        self.override = override
        self.value = value
        self.env_var = env_var

    @classmethod
    def from_settings(cls) -> "CurrentInstanceResolver":
        override = get_setting("current_instance.resolver")
        if isinstance(override, str):
            override = import_string(override)
        return cls(
            override=override,
            value=get_setting("current_instance.value"),
            env_var=get_setting("current_instance.env_var"),
        )

    def __call__(self) -> Optional[str]:
        if self.override is not None:
            return self.override() or None

        instance = _current_instance.get()
        if instance:
            return instance

        if self.value:
            return str(self.value)

        if self.env_var:
            return os.environ.get(self.env_var) or None
        return None
