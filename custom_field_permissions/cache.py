"""
Cache helpers for field permissions.

The instance list is the only process-wide state the engine keeps. It lives
in a Django cache backend behind an explicit ``PermanentCache`` object that
is built once and injected into the components that need it.
"""

from typing import Any, Optional

from django.core.cache import caches

from .config_proxy import get_setting
from .interfaces import CacheBackend

_MISSING = object()


def make_cache_key(prefix: str, *components: str) -> str:
    """
    Generate a cache key from prefix and components.

    Examples:
        >>> make_cache_key("instances", "prd")
        "custom_field_permissions:instances:prd"
    """
    parts = [p for p in components if p]
    if parts:
        return f"custom_field_permissions:{prefix}:{':'.join(parts)}"
    return f"custom_field_permissions:{prefix}"


class PermanentCache:
    """
    A single cache entry with no expiry.

    The value stays until ``invalidate()`` is called; concurrent first
    writers simply overwrite each other with the same value.
    """

    def __init__(self, key: str, backend: Optional[CacheBackend] = None):
        self.key = key
        self._backend = backend

    @property
    def backend(self) -> CacheBackend:
        if self._backend is None:
            self._backend = caches[get_setting("instances.cache_alias", "default")]
        return self._backend

    def get(self) -> Optional[Any]:
        value = self.backend.get(self.key, _MISSING)
        if value is _MISSING:
            return None
        return value

    def set(self, value: Any) -> None:
        # timeout=None stores the entry permanently
        self.backend.set(self.key, value, timeout=None)

    def invalidate(self) -> None:
        self.backend.delete(self.key)


def build_instance_cache(backend: Optional[CacheBackend] = None) -> PermanentCache:
    """Build the cache entry holding the instance list from settings."""
    key = get_setting("instances.cache_key") or make_cache_key("instances")
    return PermanentCache(key, backend=backend)
