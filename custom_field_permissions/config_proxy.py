"""
Configuration management for custom field permissions.

Settings are resolved in the following order:
1. Django settings (``CUSTOM_FIELD_PERMISSIONS``)
2. Library defaults (``LIBRARY_DEFAULTS``)
"""

from typing import Any, Optional

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

from .defaults import LIBRARY_DEFAULTS

SETTINGS_NAME = "CUSTOM_FIELD_PERMISSIONS"

_MISSING = object()


class SettingsProxy:
    """
    Proxy for accessing field permission settings with hierarchical resolution.
    """

    def __init__(self) -> None:
        self._cache: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value, falling back to library defaults.

        Args:
            key: Setting key, dotted for nested sections
            default: Value returned when neither source defines the key

        Returns:
            The setting value from the highest priority source
        """
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        value = self._get_nested_value(getattr(settings, SETTINGS_NAME, {}), key)
        if value is _MISSING:
            value = self._get_nested_value(LIBRARY_DEFAULTS, key)
        if value is _MISSING:
            value = default

        self._cache[key] = value
        return value

    def _get_nested_value(self, data: dict[str, Any], key: str) -> Any:
        """
        Get nested value from dictionary using dot notation.

        Explicit ``None`` values are returned as-is so a project can switch a
        default off.
        """
        if not isinstance(data, dict):
            return _MISSING

        current: Any = data
        for k in key.split("."):
            if not isinstance(current, dict) or k not in current:
                return _MISSING
            current = current[k]
        return current

    def clear_cache(self) -> None:
        """Clear the settings cache."""
        self._cache.clear()

    def validate(self) -> dict[str, Any]:
        """
        Validate the current configuration.

        Returns:
            Dictionary with ``valid``, ``errors`` and ``warnings`` entries
        """
        results: dict[str, Any] = {"valid": True, "errors": [], "warnings": []}

        policy = self.get("unconfigured_bundle_access")
        if policy not in ("allow", "deny"):
            results["errors"].append(
                f"'unconfigured_bundle_access' must be 'allow' or 'deny', got {policy!r}"
            )
            results["valid"] = False

        for key in ("settings_namespace", "admin_role", "instances.source_key"):
            if not self.get(key):
                results["errors"].append(f"Critical setting '{key}' is empty")
                results["valid"] = False

        if not self.get("instances.source_file"):
            results["warnings"].append(
                "No instance source file configured; instance permissions are disabled"
            )
        return results


# Global settings proxy instance
settings_proxy = SettingsProxy()


def get_setting(key: str, default: Any = None) -> Any:
    """
    Get a field permission setting.

    Args:
        key: Setting key, dotted for nested sections
        default: Default value when the key is not defined anywhere

    Returns:
        The resolved setting value
    """
    return settings_proxy.get(key, default)


def get_settings_proxy() -> SettingsProxy:
    """Return the global settings proxy."""
    return settings_proxy


@receiver(setting_changed)
def _reset_settings_cache(sender: Any, setting: Optional[str] = None, **kwargs: Any) -> None:
    if setting == SETTINGS_NAME:
        settings_proxy.clear_cache()
