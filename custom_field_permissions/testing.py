"""
Test utilities for custom field permissions.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any

from django.conf import settings
from django.test.utils import override_settings

from .config_proxy import SETTINGS_NAME, settings_proxy
from .service import reset_field_permissions_service


@contextmanager
def override_field_permission_settings(**overrides: Any):
    """Override ``CUSTOM_FIELD_PERMISSIONS`` keys and rebuild the service."""
    merged = dict(getattr(settings, SETTINGS_NAME, {}) or {})
    merged.update(overrides)
    with override_settings(**{SETTINGS_NAME: merged}):
        settings_proxy.clear_cache()
        reset_field_permissions_service()
        try:
            yield
        finally:
            settings_proxy.clear_cache()
            reset_field_permissions_service()
