"""
Django app configuration for custom field permissions.
"""

import logging

from django.apps import AppConfig as BaseAppConfig
from django.conf import settings

from .exceptions import ImproperlyConfiguredPermissions

logger = logging.getLogger(__name__)


class AppConfig(BaseAppConfig):
    """Django app configuration for custom field permissions."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "custom_field_permissions"
    verbose_name = "Custom Field Permissions"
    label = "custom_field_permissions"

    def ready(self):
        """Validate the configuration once Django has loaded."""
        self._validate_configuration()
        logger.debug("Custom field permissions initialized")

    def _validate_configuration(self):
        from .config_proxy import get_settings_proxy

        results = get_settings_proxy().validate()
        for warning in results["warnings"]:
            logger.warning("Field permissions configuration: %s", warning)
        if results["valid"]:
            return

        message = "; ".join(results["errors"])
        if getattr(settings, "DEBUG", False):
            raise ImproperlyConfiguredPermissions(message)
        logger.error("Invalid field permissions configuration: %s", message)
