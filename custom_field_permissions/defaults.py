"""
Library defaults for custom field permissions.

Every key here can be overridden from the ``CUSTOM_FIELD_PERMISSIONS`` Django
setting. Nested sections are looked up with dotted keys, for example
``get_setting("instances.source_key")``.
"""

from typing import Any

LIBRARY_DEFAULTS: dict[str, Any] = {
    # Module name under which values are stored in field storage
    # third-party settings.
    "settings_namespace": "custom_field_permissions",
    "admin_role": "administrator",
    "anonymous_role": "anonymous",
    "authenticated_role": "authenticated",
    "private_permission": "access private fields",
    # "allow" or "deny" when a bundle has no permission matrix.
    "unconfigured_bundle_access": "allow",
    "enable_version_check": False,
    "comment_field_manager": None,
    "instances": {
        "source_file": "config/hosts.yaml",
        "source_key": "prd",
        "cache_alias": "default",
        "cache_key": "custom_field_permissions:instances",
    },
    "current_instance": {
        "value": None,
        "env_var": "FIELD_PERMISSIONS_INSTANCE",
        "header": "X-Instance-ID",
        "resolver": None,
    },
}
