"""
Request middleware exposing the current deployment instance.
"""

from typing import Any, Callable, Optional

from .config_proxy import get_setting
from .instances import reset_current_instance, set_current_instance


def _get_header_value(request: Any, header_name: str) -> Optional[str]:
    if not header_name:
        return None
    headers = getattr(request, "headers", None)
    if headers:
        value = headers.get(header_name)
        if value:
            return str(value).strip() or None
    meta = getattr(request, "META", None)
    if isinstance(meta, dict):
        key = "HTTP_" + header_name.upper().replace("-", "_")
        value = meta.get(key)
        if value:
            return str(value).strip() or None
    return None


class CurrentInstanceMiddleware:
    """
    Reads the instance header and scopes it to the request.

    The value is visible to ``CurrentInstanceResolver`` for the duration of
    the request only.
    """

    def __init__(self, get_response: Callable[[Any], Any]):
        self.get_response = get_response

    def __call__(self, request: Any) -> Any:
        instance = _get_header_value(request, get_setting("current_instance.header"))
        request.field_permissions_instance = instance
        token = set_current_instance(instance)
        try:
            return self.get_response(request)
        finally:
            reset_current_instance(token)
