"""
Private field permission type: only the author and privileged accounts.
"""

from ..interfaces import Account, ContentEntity
from .base import BasePermissionType, PermissionType, check_operation, is_entity_owner


class PrivateAccess(BasePermissionType):
    type_id = PermissionType.PRIVATE.value
    title = "Private"
    description = "Only author and administrators can edit and view."
    weight = 25

    def has_field_access(self, operation: str, entity: ContentEntity, account: Account) -> bool:
        check_operation(operation)
        if account.has_permission(self.dependencies.private_permission):
            return True
        # Users can access the field when creating new entities.
        if entity.is_new():
            return True
        return is_entity_owner(entity, account)

    def has_field_view_access_for_every_entity(self, account: Account) -> bool:
        return account.has_permission(self.dependencies.private_permission)
