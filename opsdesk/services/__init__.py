"""
Services package for business logic layer.

This package contains service classes that implement authentication,
role management and access provisioning.
"""

from opsdesk.services.auth_service import AuthService, IssuedToken
from opsdesk.services.provisioning_service import AccessView, ProvisioningService
from opsdesk.services.role_service import RoleService

__all__ = [
    "AccessView",
    "AuthService",
    "IssuedToken",
    "ProvisioningService",
    "RoleService",
]
