"""
FastAPI dependency functions for authentication and authorization.
"""
from typing import Callable, Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from opsdesk.core.access import DecisionReason, Principal, authorize
from opsdesk.core.exceptions import (
    AuthorizationError,
    InvalidTokenError,
    NoCredentialError,
    NotAuthenticatedError,
)
from opsdesk.core.logging import bind_request_context, get_logger
from opsdesk.database import get_db
from opsdesk.repositories.employee_repository import EmployeeRepository
from opsdesk.repositories.role_repository import RoleRepository
from opsdesk.repositories.user_repository import UserRepository
from opsdesk.services.auth_service import AuthService
from opsdesk.services.provisioning_service import ProvisioningService
from opsdesk.services.role_service import RoleService


logger = get_logger(__name__)


def get_token_from_header(authorization: Optional[str] = Header(None)) -> str:
    """
    Extract Bearer token from Authorization header.

    Args:
        authorization: Authorization header value (optional)

    Returns:
        JWT token string

    Raises:
        NoCredentialError: If the header is missing or carries an empty token
        InvalidTokenError: If the header uses a scheme other than Bearer
    """
    if not authorization or not authorization.strip():
        raise NoCredentialError()

    parts = authorization.split()
    if parts[0].lower() != "bearer":
        raise InvalidTokenError()
    if len(parts) == 1:
        raise NoCredentialError()
    if len(parts) != 2:
        raise InvalidTokenError()

    return parts[1]


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """
    Get auth service instance with injected dependencies.

    Args:
        db: Database session

    Returns:
        AuthService instance
    """
    return AuthService(user_repository=UserRepository(db))


async def get_current_principal(
    token: str = Depends(get_token_from_header),
    auth_service: AuthService = Depends(get_auth_service)
) -> Principal:
    """
    Get the principal carried by the request's bearer token.

    Args:
        token: JWT token from Authorization header
        auth_service: Auth service used to verify the token

    Returns:
        Principal decoded from the token

    Raises:
        NoCredentialError: If no token was presented
        InvalidTokenError: If the token is invalid
        TokenExpiredError: If the token has expired
    """
    principal = auth_service.verify_token(token)
    bind_request_context(user_id=principal.user_id)
    return principal


def require_permission(required_permission: str) -> Callable:
    """
    Factory function to create a permission-guard dependency.

    The guard runs before the route handler, so a denied request never
    reaches it.

    Args:
        required_permission: Permission id the route requires

    Returns:
        Dependency function that returns the principal when allowed
    """
    async def permission_checker(
        principal: Principal = Depends(get_current_principal)
    ) -> Principal:
        """Check the principal against the required permission."""
        decision = authorize(principal, required_permission)
        if decision:
            return principal

        logger.info(
            "access_denied",
            required_permission=required_permission,
            reason=decision.reason.value,
            role_label=principal.role_label if principal else None,
        )
        if decision.reason is DecisionReason.NOT_AUTHENTICATED:
            raise NotAuthenticatedError()
        raise AuthorizationError()

    return permission_checker


# Service dependencies

async def get_role_service(db: AsyncSession = Depends(get_db)) -> RoleService:
    """
    Get role service instance with injected dependencies.

    Args:
        db: Database session

    Returns:
        RoleService instance
    """
    return RoleService(
        role_repository=RoleRepository(db),
        user_repository=UserRepository(db),
    )


async def get_provisioning_service(db: AsyncSession = Depends(get_db)) -> ProvisioningService:
    """Get provisioning service instance with injected repositories."""
    return ProvisioningService(
        employee_repository=EmployeeRepository(db),
        user_repository=UserRepository(db),
        role_repository=RoleRepository(db),
    )
