"""
Provisioning service: grant or manage an employee's access.

An employee has at most one user. The first grant creates it; every later
grant overwrites its role and permission snapshot in place.
"""
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from opsdesk.core.config import settings
from opsdesk.core.exceptions import ConflictError, NotFoundError, ValidationError
from opsdesk.core.logging import get_logger
from opsdesk.core.permissions import is_customized, validate_permissions
from opsdesk.core.security import hash_password
from opsdesk.models.enums import AccessState
from opsdesk.models.role import Role
from opsdesk.models.user import User
from opsdesk.repositories.employee_repository import EmployeeRepository
from opsdesk.repositories.role_repository import RoleRepository
from opsdesk.repositories.user_repository import UserRepository
from opsdesk.schemas.access import GrantAccessRequest
from opsdesk.schemas.employee import EmployeeRecord


logger = get_logger(__name__)

# Client-facing detail for unique-constraint failures; the driver message stays in the logs
DUPLICATE_LOGIN_DETAIL = "Username or email already in use"


@dataclass
class AccessView:
    """An employee together with its user, if one has been provisioned."""

    employee: EmployeeRecord
    user: Optional[User] = None
    role_name: Optional[str] = None
    customized: bool = False

    @property
    def state(self) -> AccessState:
        return AccessState.ACTIVE if self.user is not None else AccessState.NO_ACCESS


@dataclass
class _ResolvedRole:
    label: str
    role_id: Optional[UUID]
    permissions: List[str]


class ProvisioningService:
    """Service for creating and updating employee users."""

    def __init__(
        self,
        employee_repository: EmployeeRepository,
        user_repository: UserRepository,
        role_repository: RoleRepository
    ):
        """
        Initialize provisioning service.

        Args:
            employee_repository: Employee repository instance
            user_repository: User repository instance
            role_repository: Role repository instance
        """
        self.employee_repo = employee_repository
        self.user_repo = user_repository
        self.role_repo = role_repository

    async def get_access(self, employee_id: int) -> AccessView:
        """
        Describe an employee's current access.

        Args:
            employee_id: Employee ID

        Returns:
            AccessView with the linked user and drift from its role

        Raises:
            NotFoundError: If the employee does not exist
        """
        employee = await self._get_employee(employee_id)
        user = await self.user_repo.get_by_employee_id(employee_id)
        view = AccessView(employee=employee, user=user)

        if user is not None and user.role_id is not None:
            role = await self.role_repo.get_by_id(user.role_id)
            if role is not None:
                view.role_name = role.name
                view.customized = is_customized(user.permissions or [], role.permissions or [])

        return view

    async def list_users(self, query: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[User]:
        if query:
            return await self.user_repo.search_users(query, skip=skip, limit=limit)
        return await self.user_repo.get_all(skip=skip, limit=limit)

    async def grant(self, employee_id: int, request: GrantAccessRequest) -> User:
        """
        Create or update the user linked to an employee.

        Everything is validated before anything is written. The stored role
        label, role id and permissions are replaced wholesale; a blank
        password on update keeps the current hash.

        Args:
            employee_id: Employee to provision
            request: Grant request

        Returns:
            The created or updated user

        Raises:
            NotFoundError: If the employee does not exist
            ValidationError: If any field is missing or invalid
            ConflictError: If username or email is taken, or expected_version is stale
        """
        await self._get_employee(employee_id)
        existing = await self.user_repo.get_by_employee_id(employee_id)

        if not request.email:
            raise ValidationError("email", "is required")
        email = str(request.email)
        username = request.username or email

        self._check_password(request.password, first_grant=existing is None)
        resolved = await self._resolve_role(request)

        await self._check_unique(employee_id, username=username, email=email)

        if existing is None:
            user = await self._create_user(employee_id, request, resolved, username, email)
            logger.info(
                "access_granted",
                employee_id=employee_id,
                user_id=user.id,
                role_label=user.role_label,
                permission_count=len(user.permissions),
            )
            return user

        user = await self._update_user(existing, request, resolved, username, email)
        logger.info(
            "access_updated",
            employee_id=employee_id,
            user_id=user.id,
            role_label=user.role_label,
            permission_count=len(user.permissions),
            password_changed=bool(request.password),
            version=user.version,
        )
        return user

    async def _get_employee(self, employee_id: int) -> EmployeeRecord:
        employee = await self.employee_repo.get_by_id(employee_id)
        if employee is None:
            raise NotFoundError("Employee not found")
        return EmployeeRecord.from_row(employee)

    def _check_password(self, password: Optional[str], first_grant: bool) -> None:
        if not password:
            if first_grant:
                raise ValidationError("password", "is required when granting access")
            return
        if len(password) < settings.password_min_length:
            raise ValidationError(
                "password", f"must be at least {settings.password_min_length} characters"
            )

    async def _resolve_role(self, request: GrantAccessRequest) -> _ResolvedRole:
        """
        Turn the request's role choice into the label, id and snapshot to store.

        Raises:
            ValidationError: If the role choice or permissions are invalid
        """
        if (request.role_id is None) == (request.role_label is None):
            raise ValidationError("role", "choose exactly one of role_id or role_label")

        if request.role_id is not None:
            role: Optional[Role] = await self.role_repo.get_by_id(request.role_id)
            if role is None:
                raise ValidationError("role_id", "unknown role")
            submitted = request.permissions if request.permissions is not None else role.permissions
            return _ResolvedRole(
                label=role.name,
                role_id=role.id,
                permissions=validate_permissions(submitted or []),
            )

        if request.permissions is None:
            raise ValidationError("permissions", "is required for a manual role")
        return _ResolvedRole(
            label=request.role_label,
            role_id=None,
            permissions=validate_permissions(request.permissions),
        )

    async def _check_unique(self, employee_id: int, username: str, email: str) -> None:
        other = await self.user_repo.get_by_email(email)
        if other is not None and other.employee_id != employee_id:
            raise ConflictError(f"Email '{email}' is already in use")

        other = await self.user_repo.get_by_username(username)
        if other is not None and other.employee_id != employee_id:
            raise ConflictError(f"Username '{username}' is already in use")

    async def _create_user(
        self,
        employee_id: int,
        request: GrantAccessRequest,
        resolved: _ResolvedRole,
        username: str,
        email: str
    ) -> User:
        try:
            return await self.user_repo.create(
                username=username,
                email=email,
                hashed_password=hash_password(request.password),
                role_label=resolved.label,
                role_id=resolved.role_id,
                permissions=resolved.permissions,
                employee_id=employee_id,
                is_active=True,
                version=1,
            )
        except IntegrityError as e:
            self._log_integrity_error(e, employee_id)
            raise ConflictError(DUPLICATE_LOGIN_DETAIL) from e

    async def _update_user(
        self,
        existing: User,
        request: GrantAccessRequest,
        resolved: _ResolvedRole,
        username: str,
        email: str
    ) -> User:
        values = {
            "username": username,
            "email": email,
            "role_label": resolved.label,
            "role_id": resolved.role_id,
            "permissions": resolved.permissions,
        }
        if request.password:
            values["hashed_password"] = hash_password(request.password)

        # Without expected_version concurrent grants are last-write-wins
        try:
            user = await self.user_repo.update_if_version(
                existing.id, request.expected_version, **values
            )
        except IntegrityError as e:
            self._log_integrity_error(e, existing.employee_id)
            raise ConflictError(DUPLICATE_LOGIN_DETAIL) from e

        if user is None:
            raise ConflictError(
                "Access was changed by someone else; reload and try again"
            )
        return user

    @staticmethod
    def _log_integrity_error(error: IntegrityError, employee_id: int) -> None:
        logger.warning(
            "access_grant_conflict",
            employee_id=employee_id,
            db_error=str(error.orig),
        )
