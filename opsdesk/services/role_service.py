"""
Role management service.

Roles are provisioning templates. Changing a role never touches the
permission snapshots already stored on users.
"""
from typing import Dict, List
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from opsdesk.core.exceptions import ConflictError, NotFoundError
from opsdesk.core.logging import get_logger
from opsdesk.core.permissions import validate_permissions
from opsdesk.models.role import Role
from opsdesk.repositories.role_repository import RoleRepository
from opsdesk.repositories.user_repository import UserRepository
from opsdesk.schemas.role import RoleCreateRequest, RoleUpdateRequest


logger = get_logger(__name__)

DUPLICATE_ROLE_DETAIL = "Role name already in use"


class RoleService:
    """Service for role CRUD with catalog validation."""

    def __init__(self, role_repository: RoleRepository, user_repository: UserRepository):
        """
        Initialize role service.

        Args:
            role_repository: Role repository instance
            user_repository: User repository instance, used to check role usage
        """
        self.role_repo = role_repository
        self.user_repo = user_repository

    async def list_roles(self, skip: int = 0, limit: int = 100) -> List[Role]:
        return await self.role_repo.list_ordered(skip=skip, limit=limit)

    async def count_users(self, roles: List[Role]) -> Dict[UUID, int]:
        """
        Count the users linked to each role.

        Args:
            roles: Roles to count for

        Returns:
            Mapping of role id to linked user count, zero for unused roles
        """
        return await self.user_repo.count_by_roles([role.id for role in roles])

    async def get_role(self, role_id: UUID) -> Role:
        """
        Fetch a role.

        Raises:
            NotFoundError: If the role does not exist
        """
        role = await self.role_repo.get_by_id(role_id)
        if not role:
            raise NotFoundError("Role not found")
        return role

    async def create_role(self, request: RoleCreateRequest) -> Role:
        """
        Create a role.

        Args:
            request: Validated create request

        Returns:
            Created role

        Raises:
            ValidationError: If a permission id is not in the catalog
            ConflictError: If a role with the same name exists
        """
        permissions = validate_permissions(request.permissions)

        if await self.role_repo.get_by_name(request.name):
            raise ConflictError(f"Role '{request.name}' already exists")

        try:
            role = await self.role_repo.create(
                name=request.name,
                description=request.description,
                permissions=permissions,
            )
        except IntegrityError as e:
            logger.warning("role_save_conflict", role_name=request.name, db_error=str(e.orig))
            raise ConflictError(DUPLICATE_ROLE_DETAIL) from e

        logger.info("role_created", role_id=role.id, role_name=role.name)
        return role

    async def update_role(self, role_id: UUID, request: RoleUpdateRequest) -> Role:
        """
        Update a role's name, description or permission list.

        The permission list is replaced, not merged. Users provisioned from
        this role keep their snapshots.

        Raises:
            NotFoundError: If the role does not exist
            ValidationError: If a permission id is not in the catalog
            ConflictError: If the new name is taken
        """
        role = await self.get_role(role_id)
        values = {}

        if request.permissions is not None:
            values["permissions"] = validate_permissions(request.permissions)

        if request.name is not None and request.name != role.name:
            existing = await self.role_repo.get_by_name(request.name)
            if existing and existing.id != role.id:
                raise ConflictError(f"Role '{request.name}' already exists")
            values["name"] = request.name

        if request.description is not None:
            values["description"] = request.description

        if not values:
            return role

        try:
            role = await self.role_repo.update(role_id, **values)
        except IntegrityError as e:
            logger.warning("role_save_conflict", role_id=role_id, db_error=str(e.orig))
            raise ConflictError(DUPLICATE_ROLE_DETAIL) from e

        logger.info("role_updated", role_id=role_id, changed_fields=sorted(values))
        return role

    async def delete_role(self, role_id: UUID) -> None:
        """
        Delete a role that no user references.

        Raises:
            NotFoundError: If the role does not exist
            ConflictError: If any user is still linked to the role
        """
        role = await self.get_role(role_id)

        in_use = await self.user_repo.count_by_role(role.id)
        if in_use:
            raise ConflictError(
                f"Role '{role.name}' is assigned to {in_use} user(s)",
                message="Role is in use"
            )

        await self.role_repo.delete(role.id)
        logger.info("role_deleted", role_id=role.id, role_name=role.name)
