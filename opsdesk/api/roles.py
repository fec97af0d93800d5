"""
FastAPI router for role management endpoints.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from opsdesk.core.access import Principal
from opsdesk.core.dependencies import get_current_principal, get_role_service, require_permission
from opsdesk.database import get_db
from opsdesk.schemas.role import (
    RoleCreateRequest,
    RoleListResponse,
    RoleResponse,
    RoleUpdateRequest,
)
from opsdesk.services.role_service import RoleService


router = APIRouter(prefix="/roles", tags=["Roles"])


def _to_response(role, users_count: int = 0) -> RoleResponse:
    return RoleResponse.model_validate(role).model_copy(update={"users_count": users_count})


@router.get(
    "",
    response_model=RoleListResponse,
    summary="List roles",
    description="List role templates ordered by name, with the number of users linked to each."
)
async def list_roles(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of records"),
    principal: Principal = Depends(get_current_principal),
    role_service: RoleService = Depends(get_role_service)
) -> RoleListResponse:
    """List roles."""
    roles = await role_service.list_roles(skip=skip, limit=limit)
    counts = await role_service.count_users(roles)
    return RoleListResponse(data=[_to_response(r, counts[r.id]) for r in roles])


@router.post(
    "",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create role",
    description="Create a role template. Permission ids must exist in the catalog."
)
async def create_role(
    role_request: RoleCreateRequest,
    principal: Principal = Depends(require_permission("manage_roles")),
    db: AsyncSession = Depends(get_db),
    role_service: RoleService = Depends(get_role_service)
) -> RoleResponse:
    """Create a role."""
    role = await role_service.create_role(role_request)
    await db.commit()
    return _to_response(role)


@router.get(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Get role",
    description="Get a single role template."
)
async def get_role(
    role_id: UUID,
    principal: Principal = Depends(get_current_principal),
    role_service: RoleService = Depends(get_role_service)
) -> RoleResponse:
    """Get a role by ID."""
    role = await role_service.get_role(role_id)
    counts = await role_service.count_users([role])
    return _to_response(role, counts[role.id])


@router.put(
    "/{role_id}",
    response_model=RoleResponse,
    summary="Update role",
    description="Update a role template. Users already provisioned from it keep their permissions."
)
async def update_role(
    role_id: UUID,
    role_request: RoleUpdateRequest,
    principal: Principal = Depends(require_permission("manage_roles")),
    db: AsyncSession = Depends(get_db),
    role_service: RoleService = Depends(get_role_service)
) -> RoleResponse:
    """Update a role."""
    role = await role_service.update_role(role_id, role_request)
    counts = await role_service.count_users([role])
    await db.commit()
    return _to_response(role, counts[role.id])


@router.delete(
    "/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete role",
    description="Delete a role template. Refused while any user is linked to it."
)
async def delete_role(
    role_id: UUID,
    principal: Principal = Depends(require_permission("manage_roles")),
    db: AsyncSession = Depends(get_db),
    role_service: RoleService = Depends(get_role_service)
) -> Response:
    """Delete a role."""
    await role_service.delete_role(role_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
