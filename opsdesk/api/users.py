"""
API endpoints for provisioned users and employee access.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from opsdesk.core.access import Principal
from opsdesk.core.dependencies import get_provisioning_service, require_permission
from opsdesk.database import get_db
from opsdesk.schemas.access import AccessViewResponse, GrantAccessRequest, UserListResponse
from opsdesk.schemas.auth import UserResponse
from opsdesk.services.provisioning_service import AccessView, ProvisioningService


router = APIRouter(tags=["Users"])


def _to_response(view: AccessView) -> AccessViewResponse:
    return AccessViewResponse(
        employee=view.employee,
        state=view.state,
        user=UserResponse.model_validate(view.user) if view.user is not None else None,
        role_name=view.role_name,
        customized=view.customized,
        version=view.user.version if view.user is not None else None,
    )


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List users",
    description="List provisioned users, optionally filtered by username or email.",
)
async def list_users(
    q: Optional[str] = Query(None, max_length=255, description="Username or email fragment"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    principal: Principal = Depends(require_permission("manage_users")),
    provisioning_service: ProvisioningService = Depends(get_provisioning_service),
) -> UserListResponse:
    users = await provisioning_service.list_users(query=q, skip=skip, limit=limit)
    return UserListResponse(data=[UserResponse.model_validate(u) for u in users])


@router.get(
    "/employees/{employee_id}/access",
    response_model=AccessViewResponse,
    summary="Get employee access",
    description="Show whether an employee has a user, and how its permissions relate to its role.",
)
async def get_employee_access(
    employee_id: int,
    principal: Principal = Depends(require_permission("manage_users")),
    provisioning_service: ProvisioningService = Depends(get_provisioning_service),
) -> AccessViewResponse:
    """Get an employee's access state."""
    view = await provisioning_service.get_access(employee_id)
    return _to_response(view)


@router.put(
    "/employees/{employee_id}/access",
    response_model=AccessViewResponse,
    summary="Grant or manage employee access",
    description="Create the employee's user on first call, overwrite its role and permissions afterwards.",
)
async def grant_employee_access(
    employee_id: int,
    grant_request: GrantAccessRequest,
    principal: Principal = Depends(require_permission("manage_users")),
    db: AsyncSession = Depends(get_db),
    provisioning_service: ProvisioningService = Depends(get_provisioning_service),
) -> AccessViewResponse:
    """Grant or update access for an employee."""
    await provisioning_service.grant(employee_id, grant_request)
    await db.commit()

    view = await provisioning_service.get_access(employee_id)
    return _to_response(view)
