"""
FastAPI router exposing the permission catalog.
"""
from fastapi import APIRouter, Depends

from opsdesk.core.access import Principal
from opsdesk.core.dependencies import get_current_principal
from opsdesk.core.permissions import CATALOG_VERSION, list_categories
from opsdesk.schemas.permission import PermissionCatalogResponse, PermissionCategoryResponse


router = APIRouter(prefix="/permissions", tags=["Permissions"])


@router.get(
    "",
    response_model=PermissionCatalogResponse,
    summary="List permission catalog",
    description="Return every permission id grouped by category, in display order."
)
async def list_permissions(
    principal: Principal = Depends(get_current_principal)
) -> PermissionCatalogResponse:
    """List the permission catalog."""
    return PermissionCatalogResponse(
        version=CATALOG_VERSION,
        categories=[PermissionCategoryResponse.from_category(c) for c in list_categories()],
    )
