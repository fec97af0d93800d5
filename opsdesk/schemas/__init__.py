# Schemas package

# Auth schemas
from opsdesk.schemas.auth import (
    LoginRequest,
    LoginResponse,
    PrincipalResponse,
    UserResponse,
)

# Access schemas
from opsdesk.schemas.access import (
    AccessViewResponse,
    GrantAccessRequest,
    UserListResponse,
)

# Employee schemas
from opsdesk.schemas.employee import EmployeeRecord

# Permission catalog schemas
from opsdesk.schemas.permission import (
    PermissionCatalogResponse,
    PermissionCategoryResponse,
)

# Role schemas
from opsdesk.schemas.role import (
    RoleCreateRequest,
    RoleListResponse,
    RoleResponse,
    RoleUpdateRequest,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "PrincipalResponse",
    "UserResponse",
    # Access
    "AccessViewResponse",
    "GrantAccessRequest",
    "UserListResponse",
    # Employees
    "EmployeeRecord",
    # Permissions
    "PermissionCatalogResponse",
    "PermissionCategoryResponse",
    # Roles
    "RoleCreateRequest",
    "RoleListResponse",
    "RoleResponse",
    "RoleUpdateRequest",
]
