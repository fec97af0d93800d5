"""
Pydantic schemas for authentication API requests and responses.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from opsdesk.core.access import Principal


class LoginRequest(BaseModel):
    """Request schema for email/password login."""

    email: str = Field(..., min_length=3, max_length=255, description="Email address (or username)")
    password: str = Field(..., min_length=1, description="Password")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "admin@example.com",
                "password": "securepassword123"
            }
        }
    )


class UserResponse(BaseModel):
    """Response schema for an authenticated user."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="Email address")
    role: str = Field(..., validation_alias=AliasChoices("role_label", "role"), description="Role label")
    role_id: Optional[UUID] = Field(None, description="Backing role, if any")
    permissions: List[str] = Field(default_factory=list, description="Permission snapshot")
    employee_id: int = Field(..., description="Linked employee")
    is_active: bool = Field(..., description="Account active status")
    last_login: Optional[datetime] = Field(None, description="Last login timestamp")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "username": "jane@example.com",
                "email": "jane@example.com",
                "role": "SUPERVISOR",
                "role_id": "0f8fad5b-d9cb-469f-a165-70867728950e",
                "permissions": ["view_dashboard", "manage_jobs"],
                "employee_id": 42,
                "is_active": True,
                "last_login": "2026-01-15T10:30:00Z"
            }
        }
    )


class LoginResponse(BaseModel):
    """Response schema for login."""

    success: bool = Field(default=True, description="Always true on success")
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse = Field(..., description="User information")


class PrincipalResponse(BaseModel):
    """The principal decoded from the caller's token."""

    user_id: str = Field(..., description="User ID")
    username: Optional[str] = Field(None, description="Username")
    role: str = Field(..., description="Role label")
    permissions: List[str] = Field(..., description="Permission snapshot at issuance")
    permitted: List[str] = Field(..., description="Catalog ids this principal can exercise")

    @classmethod
    def from_principal(cls, principal: Principal, permitted: List[str]) -> "PrincipalResponse":
        return cls(
            user_id=principal.user_id,
            username=principal.username,
            role=principal.role_label,
            permissions=sorted(principal.permissions),
            permitted=permitted,
        )
