"""
Pydantic schemas for role management.

Permission ids are checked against the catalog by RoleService, not here,
so that unknown ids surface as a field-level ValidationError.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RoleCreateRequest(BaseModel):
    """Request schema for creating a role."""

    name: str = Field(..., min_length=1, max_length=100, description="Role name")
    description: Optional[str] = Field(None, max_length=1000, description="What the role is for")
    permissions: List[str] = Field(default_factory=list, description="Permission ids")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Role names are compared exactly, so only surrounding space is removed."""
        v = v.strip()
        if not v:
            raise ValueError("Role name cannot be blank")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "SUPERVISOR",
                "description": "Field supervisor",
                "permissions": ["view_dashboard", "manage_jobs"]
            }
        }
    )


class RoleUpdateRequest(BaseModel):
    """Request schema for updating a role. Omitted fields are left as they are."""

    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Role name")
    description: Optional[str] = Field(None, max_length=1000, description="Description")
    permissions: Optional[List[str]] = Field(None, description="Replacement permission list")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Role name cannot be blank")
        return v


class RoleResponse(BaseModel):
    """Response schema for a role."""

    id: UUID = Field(..., description="Role ID")
    name: str = Field(..., description="Role name")
    description: Optional[str] = Field(None, description="Description")
    permissions: List[str] = Field(default_factory=list, description="Permission ids")
    users_count: int = Field(0, ge=0, description="Number of users linked to the role")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class RoleListResponse(BaseModel):
    """Response schema for role listing."""

    success: bool = True
    data: List[RoleResponse]
