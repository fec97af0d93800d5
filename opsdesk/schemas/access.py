"""
Pydantic schemas for employee access provisioning.
"""
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from opsdesk.models.enums import AccessState
from opsdesk.schemas.auth import UserResponse
from opsdesk.schemas.employee import EmployeeRecord


class GrantAccessRequest(BaseModel):
    """
    Request schema for granting or managing an employee's access.

    Choose the role with exactly one of ``role_id`` (catalog role) or
    ``role_label`` (manually typed). ``permissions`` is the full snapshot to
    store; it may be omitted for a catalog role to take the role's defaults.
    """

    email: Optional[EmailStr] = Field(None, description="Login email")
    username: Optional[str] = Field(None, max_length=255, description="Username (defaults to email)")
    password: Optional[str] = Field(None, description="Password; required on first grant, blank keeps it")
    role_id: Optional[UUID] = Field(None, description="Catalog role to apply")
    role_label: Optional[str] = Field(None, max_length=100, description="Manual role label")
    permissions: Optional[List[str]] = Field(None, description="Permission snapshot")
    expected_version: Optional[int] = Field(None, ge=1, description="Reject the update if the user changed since this version")

    @field_validator("username", "role_label")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "jane@example.com",
                "password": "k3x9Qa2m",
                "role_id": "0f8fad5b-d9cb-469f-a165-70867728950e",
                "permissions": ["view_dashboard"]
            }
        }
    )


class AccessViewResponse(BaseModel):
    """An employee's access state."""

    success: bool = True
    employee: EmployeeRecord
    state: AccessState
    user: Optional[UserResponse] = None
    role_name: Optional[str] = Field(None, description="Name of the backing role, if it still exists")
    customized: bool = Field(False, description="Snapshot differs from the backing role's permissions")
    version: Optional[int] = Field(None, description="Current user version for stale-write checks")


class UserListResponse(BaseModel):
    success: bool = True
    data: List[UserResponse]
