"""
Employee directory boundary.

Employee rows come in two shapes: a single ``name`` or a
``first_name``/``last_name`` pair. ``EmployeeRecord.from_row`` folds both
into ``display_name`` so nothing downstream branches on the shape.
"""
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from opsdesk.models import Employee


def normalize_display_name(
    name: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str],
    fallback: str
) -> str:
    """Pick a single display name for an employee record."""
    if name and name.strip():
        return name.strip()
    parts = [part.strip() for part in (first_name, last_name) if part and part.strip()]
    if parts:
        return " ".join(parts)
    return fallback


class EmployeeRecord(BaseModel):
    """Normalized, read-only view of an employee."""

    id: int = Field(..., description="Employee ID")
    display_name: str = Field(..., description="Canonical display name")
    email: Optional[str] = Field(None, description="Work email")
    department: Optional[str] = Field(None, description="Department")
    position: Optional[str] = Field(None, description="Position")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_row(cls, row: Union[Employee, Mapping[str, Any]]) -> "EmployeeRecord":
        """
        Build a record from an ORM row or a directory payload.

        Args:
            row: Employee model instance or mapping with the same keys

        Returns:
            EmployeeRecord with display_name resolved
        """
        if isinstance(row, Mapping):
            get = row.get
        else:
            def get(key: str, default: Any = None) -> Any:
                return getattr(row, key, default)

        employee_id = get("id")
        return cls(
            id=employee_id,
            display_name=normalize_display_name(
                get("name"),
                get("first_name"),
                get("last_name"),
                fallback=get("email") or f"Employee #{employee_id}",
            ),
            email=get("email"),
            department=get("department"),
            position=get("position"),
        )
