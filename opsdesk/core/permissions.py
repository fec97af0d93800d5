"""
Permission catalog.

The catalog is the fixed, versioned registry of every permission id the
system recognizes. It feeds the permission selection UI and the write-path
validators. Categories exist for presentation only.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from opsdesk.core.exceptions import ValidationError


CATALOG_VERSION = 1

# Reserved sentinel granting unconditional access
ALL_ACCESS = "ALL_ACCESS"


@dataclass(frozen=True)
class PermissionItem:
    id: str
    label: str


@dataclass(frozen=True)
class PermissionCategory:
    category: str
    permissions: Tuple[PermissionItem, ...]

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(item.id for item in self.permissions)


def _category(name: str, *items: Tuple[str, str]) -> PermissionCategory:
    return PermissionCategory(
        category=name,
        permissions=tuple(PermissionItem(id=pid, label=label) for pid, label in items)
    )


PERMISSION_CATEGORIES: Tuple[PermissionCategory, ...] = (
    _category(
        "Dashboard & Analytics",
        ("view_dashboard", "View Dashboard"),
        ("view_analytics", "View Analytics"),
    ),
    _category(
        "Quotations",
        ("create_quote", "Create Quotation"),
        ("view_quote", "View Quotations"),
        ("edit_quote", "Edit Quotation"),
        ("delete_quote", "Delete Quotation"),
        ("approve_quote", "Approve Quotation"),
    ),
    _category(
        "Financials",
        ("view_finance", "View Financials"),
        ("view_salary", "View Salaries"),
    ),
    _category(
        "User & Role Management",
        ("manage_users", "Manage Users"),
        ("manage_roles", "Manage Roles"),
    ),
    _category(
        "Field Operations",
        ("view_field_ops", "View Field Ops"),
        ("manage_jobs", "Manage Jobs/Assignments"),
        ("view_technicians", "View Technicians"),
    ),
    _category(
        "User Portal (Self Service)",
        ("access_portal", "Access User Portal"),
        ("view_my_tasks", "View My Tasks"),
        ("view_attendance", "View Attendance"),
    ),
    _category(
        "Employees & Operations",
        ("view_employees", "View Employees"),
        ("edit_employee", "Edit Employee"),
        ("delete_employee", "Delete Employee"),
        ("approve_leave", "Approve Leave"),
    ),
)

_CATALOG_IDS: Tuple[str, ...] = tuple(
    pid for category in PERMISSION_CATEGORIES for pid in category.ids
)
_CATALOG_ID_SET = frozenset(_CATALOG_IDS)


def list_categories() -> Tuple[PermissionCategory, ...]:
    """Return the catalog grouped by category, in display order."""
    return PERMISSION_CATEGORIES


def all_permission_ids() -> Tuple[str, ...]:
    """Return every catalog permission id in display order."""
    return _CATALOG_IDS


def is_known_permission(permission_id: str) -> bool:
    """Check whether an id is part of the catalog."""
    return permission_id in _CATALOG_ID_SET


def get_category(name: str) -> Optional[PermissionCategory]:
    for category in PERMISSION_CATEGORIES:
        if category.category == name:
            return category
    return None


def validate_permissions(
    permission_ids: Iterable[str],
    field: str = "permissions",
    allow_sentinel: bool = True
) -> List[str]:
    """
    Validate a submitted permission list against the catalog.

    Args:
        permission_ids: Submitted permission ids
        field: Field name reported on failure
        allow_sentinel: Whether ALL_ACCESS is accepted

    Returns:
        The ids with duplicates removed, in first-seen order

    Raises:
        ValidationError: If any id is not in the catalog
    """
    if isinstance(permission_ids, str):
        raise ValidationError(field, "must be a list of permission ids")

    cleaned: List[str] = []
    unknown: List[str] = []
    for pid in permission_ids:
        if not isinstance(pid, str):
            raise ValidationError(field, "must be a list of permission ids")
        if pid in cleaned:
            continue
        if is_known_permission(pid) or (allow_sentinel and pid == ALL_ACCESS):
            cleaned.append(pid)
        elif pid not in unknown:
            unknown.append(pid)

    if unknown:
        raise ValidationError(field, f"unknown permission ids: {', '.join(unknown)}")
    return cleaned


def toggle_permission(selected: Sequence[str], permission_id: str) -> List[str]:
    """Add the id when absent, remove it when present."""
    if permission_id in selected:
        return [pid for pid in selected if pid != permission_id]
    return [*selected, permission_id]


def toggle_group(selected: Sequence[str], category: PermissionCategory) -> List[str]:
    """
    Toggle a whole category.

    If every id of the category is already selected they are all removed,
    otherwise the missing ones are appended.
    """
    group_ids = category.ids
    if all(pid in selected for pid in group_ids):
        return [pid for pid in selected if pid not in group_ids]
    return [*selected, *(pid for pid in group_ids if pid not in selected)]


def is_customized(user_permissions: Iterable[str], role_permissions: Iterable[str]) -> bool:
    """Whether a user's snapshot has drifted from its role's permissions."""
    return sorted(set(user_permissions)) != sorted(set(role_permissions))
