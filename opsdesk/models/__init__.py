"""
Models package for database entities.

This module exports all SQLAlchemy models and enums for easy importing
throughout the application.
"""
from opsdesk.models.base import Base, TimestampMixin
from opsdesk.models.enums import AccessState
from opsdesk.models.employee import Employee
from opsdesk.models.role import Role
from opsdesk.models.user import User

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",

    # Enums
    "AccessState",

    # Models
    "Employee",
    "Role",
    "User",
]
