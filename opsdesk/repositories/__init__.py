"""
Repositories package for data access layer.

This module exports all repository classes for easy importing
throughout the application.
"""
from opsdesk.repositories.base import BaseRepository
from opsdesk.repositories.employee_repository import EmployeeRepository
from opsdesk.repositories.role_repository import RoleRepository
from opsdesk.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "EmployeeRepository",
    "RoleRepository",
    "UserRepository",
]
