"""
Enum definitions for access-control models.
"""
from enum import Enum


class AccessState(str, Enum):
    """Provisioning state of an Employee."""
    NO_ACCESS = "NO_ACCESS"
    ACTIVE = "ACTIVE"
