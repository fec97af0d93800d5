"""
Access decision engine.

``authorize`` is evaluated once per request against the principal decoded
from the bearer token. It is pure: no I/O, no caching, no mutable state.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional

from opsdesk.core.permissions import ALL_ACCESS, all_permission_ids


# Role label that bypasses every permission check
ADMIN_ROLE_LABEL = "ADMIN"


@dataclass(frozen=True)
class Principal:
    """Identity and permission snapshot attached to a request."""

    user_id: str
    role_label: str
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    username: Optional[str] = None


class DecisionReason(str, Enum):
    """Why a decision came out the way it did."""
    NOT_AUTHENTICATED = "not authenticated"
    ADMIN_ROLE = "admin role"
    ALL_ACCESS = "all access"
    GRANTED = "granted"
    INSUFFICIENT_PERMISSIONS = "insufficient permissions"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: DecisionReason

    def __bool__(self) -> bool:
        return self.allowed


def authorize(principal: Optional[Principal], required_permission: str) -> AccessDecision:
    """
    Decide whether a principal may exercise a permission.

    Precedence, first match wins: missing principal denies, the ADMIN role
    label allows, the ALL_ACCESS sentinel allows, a matching permission
    allows, anything else denies. Comparisons are exact-match.

    Args:
        principal: Decoded principal, or None when the request is unauthenticated
        required_permission: Permission id required by the operation

    Returns:
        AccessDecision carrying the outcome and its reason
    """
    if principal is None:
        return AccessDecision(False, DecisionReason.NOT_AUTHENTICATED)

    if principal.role_label == ADMIN_ROLE_LABEL:
        return AccessDecision(True, DecisionReason.ADMIN_ROLE)

    if ALL_ACCESS in principal.permissions:
        return AccessDecision(True, DecisionReason.ALL_ACCESS)

    if required_permission in principal.permissions:
        return AccessDecision(True, DecisionReason.GRANTED)

    return AccessDecision(False, DecisionReason.INSUFFICIENT_PERMISSIONS)


def has_permission(principal: Optional[Principal], required_permission: str) -> bool:
    """Boolean shorthand for ``authorize``."""
    return authorize(principal, required_permission).allowed


def permitted_catalog(principal: Optional[Principal]) -> List[str]:
    """Catalog ids the principal can exercise, in catalog order."""
    return [pid for pid in all_permission_ids() if has_permission(principal, pid)]
