import pytest

from opsdesk.core.access import (
    AccessDecision,
    DecisionReason,
    Principal,
    authorize,
    has_permission,
    permitted_catalog,
)
from opsdesk.core.permissions import ALL_ACCESS, all_permission_ids


def principal(role_label="USER", *permissions):
    return Principal(user_id="u-1", role_label=role_label, permissions=frozenset(permissions))


@pytest.mark.parametrize("required", list(all_permission_ids()) + ["not_in_catalog"])
def test_admin_role_allows_everything(required):
    decision = authorize(principal("ADMIN"), required)
    assert decision.allowed
    assert decision.reason is DecisionReason.ADMIN_ROLE


@pytest.mark.parametrize("required", ["view_finance", "delete_employee", "anything"])
def test_all_access_sentinel_allows_everything(required):
    decision = authorize(principal("Contractor", ALL_ACCESS), required)
    assert decision.allowed
    assert decision.reason is DecisionReason.ALL_ACCESS


def test_granted_iff_permission_present():
    p = principal("SUPERVISOR", "view_dashboard", "manage_jobs")
    for pid in all_permission_ids():
        assert has_permission(p, pid) == (pid in p.permissions)


def test_granted_reason():
    assert authorize(principal("SUPERVISOR", "manage_jobs"), "manage_jobs") == AccessDecision(
        True, DecisionReason.GRANTED
    )


def test_missing_principal_denied():
    decision = authorize(None, "view_dashboard")
    assert not decision
    assert decision.reason is DecisionReason.NOT_AUTHENTICATED
    assert decision.reason.value == "not authenticated"


def test_insufficient_permissions_reason():
    decision = authorize(principal("SUPERVISOR", "view_dashboard"), "view_finance")
    assert not decision.allowed
    assert decision.reason.value == "insufficient permissions"


def test_comparisons_are_case_sensitive():
    assert not has_permission(principal("admin"), "view_finance")
    assert not has_permission(principal("USER", "VIEW_FINANCE"), "view_finance")
    assert not has_permission(principal("USER", "all_access"), "view_finance")


def test_empty_permissions_denied():
    assert not has_permission(principal("USER"), "view_dashboard")


def test_permitted_catalog_follows_catalog_order():
    p = principal("SUPERVISOR", "manage_jobs", "view_dashboard")
    assert permitted_catalog(p) == ["view_dashboard", "manage_jobs"]
    assert permitted_catalog(principal("ADMIN")) == list(all_permission_ids())
    assert permitted_catalog(None) == []
