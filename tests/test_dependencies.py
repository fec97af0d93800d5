import pytest

from opsdesk.core.access import Principal
from opsdesk.core.dependencies import get_token_from_header, require_permission
from opsdesk.core.exceptions import (
    AuthorizationError,
    InvalidTokenError,
    NoCredentialError,
    NotAuthenticatedError,
)


@pytest.mark.parametrize("header", [None, "", "   ", "Bearer", "bearer  "])
def test_missing_credential(header):
    with pytest.raises(NoCredentialError):
        get_token_from_header(header)


@pytest.mark.parametrize("header", ["Basic abc", "Token abc", "Bearer a b"])
def test_malformed_header(header):
    with pytest.raises(InvalidTokenError):
        get_token_from_header(header)


def test_bearer_scheme_is_case_insensitive():
    assert get_token_from_header("bearer abc.def.ghi") == "abc.def.ghi"


async def test_guard_allows_matching_permission():
    principal = Principal(user_id="u", role_label="SUPERVISOR", permissions=frozenset({"manage_jobs"}))
    assert await require_permission("manage_jobs")(principal) is principal


async def test_guard_denies_missing_permission():
    principal = Principal(user_id="u", role_label="SUPERVISOR", permissions=frozenset({"manage_jobs"}))
    with pytest.raises(AuthorizationError):
        await require_permission("manage_users")(principal)


async def test_guard_without_principal():
    with pytest.raises(NotAuthenticatedError):
        await require_permission("manage_users")(None)
