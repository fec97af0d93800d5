"""
Async client for the OpsDesk access API.

Request-issuing components hold an explicit ``ApiSession`` instead of a
process-wide token. ``OpsDeskClient`` routes every response through one
handler, which clears the session when the server rejects its token.
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
import structlog

from opsdesk.core.access import Principal, authorize

logger = structlog.get_logger(__name__)


class ApiError(Exception):
    """Base exception for API client errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.payload = payload or {}


class SessionExpiredError(ApiError):
    """Raised on 401; the session has already been cleared."""

    def __init__(self, message: str, code: Optional[str] = None, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=401, code=code, payload=payload)
        self.expired = code == "TOKEN_EXPIRED"


class AccessDeniedError(ApiError):
    """Raised on 403."""

    def __init__(self, message: str, code: Optional[str] = None, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=403, code=code, payload=payload)


class ApiSession:
    """Token and principal claims for one signed-in user."""

    def __init__(self):
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def principal(self) -> Optional[Principal]:
        """Principal built from the stored login payload, if signed in."""
        if not self.is_authenticated or not self.user:
            return None
        return Principal(
            user_id=str(self.user.get("id")),
            role_label=self.user.get("role") or "",
            permissions=frozenset(self.user.get("permissions") or []),
            username=self.user.get("username"),
        )

    def populate(self, login_payload: Dict[str, Any]) -> None:
        """
        Store the token and user from a login response.

        Args:
            login_payload: Body of a successful ``POST /auth/login``
        """
        self.token = login_payload["token"]
        self.user = dict(login_payload.get("user") or {})

    def clear(self) -> None:
        self.token = None
        self.user = None

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def has_permission(self, permission_id: str) -> bool:
        """Client-side check using the same rules the server applies."""
        return authorize(self.principal, permission_id).allowed


class OpsDeskClient:
    """
    Async client for the OpsDesk access API.

    No retry policy: every call is issued once and its failure surfaces to
    the caller.

    Example:
        ```python
        async with OpsDeskClient("http://localhost:8000/api/v1") as client:
            await client.login("admin@example.com", "secret-password")
            catalog = await client.list_permissions()
        ```
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[ApiSession] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, including the version prefix
            session: Session to read the token from and update on login
            transport: Optional httpx transport (used by tests)
            timeout: Request timeout in seconds
        """
        self.session = session or ApiSession()
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self) -> "OpsDeskClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        is_login: bool = False,
    ) -> Any:
        headers = {} if is_login else self.session.auth_headers()
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.RequestError as e:
            logger.warning("api_request_failed", method=method, path=path, error=str(e))
            raise ApiError(f"Request to {path} failed: {e}") from e

        return self._handle_response(response, is_login=is_login)

    def _handle_response(self, response: httpx.Response, is_login: bool = False) -> Any:
        """
        Central response handler.

        Raises:
            SessionExpiredError: On 401 outside of login; the session is cleared first
            AccessDeniedError: On 403
            ApiError: On any other error status
        """
        if response.status_code == 204:
            return None

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict) and response.is_error:
            payload = {}

        if not response.is_error:
            return payload

        message = payload.get("message") or response.reason_phrase
        code = payload.get("code")

        if response.status_code == 401 and not is_login:
            self.session.clear()
            logger.info("api_session_cleared", code=code)
            raise SessionExpiredError(message, code=code, payload=payload)

        if response.status_code == 403:
            raise AccessDeniedError(message, code=code, payload=payload)

        raise ApiError(message, status_code=response.status_code, code=code, payload=payload)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Log in and populate the session.

        Raises:
            ApiError: If the credentials are rejected
        """
        payload = await self._request(
            "POST", "/auth/login", json={"email": email, "password": password}, is_login=True
        )
        self.session.populate(payload)
        return payload

    def logout(self) -> None:
        """Forget the token. Tokens are stateless, so the server is not called."""
        self.session.clear()

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/me")

    async def list_permissions(self) -> Dict[str, Any]:
        return await self._request("GET", "/permissions")

    async def list_roles(self) -> List[Dict[str, Any]]:
        payload = await self._request("GET", "/roles")
        return payload.get("data", [])

    async def get_access(self, employee_id: int) -> Dict[str, Any]:
        return await self._request("GET", f"/employees/{employee_id}/access")

    async def grant_access(
        self,
        employee_id: int,
        email: str,
        password: Optional[str] = None,
        role_id: Optional[UUID] = None,
        role_label: Optional[str] = None,
        permissions: Optional[List[str]] = None,
        username: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Grant or update an employee's access. Omitted fields are not sent."""
        body: Dict[str, Any] = {"email": email}
        optional = {
            "password": password,
            "role_id": str(role_id) if role_id is not None else None,
            "role_label": role_label,
            "permissions": permissions,
            "username": username,
            "expected_version": expected_version,
        }
        body.update({k: v for k, v in optional.items() if v is not None})
        return await self._request("PUT", f"/employees/{employee_id}/access", json=body)
