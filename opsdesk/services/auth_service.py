"""
Authentication service: login, token issuance and token verification.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from opsdesk.core.access import Principal
from opsdesk.core.config import settings
from opsdesk.core.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    NoCredentialError,
    TokenExpiredError,
)
from opsdesk.core.logging import get_logger
from opsdesk.core.security import create_jwt_token, decode_jwt_token, verify_password
from opsdesk.models.user import User
from opsdesk.repositories.user_repository import UserRepository


logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_in: int


class AuthService:
    """Service for authentication and token operations."""

    def __init__(self, user_repository: UserRepository):
        """
        Initialize auth service.

        Args:
            user_repository: User repository instance
        """
        self.user_repo = user_repository

    async def authenticate(self, email: str, password: str) -> User:
        """
        Authenticate a user by email (or username) and password.

        Args:
            email: Email address, or username for accounts without one
            password: Plain text password

        Returns:
            Authenticated user

        Raises:
            InvalidCredentialsError: If the account is unknown, inactive or the password is wrong
        """
        user = await self.user_repo.get_by_email(email)
        if not user:
            user = await self.user_repo.get_by_username(email)

        # Same error for every failure so accounts cannot be enumerated
        if not user or not verify_password(password, user.hashed_password):
            logger.info("login_failed", reason="bad_credentials")
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.info("login_failed", reason="inactive", user_id=user.id)
            raise InvalidCredentialsError()

        await self.user_repo.update_last_login(user.id)
        logger.info("login_succeeded", user_id=user.id)
        return user

    def issue_token(self, user: User, issued_at: Optional[datetime] = None) -> IssuedToken:
        """
        Issue a signed access token carrying the user's permission snapshot.

        Later edits to the user's access take effect only when a new token
        is issued.

        Args:
            user: User to issue the token for
            issued_at: Issuance instant (defaults to now)

        Returns:
            IssuedToken with the encoded JWT and its lifetime in seconds
        """
        claims = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role_label,
            "permissions": list(user.permissions or []),
            "type": ACCESS_TOKEN_TYPE,
        }
        expires_delta = timedelta(minutes=settings.jwt_expiration_minutes)
        token = create_jwt_token(claims, expires_delta, issued_at=issued_at)
        return IssuedToken(access_token=token, expires_in=settings.jwt_expiration_seconds)

    def verify_token(self, token: Optional[str]) -> Principal:
        """
        Verify a bearer token and decode its principal.

        No database lookup happens here: the principal is exactly what was
        signed at issuance.

        Args:
            token: Raw JWT string, or None when the request carried none

        Returns:
            Principal decoded from the token

        Raises:
            NoCredentialError: If no token was presented
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is malformed, forged or carries bad claims
        """
        if not token:
            raise NoCredentialError()

        try:
            payload = decode_jwt_token(token)
        except TokenExpiredError:
            logger.info("token_verification_failed", reason="expired")
            raise
        except InvalidTokenError:
            logger.info("token_verification_failed", reason="invalid")
            raise

        return self.principal_from_claims(payload)

    @staticmethod
    def principal_from_claims(payload: Dict[str, Any]) -> Principal:
        """
        Build a Principal from decoded claims.

        Raises:
            InvalidTokenError: If required claims are missing or malformed
        """
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError()

        user_id = payload.get("sub")
        role_label = payload.get("role")
        permissions = payload.get("permissions", [])
        if not user_id or not isinstance(role_label, str):
            raise InvalidTokenError()
        if not isinstance(permissions, list) or not all(isinstance(p, str) for p in permissions):
            raise InvalidTokenError()

        return Principal(
            user_id=str(user_id),
            role_label=role_label,
            permissions=frozenset(permissions),
            username=payload.get("username"),
        )
