"""
Security utilities for password hashing and JWT token management.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from passlib.context import CryptContext
from jose import jwt, JWTError
from jose.exceptions import ExpiredSignatureError

from opsdesk.core.config import settings
from opsdesk.core.exceptions import TokenExpiredError, InvalidTokenError


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against its hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to verify against

    Returns:
        True if password matches, False otherwise (including unusable hashes)
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Placeholder or corrupted hash values
        return False


def create_jwt_token(
    data: Dict[str, Any],
    expires_delta: timedelta,
    issued_at: Optional[datetime] = None
) -> str:
    """
    Create a JWT token with the given data and expiration.

    Args:
        data: Dictionary of claims to encode in the token
        expires_delta: Time delta for token expiration
        issued_at: Issuance instant (defaults to now, UTC)

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    issued_at = issued_at or datetime.now(timezone.utc)
    to_encode.update({
        "exp": issued_at + expires_delta,
        "iat": issued_at
    })
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def decode_jwt_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string

    Returns:
        Dictionary of token claims

    Raises:
        TokenExpiredError: If token has expired
        InvalidTokenError: If token is invalid
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()
