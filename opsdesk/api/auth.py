"""
FastAPI router for authentication endpoints.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from opsdesk.core.access import Principal, permitted_catalog
from opsdesk.core.dependencies import get_auth_service, get_current_principal
from opsdesk.database import get_db
from opsdesk.schemas.auth import LoginRequest, LoginResponse, PrincipalResponse, UserResponse
from opsdesk.services.auth_service import AuthService


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Login with email and password",
    description="Authenticate and receive a signed access token carrying the user's permission snapshot."
)
async def login(
    login_request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """Login with email (or username) and password."""
    user = await auth_service.authenticate(login_request.email, login_request.password)
    issued = auth_service.issue_token(user)

    # Persist last_login
    await db.commit()

    return LoginResponse(
        token=issued.access_token,
        expires_in=issued.expires_in,
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/me",
    response_model=PrincipalResponse,
    summary="Get current principal",
    description="Return the principal decoded from the bearer token and the catalog ids it can exercise."
)
async def get_me(
    principal: Principal = Depends(get_current_principal)
) -> PrincipalResponse:
    return PrincipalResponse.from_principal(principal, permitted_catalog(principal))
