"""Authentication endpoints for registration and login."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.config import get_settings
from auditdesk.core.database import get_db
from auditdesk.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from auditdesk.schemas.principal import PrincipalResponse
from auditdesk.services.auth_service import AuthService

settings = get_settings()
router = APIRouter()


@router.post("/register", response_model=PrincipalResponse, status_code=status.HTTP_201_CREATED)
async def register(
    register_data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Register a new account.

    New accounts hold no memberships and are never super admins; the first
    super admin is established through /admin-setup.

    Args:
        register_data: Email, password and optional display name
        db: Database session

    Returns:
        Created principal

    Raises:
        HTTPException: 400 if the password does not meet the policy
        HTTPException: 409 if the email is already registered
    """
    auth_service = AuthService(db)
    principal = await auth_service.register(
        email=register_data.email,
        password=register_data.password,
        full_name=register_data.full_name,
    )
    return PrincipalResponse.model_validate(principal)


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """User login endpoint.

    Args:
        login_data: Login credentials (email, password)
        db: Database session

    Returns:
        TokenResponse with a bearer access token

    Raises:
        HTTPException: 401 if credentials are invalid
    """
    auth_service = AuthService(db)
    access_token, _ = await auth_service.login(
        email=login_data.email, password=login_data.password
    )

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )
