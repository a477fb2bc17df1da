"""Local identity provider: registration, login and session resolution.

This module only issues identities. It never grants roles or the
super-admin flag; those come from memberships and the bootstrap claim.
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.errors import ConflictError, UnauthenticatedError
from auditdesk.core.security import (
    PasswordValidationError,
    create_access_token,
    decode_token,
    hash_password,
    validate_password,
    verify_password,
)
from auditdesk.core.structured_logging import log_json
from auditdesk.models.principal import Principal
from auditdesk.services.membership_service import normalize_email
from auditdesk.services.tenant_store import TenantStore

logger = logging.getLogger(__name__)


def principal_id_from_token(token: str) -> UUID:
    """Extract the principal id from a session token.

    Raises:
        UnauthenticatedError: token invalid, expired or malformed
    """
    payload = decode_token(token)
    if not payload:
        raise UnauthenticatedError("Invalid or expired token")

    subject = payload.get("sub")
    if not subject:
        raise UnauthenticatedError("Invalid token payload")

    try:
        return UUID(str(subject))
    except ValueError:
        raise UnauthenticatedError("Invalid token payload") from None


class AuthService:
    """Service for account registration and password login."""

    def __init__(self, db: AsyncSession):
        """Initialize auth service.

        Args:
            db: Database session
        """
        self.db = db
        self.store = TenantStore(db)

    async def register(self, email: str, password: str, full_name: str | None = None) -> Principal:
        """Register a new principal.

        Args:
            email: Email address (stored lower-cased)
            password: Plain text password
            full_name: Optional display name

        Returns:
            Created Principal instance (never a super admin)

        Raises:
            HTTPException: 400 if the password is too weak
            ConflictError: email already registered
        """
        try:
            validate_password(password)
        except PasswordValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e)
            ) from None

        email = normalize_email(email)
        if await self.store.find_principal_by_login_email(email) is not None:
            raise ConflictError("An account with this email already exists")

        principal = Principal(
            email=email,
            full_name=full_name,
            password_hash=hash_password(password),
            is_super_admin=False,
        )
        await self.store.add_principal(principal)
        await self.store.commit()
        log_json(logger, logging.INFO, "principal_registered", principal_id=principal.id)
        return principal

    async def login(self, email: str, password: str) -> tuple[str, Principal]:
        """Authenticate with email and password.

        Returns:
            Tuple of (access_token, principal)

        Raises:
            UnauthenticatedError: unknown email or wrong password (same message)
        """
        principal = await self.store.find_principal_by_login_email(normalize_email(email))

        if (
            principal is None
            or not principal.password_hash
            or not verify_password(password, principal.password_hash)
        ):
            # Don't reveal whether the account exists
            raise UnauthenticatedError("Invalid email or password")

        return self.issue_token(principal), principal

    @staticmethod
    def issue_token(principal: Principal) -> str:
        return create_access_token({"sub": str(principal.id), "email": principal.email})

