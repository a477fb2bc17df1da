"""FastAPI dependencies for authentication."""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.authorization import PrincipalContext
from auditdesk.core.database import get_db
from auditdesk.core.errors import UnauthenticatedError
from auditdesk.services.auth_service import principal_id_from_token
from auditdesk.services.principal_service import PrincipalService

# HTTP Bearer token security scheme; missing credentials are reported as 401
security = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> PrincipalContext:
    """Resolve the session principal from the bearer token.

    The principal row and its memberships are read fresh on every request,
    so role and flag changes apply immediately.

    Args:
        credentials: HTTP Bearer credentials from request
        db: Database session

    Returns:
        PrincipalContext for the authorization evaluator

    Raises:
        UnauthenticatedError: 401 if the token is missing, invalid, or the
            principal no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()

    principal_id = principal_id_from_token(credentials.credentials)
    return await PrincipalService(db).build_context(principal_id)
