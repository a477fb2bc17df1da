"""Platform user administration endpoints (super admins only)."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.api.deps import get_current_principal
from auditdesk.core.authorization import PrincipalContext
from auditdesk.core.database import get_db
from auditdesk.schemas.principal import PrincipalResponse, SuperAdminUpdateRequest
from auditdesk.services.principal_service import PrincipalService

router = APIRouter()


@router.get("", response_model=list[PrincipalResponse])
async def list_users(
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List every registered principal.

    Args:
        current_principal: Current authenticated principal
        db: Database session

    Returns:
        All principals on the platform

    Raises:
        403: If the caller is not a super admin
    """
    principals = await PrincipalService(db).list_all(current_principal)
    return [PrincipalResponse.model_validate(p) for p in principals]


@router.patch("/{principal_id}/super-admin", response_model=PrincipalResponse)
async def set_super_admin(
    principal_id: UUID,
    update_data: SuperAdminUpdateRequest,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Grant or revoke another principal's super-admin flag.

    Raises:
        403: If the caller is not a super admin, or targets itself
        404: If the target principal does not exist
    """
    principal = await PrincipalService(db).set_super_admin(
        current_principal, principal_id, update_data.is_super_admin
    )
    return PrincipalResponse.model_validate(principal)
