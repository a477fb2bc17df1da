"""Profile endpoints for the session principal."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.api.deps import get_current_principal
from auditdesk.core.authorization import PrincipalContext
from auditdesk.core.database import get_db
from auditdesk.models.principal import Principal
from auditdesk.schemas.principal import MembershipSummary, MeResponse, ProfileUpdateRequest
from auditdesk.services.org_service import OrganizationService
from auditdesk.services.principal_service import PrincipalService

router = APIRouter()


async def _me_response(db: AsyncSession, actor: PrincipalContext, principal: Principal) -> MeResponse:
    organizations = await OrganizationService(db).list_mine(actor)
    return MeResponse(
        id=principal.id,
        email=principal.email,
        full_name=principal.full_name,
        avatar_url=principal.avatar_url,
        is_super_admin=bool(principal.is_super_admin),
        created_at=principal.created_at,
        memberships=[
            MembershipSummary(org_id=org.id, org_name=org.name, role=role)
            for org, role in organizations
        ],
    )


@router.get("", response_model=MeResponse)
async def get_me(
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Get the caller's profile, super-admin flag and memberships."""
    principal = await PrincipalService(db).get_profile(current_principal)
    return await _me_response(db, current_principal, principal)


@router.patch("", response_model=MeResponse)
async def update_me(
    update_data: ProfileUpdateRequest,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Update the caller's own display name or avatar."""
    principal = await PrincipalService(db).update_profile(
        current_principal,
        full_name=update_data.full_name,
        avatar_url=update_data.avatar_url,
    )
    return await _me_response(db, current_principal, principal)
