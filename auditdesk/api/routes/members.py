"""Organization membership endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.api.deps import get_current_principal
from auditdesk.core.authorization import PrincipalContext
from auditdesk.core.database import get_db
from auditdesk.models.membership import Membership
from auditdesk.models.principal import Principal
from auditdesk.schemas.membership import AddMemberRequest, ChangeRoleRequest, MemberResponse
from auditdesk.services.membership_service import MembershipService

router = APIRouter()


def _member_response(membership: Membership, principal: Principal) -> MemberResponse:
    return MemberResponse(
        principal_id=principal.id,
        org_id=membership.org_id,
        email=principal.email,
        full_name=principal.full_name,
        role=membership.role,
        invited_by=membership.invited_by,
        created_at=membership.created_at,
    )


@router.get("/{org_id}/members", response_model=list[MemberResponse])
async def list_members(
    org_id: UUID,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List an organization's members with their email and name.

    Any member of the organization (or a super admin) can list members.
    """
    rows = await MembershipService(db).list_members(current_principal, org_id)
    return [_member_response(membership, principal) for membership, principal in rows]


@router.post(
    "/{org_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    org_id: UUID,
    request: AddMemberRequest,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Add a registered user to the organization by email.

    Args:
        org_id: Organization ID
        request: Email of the user to add and the role to grant
        current_principal: Org admin or super admin
        db: Database session

    Returns:
        The new membership

    Raises:
        403: caller is neither an admin of the organization nor a super admin
        404: no registered user with that email
        409: user is already a member
    """
    membership, principal = await MembershipService(db).add_member(
        current_principal, org_id, request.email, request.role
    )
    return _member_response(membership, principal)


@router.patch("/{org_id}/members/{principal_id}", response_model=MemberResponse)
async def change_member_role(
    org_id: UUID,
    principal_id: UUID,
    request: ChangeRoleRequest,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Change a member's role. Admins may demote themselves."""
    membership, principal = await MembershipService(db).change_role(
        current_principal, org_id, principal_id, request.role
    )
    return _member_response(membership, principal)


@router.delete("/{org_id}/members/{principal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    org_id: UUID,
    principal_id: UUID,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await MembershipService(db).remove_member(current_principal, org_id, principal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
