"""Organization API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.api.deps import get_current_principal
from auditdesk.core.authorization import PrincipalContext
from auditdesk.core.database import get_db
from auditdesk.schemas.organization import (
    CreateOrganizationRequest,
    MyOrganizationResponse,
    OrganizationResponse,
    OrganizationSummaryResponse,
    OrganizationUpdateRequest,
)
from auditdesk.services.org_service import OrganizationService

router = APIRouter()


@router.get(
    "",
    response_model=list[MyOrganizationResponse],
    summary="List my organizations",
    description="Organizations the caller is a member of, with the caller's role in each.",
)
async def list_my_organizations(
    db: AsyncSession = Depends(get_db),
    current_principal: PrincipalContext = Depends(get_current_principal),
) -> list[MyOrganizationResponse]:
    service = OrganizationService(db)
    rows = await service.list_mine(current_principal)
    return [
        MyOrganizationResponse(
            **OrganizationResponse.model_validate(org).model_dump(),
            role=role,
        )
        for org, role in rows
    ]


# Declared before "/{org_id}" so "all" is not parsed as an organization ID.
@router.get(
    "/all",
    response_model=list[OrganizationResponse],
    summary="List all organizations (super admin only)",
)
async def list_all_organizations(
    db: AsyncSession = Depends(get_db),
    current_principal: PrincipalContext = Depends(get_current_principal),
) -> list[OrganizationResponse]:
    service = OrganizationService(db)
    organizations = await service.list_all(current_principal)
    return [OrganizationResponse.model_validate(org) for org in organizations]


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create organization (super admin only)",
    description="Creates an organization with the caller as its founding admin.",
)
async def create_organization(
    request: CreateOrganizationRequest,
    db: AsyncSession = Depends(get_db),
    current_principal: PrincipalContext = Depends(get_current_principal),
) -> OrganizationResponse:
    """Create an organization.

    The organization and the caller's admin membership are written in one
    transaction.

    Args:
        request: Organization creation request
        db: Database session
        current_principal: Authenticated super admin

    Returns:
        Created organization details

    Raises:
        HTTPException: 403 if the caller is not a super admin
        HTTPException: 422 if validation fails
    """
    service = OrganizationService(db)
    organization = await service.create(current_principal, name=request.name)
    return OrganizationResponse.model_validate(organization)


@router.get(
    "/{org_id}",
    response_model=OrganizationResponse,
    summary="Get organization details",
    description="Members of the organization and super admins only.",
)
async def get_organization(
    org_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_principal: PrincipalContext = Depends(get_current_principal),
) -> OrganizationResponse:
    """Get organization by ID.

    Args:
        org_id: Organization ID
        db: Database session
        current_principal: Authenticated principal

    Returns:
        Organization details

    Raises:
        HTTPException: 403 if the caller has no access (existing or not)
        HTTPException: 404 if organization not found
        HTTPException: 401 if not authenticated
    """
    service = OrganizationService(db)
    organization = await service.get(current_principal, org_id)
    return OrganizationResponse.model_validate(organization)


@router.get(
    "/{org_id}/summary",
    response_model=OrganizationSummaryResponse,
    summary="Get dashboard counts",
    description="Audit, finding and document counts. Members and super admins only.",
)
async def get_organization_summary(
    org_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_principal: PrincipalContext = Depends(get_current_principal),
) -> OrganizationSummaryResponse:
    service = OrganizationService(db)
    counts = await service.summarize(current_principal, org_id)
    return OrganizationSummaryResponse(**counts)


@router.patch(
    "/{org_id}",
    response_model=OrganizationResponse,
    summary="Rename organization (org admin only)",
)
async def update_organization(
    org_id: UUID,
    request: OrganizationUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_principal: PrincipalContext = Depends(get_current_principal),
) -> OrganizationResponse:
    """Rename an organization.

    Only organization admins and super admins may rename. Creates an
    activity entry for the change.

    Raises:
        HTTPException: 404 if organization not found
        HTTPException: 403 if caller is not an admin of the organization
        HTTPException: 401 if not authenticated
    """
    service = OrganizationService(db)
    organization = await service.rename(current_principal, org_id, request.name)
    return OrganizationResponse.model_validate(organization)


@router.delete(
    "/{org_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete organization (super admin only)",
    description="Deletes the organization with all memberships, audit plans and findings.",
)
async def delete_organization(
    org_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_principal: PrincipalContext = Depends(get_current_principal),
) -> Response:
    service = OrganizationService(db)
    await service.delete(current_principal, org_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
