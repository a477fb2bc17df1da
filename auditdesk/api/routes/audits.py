"""Audit plan and finding endpoints, scoped to one organization."""
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.api.deps import get_current_principal
from auditdesk.core.authorization import PrincipalContext
from auditdesk.core.database import get_db
from auditdesk.schemas.audit import (
    AuditPlanCreateRequest,
    AuditPlanResponse,
    AuditPlanUpdateRequest,
    FindingCreateRequest,
    FindingResponse,
    FindingUpdateRequest,
)
from auditdesk.services.audit_plan_service import AuditPlanService

router = APIRouter()


@router.get("/{org_id}/audits", response_model=list[AuditPlanResponse])
async def list_audit_plans(
    org_id: UUID,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List the organization's audit plans, newest first."""
    plans = await AuditPlanService(db).list_plans(current_principal, org_id)
    return [AuditPlanResponse.model_validate(plan) for plan in plans]


@router.post(
    "/{org_id}/audits",
    response_model=AuditPlanResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_audit_plan(
    org_id: UUID,
    request: AuditPlanCreateRequest,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Create an audit plan.

    Args:
        org_id: Organization ID
        request: Plan details
        current_principal: Org admin or super admin
        db: Database session

    Returns:
        Created audit plan

    Raises:
        403: caller cannot write this organization's records
        404: organization not found
    """
    plan = await AuditPlanService(db).create_plan(
        current_principal, org_id, request.model_dump()
    )
    return AuditPlanResponse.model_validate(plan)


@router.get("/{org_id}/audits/{plan_id}", response_model=AuditPlanResponse)
async def get_audit_plan(
    org_id: UUID,
    plan_id: UUID,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    plan = await AuditPlanService(db).get_plan(current_principal, org_id, plan_id)
    return AuditPlanResponse.model_validate(plan)


@router.patch("/{org_id}/audits/{plan_id}", response_model=AuditPlanResponse)
async def update_audit_plan(
    org_id: UUID,
    plan_id: UUID,
    request: AuditPlanUpdateRequest,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Partially update an audit plan. Only fields present in the body change."""
    plan = await AuditPlanService(db).update_plan(
        current_principal, org_id, plan_id, request.model_dump(exclude_unset=True)
    )
    return AuditPlanResponse.model_validate(plan)


@router.delete("/{org_id}/audits/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_audit_plan(
    org_id: UUID,
    plan_id: UUID,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete an audit plan together with its findings."""
    await AuditPlanService(db).delete_plan(current_principal, org_id, plan_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{org_id}/audits/{plan_id}/findings", response_model=list[FindingResponse])
async def list_findings(
    org_id: UUID,
    plan_id: UUID,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    findings = await AuditPlanService(db).list_findings(current_principal, org_id, plan_id)
    return [FindingResponse.model_validate(finding) for finding in findings]


@router.post(
    "/{org_id}/audits/{plan_id}/findings",
    response_model=FindingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_finding(
    org_id: UUID,
    plan_id: UUID,
    request: FindingCreateRequest,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    finding = await AuditPlanService(db).create_finding(
        current_principal, org_id, plan_id, request.model_dump()
    )
    return FindingResponse.model_validate(finding)


@router.patch(
    "/{org_id}/audits/{plan_id}/findings/{finding_id}",
    response_model=FindingResponse,
)
async def update_finding(
    org_id: UUID,
    plan_id: UUID,
    finding_id: UUID,
    request: FindingUpdateRequest,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    finding = await AuditPlanService(db).update_finding(
        current_principal,
        org_id,
        plan_id,
        finding_id,
        request.model_dump(exclude_unset=True),
    )
    return FindingResponse.model_validate(finding)


@router.delete(
    "/{org_id}/audits/{plan_id}/findings/{finding_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_finding(
    org_id: UUID,
    plan_id: UUID,
    finding_id: UUID,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await AuditPlanService(db).delete_finding(current_principal, org_id, plan_id, finding_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
