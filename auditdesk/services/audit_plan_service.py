"""Audit plan service for organization-scoped audit plans and findings."""
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.authorization import Action, PrincipalContext, authorize
from auditdesk.models.audit_finding import AuditFinding
from auditdesk.models.audit_plan import AuditPlan
from auditdesk.models.enums import ActivityAction
from auditdesk.services.activity_service import ActivityService
from auditdesk.services.tenant_store import TenantStore


def _apply_changes(entity: Any, changes: dict[str, Any]) -> dict[str, Any]:
    """Set changed attributes on ``entity`` and return a before/after diff."""
    diff: dict[str, Any] = {}
    for field, new_value in changes.items():
        old_value = getattr(entity, field)
        if old_value != new_value:
            setattr(entity, field, new_value)
            diff[field] = jsonable_encoder({"old": old_value, "new": new_value})
    return diff


class AuditPlanService:
    """Service for audit plans and their findings.

    Members read; only organization admins (or super admins) write.
    """

    def __init__(self, db: AsyncSession):
        """Initialize audit plan service.

        Args:
            db: Database session
        """
        self.db = db
        self.store = TenantStore(db)
        self.activity_service = ActivityService(db)

    # Plans

    async def list_plans(self, actor: PrincipalContext, org_id: UUID) -> list[AuditPlan]:
        grant = authorize(actor, Action.READ_ORG_RESOURCE, org_id=org_id)
        return await self.store.list_audit_plans(grant, org_id)

    async def get_plan(self, actor: PrincipalContext, org_id: UUID, plan_id: UUID) -> AuditPlan:
        grant = authorize(actor, Action.READ_ORG_RESOURCE, org_id=org_id)
        return await self.store.get_audit_plan(grant, org_id, plan_id)

    async def create_plan(
        self, actor: PrincipalContext, org_id: UUID, data: dict[str, Any]
    ) -> AuditPlan:
        """Create an audit plan.

        Args:
            actor: Principal creating the plan
            org_id: Organization ID
            data: Plan fields (title, iso_standard, description, status, dates)

        Returns:
            Created AuditPlan instance

        Raises:
            PermissionDeniedError: actor cannot write this organization's records
            NotFoundError: organization does not exist
        """
        grant = authorize(actor, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        await self.store.get_organization(grant, org_id)

        plan = await self.store.add_audit_plan(
            grant, AuditPlan(org_id=org_id, created_by=actor.id, **data)
        )

        await self.activity_service.log(
            action=ActivityAction.AUDIT_PLAN_CREATE,
            entity_type="audit_plan",
            entity_id=plan.id,
            org_id=org_id,
            actor_id=actor.id,
            diff_json={"title": plan.title},
        )

        await self.store.commit()
        return plan

    async def update_plan(
        self,
        actor: PrincipalContext,
        org_id: UUID,
        plan_id: UUID,
        changes: dict[str, Any],
    ) -> AuditPlan:
        grant = authorize(actor, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        plan = await self.store.get_audit_plan(grant, org_id, plan_id)

        start = changes.get("planned_start_date", plan.planned_start_date)
        end = changes.get("planned_end_date", plan.planned_end_date)
        if start and end and end < start:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="planned_end_date cannot be before planned_start_date",
            )

        diff = _apply_changes(plan, changes)
        await self.store.save_audit_plan(grant, plan)

        if diff:
            await self.activity_service.log(
                action=ActivityAction.AUDIT_PLAN_UPDATE,
                entity_type="audit_plan",
                entity_id=plan.id,
                org_id=org_id,
                actor_id=actor.id,
                diff_json=diff,
            )

        await self.store.commit()
        return plan

    async def delete_plan(self, actor: PrincipalContext, org_id: UUID, plan_id: UUID) -> None:
        """Delete an audit plan and all of its findings."""
        grant = authorize(actor, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        plan = await self.store.get_audit_plan(grant, org_id, plan_id)
        await self.store.delete_audit_plan(grant, plan)

        await self.activity_service.log(
            action=ActivityAction.AUDIT_PLAN_DELETE,
            entity_type="audit_plan",
            entity_id=plan_id,
            org_id=org_id,
            actor_id=actor.id,
            diff_json={"title": plan.title},
        )

        await self.store.commit()

    # Findings

    async def list_findings(
        self, actor: PrincipalContext, org_id: UUID, plan_id: UUID
    ) -> list[AuditFinding]:
        grant = authorize(actor, Action.READ_ORG_RESOURCE, org_id=org_id)
        await self.store.get_audit_plan(grant, org_id, plan_id)
        return await self.store.list_findings(grant, org_id, plan_id)

    async def create_finding(
        self,
        actor: PrincipalContext,
        org_id: UUID,
        plan_id: UUID,
        data: dict[str, Any],
    ) -> AuditFinding:
        grant = authorize(actor, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        plan = await self.store.get_audit_plan(grant, org_id, plan_id)

        finding = await self.store.add_finding(
            grant, AuditFinding(org_id=org_id, plan_id=plan.id, **data)
        )

        await self.activity_service.log(
            action=ActivityAction.FINDING_CREATE,
            entity_type="finding",
            entity_id=finding.id,
            org_id=org_id,
            actor_id=actor.id,
            diff_json={"clause": finding.clause, "severity": finding.severity.value},
        )

        await self.store.commit()
        return finding

    async def update_finding(
        self,
        actor: PrincipalContext,
        org_id: UUID,
        plan_id: UUID,
        finding_id: UUID,
        changes: dict[str, Any],
    ) -> AuditFinding:
        grant = authorize(actor, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        finding = await self.store.get_finding(grant, org_id, plan_id, finding_id)

        diff = _apply_changes(finding, changes)
        await self.store.save_finding(grant, finding)

        if diff:
            await self.activity_service.log(
                action=ActivityAction.FINDING_UPDATE,
                entity_type="finding",
                entity_id=finding.id,
                org_id=org_id,
                actor_id=actor.id,
                diff_json=diff,
            )

        await self.store.commit()
        return finding

    async def delete_finding(
        self,
        actor: PrincipalContext,
        org_id: UUID,
        plan_id: UUID,
        finding_id: UUID,
    ) -> None:
        grant = authorize(actor, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        finding = await self.store.get_finding(grant, org_id, plan_id, finding_id)
        await self.store.delete_finding(grant, finding)

        await self.activity_service.log(
            action=ActivityAction.FINDING_DELETE,
            entity_type="finding",
            entity_id=finding_id,
            org_id=org_id,
            actor_id=actor.id,
        )

        await self.store.commit()
