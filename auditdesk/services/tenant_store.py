"""Tenant store: the only path from services to tenant data.

Every method that reads or writes organization, membership, resource or
super-admin data takes a ``Grant`` from ``auditdesk.core.authorization`` and
checks that it was issued for that exact action (and organization). The
methods that run without a grant are the ones the evaluator itself depends
on: resolving the session principal and its memberships, the identity
provider's email lookup and registration insert, and the bootstrap
existence check and promotion.

Multi-row writes are flushed into the caller's transaction; callers commit
once, so nothing is ever partially committed.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from auditdesk.core.authorization import Action, Grant
from auditdesk.core.errors import ConflictError, NotFoundError, PermissionDeniedError, TransientStoreError
from auditdesk.core.structured_logging import log_json
from auditdesk.models.activity_event import ActivityEvent
from auditdesk.models.audit_finding import AuditFinding
from auditdesk.models.audit_plan import AuditPlan
from auditdesk.models.base import utcnow
from auditdesk.models.document import Document
from auditdesk.models.enums import ActivityAction, AuditStatus, FindingSeverity, OrgRole
from auditdesk.models.membership import Membership
from auditdesk.models.organization import Organization
from auditdesk.models.principal import Principal

logger = logging.getLogger(__name__)

# Key for pg_advisory_xact_lock; shared by every process claiming bootstrap.
BOOTSTRAP_LOCK_KEY = 7_346_110_201

ORG_SCOPED_ACTIONS = (
    Action.READ_ORG_RESOURCE,
    Action.WRITE_ORG_RESOURCE,
    Action.RENAME_ORG,
    Action.DELETE_ORG,
    Action.ADD_MEMBER,
    Action.REMOVE_MEMBER,
    Action.CHANGE_ROLE,
    Action.READ_ORG_ACTIVITY,
)

_claim_locks: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock] = (
    weakref.WeakKeyDictionary()
)


def _claim_lock() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    lock = _claim_locks.get(loop)
    if lock is None:
        lock = _claim_locks[loop] = asyncio.Lock()
    return lock


class TenantStore:
    """Grant-checked access to tenant rows over one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Session plumbing
    # ------------------------------------------------------------------

    async def _execute(self, statement, params: dict | None = None):
        try:
            return await self.db.execute(statement, params)
        except (OperationalError, InterfaceError) as exc:
            log_json(logger, logging.ERROR, "store_unavailable", error=str(exc))
            raise TransientStoreError() from exc

    async def flush(self) -> None:
        try:
            await self.db.flush()
        except (OperationalError, InterfaceError) as exc:
            log_json(logger, logging.ERROR, "store_unavailable", error=str(exc))
            raise TransientStoreError() from exc

    async def commit(self) -> None:
        try:
            await self.db.commit()
        except (OperationalError, InterfaceError) as exc:
            log_json(logger, logging.ERROR, "store_unavailable", error=str(exc))
            raise TransientStoreError() from exc

    # ------------------------------------------------------------------
    # Session principal (no grant: the evaluator needs these to decide)
    # ------------------------------------------------------------------

    async def get_principal(self, principal_id: UUID) -> Principal | None:
        """Load a principal, always re-reading the row from the database."""
        result = await self._execute(
            select(Principal)
            .where(Principal.id == principal_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def load_memberships(self, principal_id: UUID) -> dict[UUID, OrgRole]:
        result = await self._execute(
            select(Membership.org_id, Membership.role).where(
                Membership.principal_id == principal_id
            )
        )
        return {org_id: OrgRole(role) for org_id, role in result.all()}

    async def list_member_organizations(
        self, principal_id: UUID
    ) -> list[tuple[Organization, OrgRole]]:
        """Organizations the principal belongs to, with its role in each."""
        result = await self._execute(
            select(Organization, Membership.role)
            .join(Membership, Membership.org_id == Organization.id)
            .where(Membership.principal_id == principal_id)
            .order_by(Organization.name)
        )
        return [(org, OrgRole(role)) for org, role in result.all()]

    # ------------------------------------------------------------------
    # Identity (no grant: registration and login precede any session)
    # ------------------------------------------------------------------

    async def find_principal_by_login_email(self, email: str) -> Principal | None:
        result = await self._execute(select(Principal).where(Principal.email == email))
        return result.scalar_one_or_none()

    async def add_principal(self, principal: Principal) -> Principal:
        self.db.add(principal)
        try:
            await self.flush()
        except IntegrityError as exc:
            raise ConflictError("An account with this email already exists") from exc
        return principal

    # ------------------------------------------------------------------
    # Bootstrap (no grant: this is what creates the first authority)
    # ------------------------------------------------------------------

    async def has_any_super_admin(self) -> bool:
        """Strongly consistent check for any principal holding the flag."""
        result = await self._execute(
            select(select(Principal.id).where(Principal.is_super_admin.is_(True)).exists())
        )
        return bool(result.scalar())

    @asynccontextmanager
    async def bootstrap_guard(self) -> AsyncIterator[None]:
        """Serialize bootstrap claims.

        Within one process claims queue on an asyncio lock. On PostgreSQL a
        transaction-scoped advisory lock also serializes claims across
        processes until the claiming transaction ends. Callers must commit
        inside the block.
        """
        async with _claim_lock():
            if self.db.get_bind().dialect.name == "postgresql":
                await self._execute(
                    text("SELECT pg_advisory_xact_lock(:key)"),
                    {"key": BOOTSTRAP_LOCK_KEY},
                )
            yield

    async def promote_if_unclaimed(self, principal_id: UUID) -> bool:
        """Set the flag on ``principal_id`` only while nobody holds it.

        A single conditional UPDATE; returns False when it matched no row.
        """
        holder = aliased(Principal)
        no_holder = ~select(holder.id).where(holder.is_super_admin.is_(True)).exists()
        result = await self._execute(
            update(Principal)
            .where(Principal.id == principal_id, no_holder)
            .values(is_super_admin=True, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ------------------------------------------------------------------
    # Platform scope
    # ------------------------------------------------------------------

    async def list_principals(self, grant: Grant) -> list[Principal]:
        grant.require(Action.LIST_ALL_USERS)
        result = await self._execute(select(Principal).order_by(Principal.created_at))
        return list(result.scalars().all())

    async def list_all_organizations(self, grant: Grant) -> list[Organization]:
        grant.require(Action.LIST_ALL_ORGS)
        result = await self._execute(select(Organization).order_by(Organization.name))
        return list(result.scalars().all())

    async def set_super_admin(self, grant: Grant, principal_id: UUID, value: bool) -> Principal:
        grant.require(Action.TOGGLE_SUPER_ADMIN)
        if grant.target_principal_id != principal_id:
            raise PermissionDeniedError()

        principal = await self.get_principal(principal_id)
        if principal is None:
            raise NotFoundError("User not found")

        principal.is_super_admin = value
        await self.flush()
        return principal

    # ------------------------------------------------------------------
    # Organizations
    # ------------------------------------------------------------------

    async def create_organization(
        self, grant: Grant, *, name: str, founder_id: UUID
    ) -> tuple[Organization, Membership]:
        """Insert an organization and its founding admin membership together."""
        grant.require(Action.CREATE_ORG)

        organization = Organization(name=name)
        self.db.add(organization)
        await self.flush()

        membership = Membership(
            org_id=organization.id,
            principal_id=founder_id,
            role=OrgRole.ADMIN,
        )
        self.db.add(membership)
        await self.flush()
        return organization, membership

    async def get_organization(self, grant: Grant, org_id: UUID) -> Organization:
        grant.require(*ORG_SCOPED_ACTIONS, org_id=org_id)
        result = await self._execute(select(Organization).where(Organization.id == org_id))
        organization = result.scalar_one_or_none()
        if organization is None:
            raise NotFoundError("Organization not found")
        return organization

    async def rename_organization(self, grant: Grant, org_id: UUID, name: str) -> Organization:
        grant.require(Action.RENAME_ORG, org_id=org_id)
        organization = await self.get_organization(grant, org_id)
        organization.name = name
        await self.flush()
        return organization

    async def delete_organization(self, grant: Grant, org_id: UUID) -> Organization:
        """Delete an organization and everything scoped to it.

        All statements run in the caller's transaction, so the organization
        is never observable half-deleted.
        """
        grant.require(Action.DELETE_ORG, org_id=org_id)
        organization = await self.get_organization(grant, org_id)

        await self._execute(delete(Document).where(Document.org_id == org_id))
        await self._execute(delete(AuditFinding).where(AuditFinding.org_id == org_id))
        await self._execute(delete(AuditPlan).where(AuditPlan.org_id == org_id))
        await self._execute(delete(Membership).where(Membership.org_id == org_id))
        await self._execute(delete(ActivityEvent).where(ActivityEvent.org_id == org_id))
        await self._execute(delete(Organization).where(Organization.id == org_id))
        return organization

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    async def find_principal_by_email(self, grant: Grant, email: str) -> Principal | None:
        grant.require(Action.ADD_MEMBER)
        result = await self._execute(select(Principal).where(Principal.email == email))
        return result.scalar_one_or_none()

    async def list_memberships(
        self, grant: Grant, org_id: UUID
    ) -> list[tuple[Membership, Principal]]:
        grant.require(Action.READ_ORG_RESOURCE, org_id=org_id)
        result = await self._execute(
            select(Membership, Principal)
            .join(Principal, Principal.id == Membership.principal_id)
            .where(Membership.org_id == org_id)
            .order_by(Membership.created_at)
        )
        return [(membership, principal) for membership, principal in result.all()]

    async def get_membership(
        self, grant: Grant, org_id: UUID, principal_id: UUID
    ) -> Membership | None:
        grant.require(*ORG_SCOPED_ACTIONS, org_id=org_id)
        result = await self._execute(
            select(Membership).where(
                Membership.org_id == org_id,
                Membership.principal_id == principal_id,
            )
        )
        return result.scalar_one_or_none()

    async def add_membership(
        self,
        grant: Grant,
        *,
        org_id: UUID,
        principal_id: UUID,
        role: OrgRole,
        invited_by: UUID | None,
    ) -> Membership:
        grant.require(Action.ADD_MEMBER, org_id=org_id)
        membership = Membership(
            org_id=org_id,
            principal_id=principal_id,
            role=role,
            invited_by=invited_by,
        )
        self.db.add(membership)
        try:
            await self.flush()
        except IntegrityError as exc:
            raise ConflictError("User is already a member of this organization") from exc
        return membership

    async def change_membership_role(
        self, grant: Grant, *, org_id: UUID, principal_id: UUID, role: OrgRole
    ) -> tuple[Membership, OrgRole]:
        """Update a membership's role; returns the membership and its old role."""
        grant.require(Action.CHANGE_ROLE, org_id=org_id)
        membership = await self.get_membership(grant, org_id, principal_id)
        if membership is None:
            raise NotFoundError("Membership not found")

        old_role = OrgRole(membership.role)
        membership.role = role
        await self.flush()
        return membership, old_role

    async def remove_membership(
        self, grant: Grant, *, org_id: UUID, principal_id: UUID
    ) -> Membership:
        grant.require(Action.REMOVE_MEMBER, org_id=org_id)
        membership = await self.get_membership(grant, org_id, principal_id)
        if membership is None:
            raise NotFoundError("Membership not found")

        await self.db.delete(membership)
        await self.flush()
        return membership

    # ------------------------------------------------------------------
    # Organization resources: audit plans and findings
    # ------------------------------------------------------------------

    async def list_audit_plans(self, grant: Grant, org_id: UUID) -> list[AuditPlan]:
        grant.require(Action.READ_ORG_RESOURCE, org_id=org_id)
        result = await self._execute(
            select(AuditPlan)
            .where(AuditPlan.org_id == org_id)
            .order_by(AuditPlan.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_audit_plan(self, grant: Grant, org_id: UUID, plan_id: UUID) -> AuditPlan:
        grant.require(Action.READ_ORG_RESOURCE, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        result = await self._execute(
            select(AuditPlan).where(AuditPlan.id == plan_id, AuditPlan.org_id == org_id)
        )
        plan = result.scalar_one_or_none()
        if plan is None:
            raise NotFoundError("Audit plan not found")
        return plan

    async def add_audit_plan(self, grant: Grant, plan: AuditPlan) -> AuditPlan:
        grant.require(Action.WRITE_ORG_RESOURCE, org_id=plan.org_id)
        self.db.add(plan)
        await self.flush()
        return plan

    async def save_audit_plan(self, grant: Grant, plan: AuditPlan) -> AuditPlan:
        grant.require(Action.WRITE_ORG_RESOURCE, org_id=plan.org_id)
        await self.flush()
        return plan

    async def delete_audit_plan(self, grant: Grant, plan: AuditPlan) -> None:
        grant.require(Action.WRITE_ORG_RESOURCE, org_id=plan.org_id)
        await self._execute(
            update(Document)
            .where(Document.plan_id == plan.id)
            .values(plan_id=None)
        )
        await self._execute(delete(AuditFinding).where(AuditFinding.plan_id == plan.id))
        await self._execute(delete(AuditPlan).where(AuditPlan.id == plan.id))

    async def list_findings(self, grant: Grant, org_id: UUID, plan_id: UUID) -> list[AuditFinding]:
        grant.require(Action.READ_ORG_RESOURCE, org_id=org_id)
        result = await self._execute(
            select(AuditFinding)
            .where(AuditFinding.org_id == org_id, AuditFinding.plan_id == plan_id)
            .order_by(AuditFinding.created_at)
        )
        return list(result.scalars().all())

    async def get_finding(
        self, grant: Grant, org_id: UUID, plan_id: UUID, finding_id: UUID
    ) -> AuditFinding:
        grant.require(Action.READ_ORG_RESOURCE, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        result = await self._execute(
            select(AuditFinding).where(
                AuditFinding.id == finding_id,
                AuditFinding.plan_id == plan_id,
                AuditFinding.org_id == org_id,
            )
        )
        finding = result.scalar_one_or_none()
        if finding is None:
            raise NotFoundError("Finding not found")
        return finding

    async def add_finding(self, grant: Grant, finding: AuditFinding) -> AuditFinding:
        grant.require(Action.WRITE_ORG_RESOURCE, org_id=finding.org_id)
        self.db.add(finding)
        await self.flush()
        return finding

    async def save_finding(self, grant: Grant, finding: AuditFinding) -> AuditFinding:
        grant.require(Action.WRITE_ORG_RESOURCE, org_id=finding.org_id)
        await self.flush()
        return finding

    async def delete_finding(self, grant: Grant, finding: AuditFinding) -> None:
        grant.require(Action.WRITE_ORG_RESOURCE, org_id=finding.org_id)
        await self._execute(delete(AuditFinding).where(AuditFinding.id == finding.id))

    # ------------------------------------------------------------------
    # Organization resources: documents
    # ------------------------------------------------------------------

    async def list_documents(
        self, grant: Grant, org_id: UUID, plan_id: UUID | None = None
    ) -> list[Document]:
        grant.require(Action.READ_ORG_RESOURCE, org_id=org_id)
        query = select(Document).where(Document.org_id == org_id)
        if plan_id is not None:
            query = query.where(Document.plan_id == plan_id)
        result = await self._execute(query.order_by(Document.created_at.desc()))
        return list(result.scalars().all())

    async def get_document(self, grant: Grant, org_id: UUID, document_id: UUID) -> Document:
        grant.require(Action.READ_ORG_RESOURCE, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        result = await self._execute(
            select(Document).where(Document.id == document_id, Document.org_id == org_id)
        )
        document = result.scalar_one_or_none()
        if document is None:
            raise NotFoundError("Document not found")
        return document

    async def add_document(self, grant: Grant, document: Document) -> Document:
        grant.require(Action.WRITE_ORG_RESOURCE, org_id=document.org_id)
        self.db.add(document)
        await self.flush()
        return document

    async def delete_document(self, grant: Grant, document: Document) -> None:
        grant.require(Action.WRITE_ORG_RESOURCE, org_id=document.org_id)
        await self._execute(delete(Document).where(Document.id == document.id))

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def summarize_organization(self, grant: Grant, org_id: UUID) -> dict[str, int]:
        """Count the organization's audits, findings and documents."""
        grant.require(Action.READ_ORG_RESOURCE, org_id=org_id)

        open_finding = AuditFinding.resolved_at.is_(None)
        plans = await self._execute(
            select(
                func.count(AuditPlan.id),
                func.count(AuditPlan.id).filter(AuditPlan.status == AuditStatus.COMPLETED),
            ).where(AuditPlan.org_id == org_id)
        )
        total_audits, completed_audits = plans.one()

        findings = await self._execute(
            select(
                func.count(AuditFinding.id),
                func.count(AuditFinding.id).filter(open_finding),
                func.count(AuditFinding.id).filter(
                    open_finding, AuditFinding.severity == FindingSeverity.CRITICAL
                ),
            ).where(AuditFinding.org_id == org_id)
        )
        total_findings, open_findings, critical_findings = findings.one()

        documents = await self._execute(
            select(func.count(Document.id)).where(Document.org_id == org_id)
        )

        return {
            "total_audits": total_audits,
            "completed_audits": completed_audits,
            "total_findings": total_findings,
            "open_findings": open_findings,
            "critical_findings": critical_findings,
            "documents": documents.scalar_one(),
        }

    # ------------------------------------------------------------------
    # Activity trail
    # ------------------------------------------------------------------

    async def list_activity(
        self,
        grant: Grant,
        org_id: UUID,
        *,
        action: ActivityAction | None = None,
        entity_type: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ActivityEvent], int]:
        """Page through an organization's activity, newest first."""
        grant.require(Action.READ_ORG_ACTIVITY, org_id=org_id)

        criteria = [ActivityEvent.org_id == org_id]
        if action is not None:
            criteria.append(ActivityEvent.action == action)
        if entity_type:
            criteria.append(ActivityEvent.entity_type == entity_type)

        total = await self._execute(
            select(func.count()).select_from(ActivityEvent).where(*criteria)
        )
        result = await self._execute(
            select(ActivityEvent)
            .where(*criteria)
            .order_by(ActivityEvent.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), int(total.scalar_one())
