"""Integration tests for organization endpoints."""
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.models.activity_event import ActivityEvent
from auditdesk.models.audit_finding import AuditFinding
from auditdesk.models.audit_plan import AuditPlan
from auditdesk.models.document import Document
from auditdesk.models.enums import ActivityAction, AuditStatus, FindingSeverity, OrgRole
from auditdesk.models.membership import Membership
from auditdesk.models.organization import Organization
from auditdesk.models.principal import Principal
from tests.conftest import auth_headers, count_rows, get_membership


def uuid_of(data: dict) -> UUID:
    return UUID(data["id"])


@pytest.mark.asyncio
class TestCreateOrganization:
    async def test_super_admin_creates_org_and_becomes_founding_admin(
        self, client: AsyncClient, db: AsyncSession, super_admin: Principal
    ):
        response = await client.post(
            "/api/organizations",
            json={"name": "  Initech  "},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Initech"

        membership = await get_membership(db, uuid_of(data), super_admin.id)
        assert membership is not None
        assert membership.role == OrgRole.ADMIN

    async def test_creation_is_recorded_in_activity_trail(
        self, client: AsyncClient, db: AsyncSession, super_admin: Principal
    ):
        response = await client.post(
            "/api/organizations", json={"name": "Initech"}, headers=auth_headers(super_admin)
        )
        org_id = uuid_of(response.json())

        result = await db.execute(
            select(ActivityEvent).where(ActivityEvent.action == ActivityAction.ORG_CREATE)
        )
        event = result.scalar_one()
        assert event.org_id == org_id
        assert event.actor_id == super_admin.id

    async def test_org_admin_cannot_create_org(
        self, client: AsyncClient, db: AsyncSession, test_org: Organization, org_admin: Principal
    ):
        response = await client.post(
            "/api/organizations", json={"name": "Rogue"}, headers=auth_headers(org_admin)
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Only platform super admins can create organizations"
        assert await count_rows(db, Organization) == 1

    async def test_blank_name_is_rejected(self, client: AsyncClient, super_admin: Principal):
        response = await client.post(
            "/api/organizations", json={"name": "   "}, headers=auth_headers(super_admin)
        )

        assert response.status_code == 422

    async def test_unauthenticated_create_is_rejected(self, client: AsyncClient):
        response = await client.post("/api/organizations", json={"name": "Initech"})

        assert response.status_code == 401


@pytest.mark.asyncio
class TestReadOrganization:
    async def test_member_can_read_org(
        self, client: AsyncClient, test_org: Organization, org_member: Principal
    ):
        response = await client.get(
            f"/api/organizations/{test_org.id}", headers=auth_headers(org_member)
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Acme Quality"

    async def test_non_member_gets_same_403_for_existing_and_missing_org(
        self,
        client: AsyncClient,
        test_org: Organization,
        other_org: Organization,
        outsider: Principal,
    ):
        existing = await client.get(
            f"/api/organizations/{test_org.id}", headers=auth_headers(outsider)
        )
        missing = await client.get(
            f"/api/organizations/{uuid4()}", headers=auth_headers(outsider)
        )

        assert existing.status_code == 403
        assert missing.status_code == 403
        assert existing.json() == missing.json()

    async def test_super_admin_reads_any_org_and_gets_404_for_missing(
        self, client: AsyncClient, test_org: Organization, super_admin: Principal
    ):
        found = await client.get(
            f"/api/organizations/{test_org.id}", headers=auth_headers(super_admin)
        )
        missing = await client.get(
            f"/api/organizations/{uuid4()}", headers=auth_headers(super_admin)
        )

        assert found.status_code == 200
        assert missing.status_code == 404
        assert missing.json()["detail"] == "Organization not found"

    async def test_list_my_organizations_includes_role(
        self,
        client: AsyncClient,
        test_org: Organization,
        other_org: Organization,
        org_member: Principal,
    ):
        response = await client.get("/api/organizations", headers=auth_headers(org_member))

        assert response.status_code == 200
        data = response.json()
        assert [(o["name"], o["role"]) for o in data] == [("Acme Quality", "member")]

    async def test_list_all_organizations_requires_super_admin(
        self,
        client: AsyncClient,
        test_org: Organization,
        other_org: Organization,
        org_admin: Principal,
        super_admin: Principal,
    ):
        denied = await client.get("/api/organizations/all", headers=auth_headers(org_admin))
        allowed = await client.get("/api/organizations/all", headers=auth_headers(super_admin))

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert sorted(o["name"] for o in allowed.json()) == ["Acme Quality", "Globex"]


@pytest.mark.asyncio
class TestOrganizationSummary:
    async def test_counts_audits_findings_and_documents(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        other_org: Organization,
        org_member: Principal,
    ):
        done = AuditPlan(
            org_id=test_org.id,
            title="Supplier audit",
            iso_standard="ISO 9001",
            status=AuditStatus.COMPLETED,
        )
        running = AuditPlan(
            org_id=test_org.id,
            title="Lab audit",
            iso_standard="ISO/IEC 17025",
            status=AuditStatus.IN_PROGRESS,
        )
        foreign = AuditPlan(org_id=other_org.id, title="Globex audit", iso_standard="ISO 14001")
        db.add_all([done, running, foreign])
        await db.flush()
        db.add_all(
            [
                AuditFinding(
                    org_id=test_org.id,
                    plan_id=done.id,
                    clause="8.4",
                    description="Supplier list not reviewed",
                    severity=FindingSeverity.CRITICAL,
                    resolved_at=datetime(2026, 3, 1, tzinfo=UTC),
                ),
                AuditFinding(
                    org_id=test_org.id,
                    plan_id=running.id,
                    clause="7.1.5",
                    description="Balance calibration overdue",
                    severity=FindingSeverity.CRITICAL,
                ),
                AuditFinding(
                    org_id=test_org.id,
                    plan_id=running.id,
                    clause="7.5.3",
                    description="Obsolete form in use",
                    severity=FindingSeverity.MINOR,
                ),
                AuditFinding(
                    org_id=other_org.id,
                    plan_id=foreign.id,
                    clause="6.1",
                    description="Aspects register incomplete",
                    severity=FindingSeverity.CRITICAL,
                ),
                Document(
                    org_id=test_org.id,
                    file_name="quality-manual.pdf",
                    storage_path="acme/quality-manual.pdf",
                ),
            ]
        )
        await db.commit()

        response = await client.get(
            f"/api/organizations/{test_org.id}/summary", headers=auth_headers(org_member)
        )

        assert response.status_code == 200
        assert response.json() == {
            "total_audits": 2,
            "completed_audits": 1,
            "total_findings": 3,
            "open_findings": 2,
            "critical_findings": 1,
            "documents": 1,
        }

    async def test_empty_organization_has_zero_counts(
        self, client: AsyncClient, test_org: Organization, org_admin: Principal
    ):
        response = await client.get(
            f"/api/organizations/{test_org.id}/summary", headers=auth_headers(org_admin)
        )

        assert response.status_code == 200
        assert set(response.json().values()) == {0}

    async def test_non_member_cannot_read_summary(
        self, client: AsyncClient, test_org: Organization, outsider: Principal
    ):
        response = await client.get(
            f"/api/organizations/{test_org.id}/summary", headers=auth_headers(outsider)
        )

        assert response.status_code == 403

    async def test_super_admin_gets_404_for_missing_org(
        self, client: AsyncClient, super_admin: Principal
    ):
        response = await client.get(
            f"/api/organizations/{uuid4()}/summary", headers=auth_headers(super_admin)
        )

        assert response.status_code == 404


@pytest.mark.asyncio
class TestRenameOrganization:
    async def test_org_admin_can_rename(
        self, client: AsyncClient, db: AsyncSession, test_org: Organization, org_admin: Principal
    ):
        response = await client.patch(
            f"/api/organizations/{test_org.id}",
            json={"name": "Acme Assurance"},
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Acme Assurance"

        result = await db.execute(
            select(ActivityEvent).where(ActivityEvent.action == ActivityAction.ORG_RENAME)
        )
        event = result.scalar_one()
        assert event.diff_json == {
            "before": {"name": "Acme Quality"},
            "after": {"name": "Acme Assurance"},
        }

    async def test_member_cannot_rename(
        self, client: AsyncClient, test_org: Organization, org_member: Principal
    ):
        response = await client.patch(
            f"/api/organizations/{test_org.id}",
            json={"name": "Hijacked"},
            headers=auth_headers(org_member),
        )

        assert response.status_code == 403

    async def test_admin_of_another_org_cannot_rename(
        self,
        client: AsyncClient,
        test_org: Organization,
        other_org: Organization,
        outsider: Principal,
    ):
        response = await client.patch(
            f"/api/organizations/{test_org.id}",
            json={"name": "Hijacked"},
            headers=auth_headers(outsider),
        )

        assert response.status_code == 403


@pytest.mark.asyncio
class TestDeleteOrganization:
    async def test_delete_removes_memberships_and_records(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        other_org: Organization,
        super_admin: Principal,
        org_admin: Principal,
    ):
        plan = AuditPlan(
            org_id=test_org.id,
            title="Annual QMS audit",
            iso_standard="ISO 9001",
            created_by=org_admin.id,
        )
        db.add(plan)
        await db.flush()
        db.add(
            AuditFinding(
                org_id=test_org.id,
                plan_id=plan.id,
                clause="7.5.3",
                description="Uncontrolled document copies",
                severity=FindingSeverity.MINOR,
            )
        )
        db.add(
            Document(
                org_id=test_org.id,
                plan_id=plan.id,
                file_name="document-control.pdf",
                storage_path="acme/document-control.pdf",
                uploaded_by=org_admin.id,
            )
        )
        await db.commit()

        response = await client.delete(
            f"/api/organizations/{test_org.id}", headers=auth_headers(super_admin)
        )

        assert response.status_code == 204
        assert await count_rows(db, Organization, Organization.id == test_org.id) == 0
        assert await count_rows(db, Membership, Membership.org_id == test_org.id) == 0
        assert await count_rows(db, AuditPlan, AuditPlan.org_id == test_org.id) == 0
        assert await count_rows(db, AuditFinding, AuditFinding.org_id == test_org.id) == 0
        assert await count_rows(db, Document, Document.org_id == test_org.id) == 0

        # Other tenants are untouched
        assert await count_rows(db, Membership, Membership.org_id == other_org.id) == 1

    async def test_former_members_lose_access(
        self,
        client: AsyncClient,
        test_org: Organization,
        super_admin: Principal,
        org_member: Principal,
    ):
        await client.delete(f"/api/organizations/{test_org.id}", headers=auth_headers(super_admin))

        response = await client.get(
            f"/api/organizations/{test_org.id}", headers=auth_headers(org_member)
        )
        assert response.status_code == 403

    async def test_org_admin_cannot_delete(
        self, client: AsyncClient, db: AsyncSession, test_org: Organization, org_admin: Principal
    ):
        response = await client.delete(
            f"/api/organizations/{test_org.id}", headers=auth_headers(org_admin)
        )

        assert response.status_code == 403
        assert await count_rows(db, Organization) == 1

    async def test_delete_missing_org_is_not_found(
        self, client: AsyncClient, super_admin: Principal
    ):
        response = await client.delete(
            f"/api/organizations/{uuid4()}", headers=auth_headers(super_admin)
        )

        assert response.status_code == 404
