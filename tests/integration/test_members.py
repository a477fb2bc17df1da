"""Integration tests for organization membership endpoints."""
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.models.activity_event import ActivityEvent
from auditdesk.models.enums import ActivityAction, OrgRole
from auditdesk.models.membership import Membership
from auditdesk.models.organization import Organization
from auditdesk.models.principal import Principal
from tests.conftest import auth_headers, count_rows, create_principal, get_membership


@pytest.mark.asyncio
class TestListMembers:
    async def test_member_lists_members_with_profiles(
        self, client: AsyncClient, test_org: Organization, org_member: Principal
    ):
        response = await client.get(
            f"/api/organizations/{test_org.id}/members", headers=auth_headers(org_member)
        )

        assert response.status_code == 200
        members = {m["email"]: m for m in response.json()}
        assert set(members) == {"admin@example.com", "member@example.com"}
        assert members["admin@example.com"]["role"] == "admin"
        assert members["member@example.com"]["full_name"] == "Org Member"

    async def test_non_member_cannot_list_members(
        self, client: AsyncClient, test_org: Organization, outsider: Principal
    ):
        response = await client.get(
            f"/api/organizations/{test_org.id}/members", headers=auth_headers(outsider)
        )

        assert response.status_code == 403


@pytest.mark.asyncio
class TestAddMember:
    async def test_admin_adds_registered_user_by_email(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        org_admin: Principal,
        outsider: Principal,
    ):
        response = await client.post(
            f"/api/organizations/{test_org.id}/members",
            json={"email": "  Outsider@Example.com "},
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["principal_id"] == str(outsider.id)
        assert data["role"] == "member"
        assert data["invited_by"] == str(org_admin.id)

        membership = await get_membership(db, test_org.id, outsider.id)
        assert membership is not None
        assert membership.role == OrgRole.MEMBER

        result = await db.execute(
            select(ActivityEvent).where(ActivityEvent.action == ActivityAction.MEMBER_ADD)
        )
        event = result.scalar_one()
        assert event.org_id == test_org.id
        assert event.entity_id == outsider.id

    async def test_admin_can_add_member_as_admin(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        org_admin: Principal,
        outsider: Principal,
    ):
        response = await client.post(
            f"/api/organizations/{test_org.id}/members",
            json={"email": outsider.email, "role": "admin"},
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 201
        assert response.json()["role"] == "admin"

    async def test_unregistered_email_is_not_found(
        self, client: AsyncClient, db: AsyncSession, test_org: Organization, org_admin: Principal
    ):
        response = await client.post(
            f"/api/organizations/{test_org.id}/members",
            json={"email": "ghost@example.com"},
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 404
        assert response.json()["detail"] == (
            "No registered user with that email. The user must sign up first."
        )
        assert await count_rows(db, Principal, Principal.email == "ghost@example.com") == 0

    async def test_adding_existing_member_conflicts_and_changes_nothing(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        org_admin: Principal,
        org_member: Principal,
    ):
        response = await client.post(
            f"/api/organizations/{test_org.id}/members",
            json={"email": org_member.email, "role": "admin"},
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "User is already a member of this organization"

        assert await count_rows(db, Membership, Membership.org_id == test_org.id) == 2
        membership = await get_membership(db, test_org.id, org_member.id)
        assert membership.role == OrgRole.MEMBER

    async def test_member_cannot_add_members(
        self,
        client: AsyncClient,
        test_org: Organization,
        org_member: Principal,
        outsider: Principal,
    ):
        response = await client.post(
            f"/api/organizations/{test_org.id}/members",
            json={"email": outsider.email},
            headers=auth_headers(org_member),
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Only organization admins can add members"

    async def test_super_admin_can_add_without_membership(
        self,
        client: AsyncClient,
        test_org: Organization,
        super_admin: Principal,
        outsider: Principal,
    ):
        response = await client.post(
            f"/api/organizations/{test_org.id}/members",
            json={"email": outsider.email},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 201

    async def test_non_member_gets_same_403_for_existing_and_missing_org(
        self, client: AsyncClient, test_org: Organization, outsider: Principal
    ):
        existing = await client.post(
            f"/api/organizations/{test_org.id}/members",
            json={"email": outsider.email},
            headers=auth_headers(outsider),
        )
        missing = await client.post(
            f"/api/organizations/{uuid4()}/members",
            json={"email": outsider.email},
            headers=auth_headers(outsider),
        )

        assert existing.status_code == missing.status_code == 403
        assert existing.json() == missing.json()


@pytest.mark.asyncio
class TestChangeRole:
    async def test_admin_promotes_member(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        org_admin: Principal,
        org_member: Principal,
    ):
        response = await client.patch(
            f"/api/organizations/{test_org.id}/members/{org_member.id}",
            json={"role": "admin"},
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 200
        assert response.json()["role"] == "admin"
        assert response.json()["email"] == org_member.email

        # The promoted member can administer on its very next request
        rename = await client.patch(
            f"/api/organizations/{test_org.id}",
            json={"name": "Renamed by new admin"},
            headers=auth_headers(org_member),
        )
        assert rename.status_code == 200

    async def test_admin_can_demote_itself(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        org_admin: Principal,
        outsider: Principal,
    ):
        response = await client.patch(
            f"/api/organizations/{test_org.id}/members/{org_admin.id}",
            json={"role": "member"},
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 200
        assert response.json()["role"] == "member"

        add = await client.post(
            f"/api/organizations/{test_org.id}/members",
            json={"email": outsider.email},
            headers=auth_headers(org_admin),
        )
        assert add.status_code == 403

    async def test_member_cannot_change_roles(
        self,
        client: AsyncClient,
        test_org: Organization,
        org_admin: Principal,
        org_member: Principal,
    ):
        response = await client.patch(
            f"/api/organizations/{test_org.id}/members/{org_member.id}",
            json={"role": "admin"},
            headers=auth_headers(org_member),
        )

        assert response.status_code == 403

    async def test_change_role_of_non_member_is_not_found(
        self,
        client: AsyncClient,
        test_org: Organization,
        org_admin: Principal,
        outsider: Principal,
    ):
        response = await client.patch(
            f"/api/organizations/{test_org.id}/members/{outsider.id}",
            json={"role": "admin"},
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Membership not found"

    async def test_invalid_role_is_rejected(
        self,
        client: AsyncClient,
        test_org: Organization,
        org_admin: Principal,
        org_member: Principal,
    ):
        response = await client.patch(
            f"/api/organizations/{test_org.id}/members/{org_member.id}",
            json={"role": "owner"},
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 422


@pytest.mark.asyncio
class TestRemoveMember:
    async def test_admin_removes_member_who_then_loses_access(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        org_admin: Principal,
        org_member: Principal,
    ):
        response = await client.delete(
            f"/api/organizations/{test_org.id}/members/{org_member.id}",
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 204
        assert await get_membership(db, test_org.id, org_member.id) is None

        read = await client.get(
            f"/api/organizations/{test_org.id}", headers=auth_headers(org_member)
        )
        assert read.status_code == 403

    async def test_remove_non_member_is_not_found(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        org_admin: Principal,
    ):
        stranger = await create_principal(db, "stranger@example.com")

        response = await client.delete(
            f"/api/organizations/{test_org.id}/members/{stranger.id}",
            headers=auth_headers(org_admin),
        )

        assert response.status_code == 404

    async def test_member_cannot_remove_admin(
        self,
        client: AsyncClient,
        db: AsyncSession,
        test_org: Organization,
        org_admin: Principal,
        org_member: Principal,
    ):
        response = await client.delete(
            f"/api/organizations/{test_org.id}/members/{org_admin.id}",
            headers=auth_headers(org_member),
        )

        assert response.status_code == 403
        assert await get_membership(db, test_org.id, org_admin.id) is not None
