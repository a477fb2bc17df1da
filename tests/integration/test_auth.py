"""Integration tests for registration, login and the profile endpoints."""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.models.organization import Organization
from auditdesk.models.principal import Principal
from tests.conftest import TEST_PASSWORD, auth_headers, count_rows


@pytest.mark.asyncio
class TestRegister:
    async def test_register_creates_plain_account(self, client: AsyncClient, db: AsyncSession):
        response = await client.post(
            "/api/auth/register",
            json={"email": "New.User@Example.com", "password": TEST_PASSWORD, "full_name": "New"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new.user@example.com"
        assert data["is_super_admin"] is False
        assert "password_hash" not in data

    async def test_duplicate_email_conflicts(
        self, client: AsyncClient, db: AsyncSession, outsider: Principal
    ):
        response = await client.post(
            "/api/auth/register",
            json={"email": "OUTSIDER@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 409
        assert await count_rows(db, Principal) == 1

    async def test_weak_password_is_rejected(self, client: AsyncClient, db: AsyncSession):
        response = await client.post(
            "/api/auth/register",
            json={"email": "weak@example.com", "password": "password123"},
        )

        assert response.status_code == 400
        assert "uppercase" in response.json()["detail"]
        assert await count_rows(db, Principal) == 0

    async def test_registration_never_grants_super_admin(
        self, client: AsyncClient, db: AsyncSession
    ):
        response = await client.post(
            "/api/auth/register",
            json={"email": "sneaky@example.com", "password": TEST_PASSWORD, "is_super_admin": True},
        )

        assert response.status_code == 201
        assert response.json()["is_super_admin"] is False


@pytest.mark.asyncio
class TestLogin:
    async def test_login_returns_working_token(self, client: AsyncClient, outsider: Principal):
        response = await client.post(
            "/api/auth/login",
            json={"email": outsider.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] > 0

        me = await client.get(
            "/api/me", headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["email"] == outsider.email

    async def test_wrong_password_and_unknown_email_look_the_same(
        self, client: AsyncClient, outsider: Principal
    ):
        wrong_password = await client.post(
            "/api/auth/login",
            json={"email": outsider.email, "password": "WrongPass123!"},
        )
        unknown_email = await client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": TEST_PASSWORD},
        )

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {
            "detail": "Invalid email or password"
        }


@pytest.mark.asyncio
class TestProfile:
    async def test_me_requires_authentication(self, client: AsyncClient):
        response = await client.get("/api/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    async def test_me_lists_memberships(
        self,
        client: AsyncClient,
        test_org: Organization,
        other_org: Organization,
        org_admin: Principal,
    ):
        response = await client.get("/api/me", headers=auth_headers(org_admin))

        assert response.status_code == 200
        data = response.json()
        assert data["is_super_admin"] is False
        assert data["memberships"] == [
            {"org_id": str(test_org.id), "org_name": "Acme Quality", "role": "admin"}
        ]

    async def test_update_profile(self, client: AsyncClient, outsider: Principal):
        response = await client.patch(
            "/api/me",
            json={"full_name": "Olive Outsider", "avatar_url": "https://cdn.example.com/o.png"},
            headers=auth_headers(outsider),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["full_name"] == "Olive Outsider"
        assert data["avatar_url"] == "https://cdn.example.com/o.png"

    async def test_profile_update_cannot_set_super_admin(
        self, client: AsyncClient, db: AsyncSession, outsider: Principal
    ):
        response = await client.patch(
            "/api/me",
            json={"is_super_admin": True},
            headers=auth_headers(outsider),
        )

        assert response.status_code == 422

        await db.refresh(outsider)
        assert outsider.is_super_admin is False
