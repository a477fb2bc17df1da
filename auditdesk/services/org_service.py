"""Organization service for creating, renaming, listing and deleting organizations."""
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.authorization import Action, PrincipalContext, authorize
from auditdesk.models.enums import ActivityAction, OrgRole
from auditdesk.models.organization import Organization
from auditdesk.services.activity_service import ActivityService
from auditdesk.services.tenant_store import TenantStore


class OrganizationService:
    """Service for organization lifecycle operations."""

    def __init__(self, db: AsyncSession):
        """Initialize organization service.

        Args:
            db: Database session
        """
        self.db = db
        self.store = TenantStore(db)
        self.activity_service = ActivityService(db)

    async def create(self, actor: PrincipalContext, name: str) -> Organization:
        """Create an organization with the actor as its founding admin.

        The organization row and the founding membership are written in one
        transaction, so the organization never exists without an admin.

        Args:
            actor: Principal creating the organization (must be super admin)
            name: Organization name

        Returns:
            Created Organization instance

        Raises:
            PermissionDeniedError: actor is not a super admin
        """
        grant = authorize(actor, Action.CREATE_ORG)
        organization, _ = await self.store.create_organization(
            grant, name=name, founder_id=actor.id
        )

        await self.activity_service.log(
            action=ActivityAction.ORG_CREATE,
            entity_type="organization",
            entity_id=organization.id,
            org_id=organization.id,
            actor_id=actor.id,
            diff_json={"name": organization.name},
        )

        await self.store.commit()
        return organization

    async def get(self, actor: PrincipalContext, org_id: UUID) -> Organization:
        """Get an organization the actor can read.

        Raises:
            PermissionDeniedError: actor has no access (whether or not it exists)
            NotFoundError: organization does not exist
        """
        grant = authorize(actor, Action.READ_ORG_RESOURCE, org_id=org_id)
        return await self.store.get_organization(grant, org_id)

    async def summarize(self, actor: PrincipalContext, org_id: UUID) -> dict[str, int]:
        """Dashboard counts for an organization the actor can read.

        Open findings are those without ``resolved_at``; critical counts only
        open critical findings.
        """
        grant = authorize(actor, Action.READ_ORG_RESOURCE, org_id=org_id)
        await self.store.get_organization(grant, org_id)
        return await self.store.summarize_organization(grant, org_id)

    async def list_mine(self, actor: PrincipalContext) -> list[tuple[Organization, OrgRole]]:
        """List organizations the actor is a member of, with its role in each."""
        return await self.store.list_member_organizations(actor.id)

    async def list_all(self, actor: PrincipalContext) -> list[Organization]:
        """List every organization on the platform (super admin only)."""
        grant = authorize(actor, Action.LIST_ALL_ORGS)
        return await self.store.list_all_organizations(grant)

    async def rename(self, actor: PrincipalContext, org_id: UUID, name: str) -> Organization:
        """Rename an organization.

        Args:
            actor: Principal performing the rename
            org_id: Organization ID
            name: New organization name

        Returns:
            Updated Organization instance

        Raises:
            PermissionDeniedError: actor is neither org admin nor super admin
            NotFoundError: organization does not exist
        """
        grant = authorize(actor, Action.RENAME_ORG, org_id=org_id)
        organization = await self.store.get_organization(grant, org_id)
        old_name = organization.name

        organization = await self.store.rename_organization(grant, org_id, name)

        await self.activity_service.log(
            action=ActivityAction.ORG_RENAME,
            entity_type="organization",
            entity_id=org_id,
            org_id=org_id,
            actor_id=actor.id,
            diff_json={"before": {"name": old_name}, "after": {"name": name}},
        )

        await self.store.commit()
        return organization

    async def delete(self, actor: PrincipalContext, org_id: UUID) -> None:
        """Delete an organization together with its memberships and records.

        Raises:
            PermissionDeniedError: actor is not a super admin
            NotFoundError: organization does not exist
        """
        grant = authorize(actor, Action.DELETE_ORG, org_id=org_id)
        organization = await self.store.delete_organization(grant, org_id)

        # Platform-scope entry: the organization's own trail is gone with it.
        await self.activity_service.log(
            action=ActivityAction.ORG_DELETE,
            entity_type="organization",
            entity_id=org_id,
            actor_id=actor.id,
            diff_json={"name": organization.name},
        )

        await self.store.commit()
