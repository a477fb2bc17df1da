"""Membership service for adding, removing and re-roling organization members."""
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.authorization import Action, PrincipalContext, authorize
from auditdesk.core.errors import ConflictError, NotFoundError
from auditdesk.models.enums import ActivityAction, OrgRole
from auditdesk.models.membership import Membership
from auditdesk.models.principal import Principal
from auditdesk.services.activity_service import ActivityService
from auditdesk.services.tenant_store import TenantStore


def normalize_email(email: str) -> str:
    return email.strip().lower()


class MembershipService:
    """Service for organization membership management.

    Every operation asks the authorization evaluator first. Members are
    always identified by email resolved here on the server; a client never
    supplies a principal id to add.
    """

    def __init__(self, db: AsyncSession):
        """Initialize membership service.

        Args:
            db: Database session
        """
        self.db = db
        self.store = TenantStore(db)
        self.activity_service = ActivityService(db)

    async def list_members(
        self, actor: PrincipalContext, org_id: UUID
    ) -> list[tuple[Membership, Principal]]:
        """List members of an organization with their profiles.

        Raises:
            PermissionDeniedError: actor has no access to the organization
            NotFoundError: organization does not exist
        """
        grant = authorize(actor, Action.READ_ORG_RESOURCE, org_id=org_id)
        await self.store.get_organization(grant, org_id)
        return await self.store.list_memberships(grant, org_id)

    async def add_member(
        self,
        actor: PrincipalContext,
        org_id: UUID,
        email: str,
        role: OrgRole = OrgRole.MEMBER,
    ) -> tuple[Membership, Principal]:
        """Add a registered principal to an organization.

        This never creates accounts: the email must already belong to a
        registered principal.

        Args:
            actor: Principal adding the member
            org_id: Organization ID
            email: Email of the principal to add
            role: Role to grant

        Returns:
            Tuple of (created Membership, added Principal)

        Raises:
            PermissionDeniedError: actor is neither org admin nor super admin
            NotFoundError: organization or principal does not exist
            ConflictError: principal is already a member
        """
        grant = authorize(actor, Action.ADD_MEMBER, org_id=org_id)
        await self.store.get_organization(grant, org_id)

        principal = await self.store.find_principal_by_email(grant, normalize_email(email))
        if principal is None:
            raise NotFoundError(
                "No registered user with that email. The user must sign up first."
            )

        if await self.store.get_membership(grant, org_id, principal.id) is not None:
            raise ConflictError("User is already a member of this organization")

        membership = await self.store.add_membership(
            grant,
            org_id=org_id,
            principal_id=principal.id,
            role=role,
            invited_by=actor.id,
        )

        await self.activity_service.log_membership_change(
            action=ActivityAction.MEMBER_ADD,
            org_id=org_id,
            actor_id=actor.id,
            principal_id=principal.id,
            diff={"email": principal.email, "role": role.value},
        )

        await self.store.commit()
        return membership, principal

    async def remove_member(
        self, actor: PrincipalContext, org_id: UUID, principal_id: UUID
    ) -> None:
        """Remove a member from an organization.

        Raises:
            PermissionDeniedError: actor is neither org admin nor super admin
            NotFoundError: no such membership
        """
        grant = authorize(actor, Action.REMOVE_MEMBER, org_id=org_id)
        membership = await self.store.remove_membership(
            grant, org_id=org_id, principal_id=principal_id
        )

        await self.activity_service.log_membership_change(
            action=ActivityAction.MEMBER_REMOVE,
            org_id=org_id,
            actor_id=actor.id,
            principal_id=principal_id,
            diff={"role": OrgRole(membership.role).value},
        )

        await self.store.commit()

    async def change_role(
        self,
        actor: PrincipalContext,
        org_id: UUID,
        principal_id: UUID,
        role: OrgRole,
    ) -> tuple[Membership, Principal]:
        """Change a member's role.

        An admin may demote itself here. Unlike the platform super-admin flag,
        an organization's admin role can always be restored by another admin
        or a super admin, so no self-protection applies.

        Returns:
            Tuple of (updated Membership, member Principal)

        Raises:
            PermissionDeniedError: actor is neither org admin nor super admin
            NotFoundError: no such membership
        """
        grant = authorize(actor, Action.CHANGE_ROLE, org_id=org_id)
        membership, old_role = await self.store.change_membership_role(
            grant, org_id=org_id, principal_id=principal_id, role=role
        )

        if old_role is not role:
            await self.activity_service.log_membership_change(
                action=ActivityAction.MEMBER_ROLE_CHANGE,
                org_id=org_id,
                actor_id=actor.id,
                principal_id=principal_id,
                diff={"old_role": old_role.value, "new_role": role.value},
            )

        await self.store.commit()
        principal = await self.store.get_principal(principal_id)
        return membership, principal
