"""Principal service for profiles and platform-level user administration."""
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.authorization import Action, PrincipalContext, authorize
from auditdesk.core.errors import UnauthenticatedError
from auditdesk.models.enums import ActivityAction
from auditdesk.models.principal import Principal
from auditdesk.services.activity_service import ActivityService
from auditdesk.services.tenant_store import TenantStore


class PrincipalService:
    """Service for principal profiles and the super-admin flag."""

    def __init__(self, db: AsyncSession):
        """Initialize principal service.

        Args:
            db: Database session
        """
        self.db = db
        self.store = TenantStore(db)
        self.activity_service = ActivityService(db)

    async def build_context(self, principal_id: UUID) -> PrincipalContext:
        """Build the evaluator's view of a principal from fresh rows.

        Called once per request; membership data is never reused across
        requests, so a role change takes effect on the very next call.

        Raises:
            UnauthenticatedError: principal no longer exists
        """
        principal = await self.store.get_principal(principal_id)
        if principal is None:
            raise UnauthenticatedError("User not found")

        memberships = await self.store.load_memberships(principal.id)
        return PrincipalContext(
            id=principal.id,
            email=principal.email,
            is_super_admin=bool(principal.is_super_admin),
            memberships=memberships,
        )

    async def get_profile(self, actor: PrincipalContext) -> Principal:
        principal = await self.store.get_principal(actor.id)
        if principal is None:
            raise UnauthenticatedError("User not found")
        return principal

    async def update_profile(
        self,
        actor: PrincipalContext,
        full_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Principal:
        """Update the actor's own profile fields.

        Email and the super-admin flag are not editable here.
        """
        principal = await self.get_profile(actor)

        if full_name is not None:
            principal.full_name = full_name
        if avatar_url is not None:
            principal.avatar_url = avatar_url

        await self.store.flush()
        await self.store.commit()
        return principal

    async def list_all(self, actor: PrincipalContext) -> list[Principal]:
        """List every registered principal (super admin only)."""
        grant = authorize(actor, Action.LIST_ALL_USERS)
        return await self.store.list_principals(grant)

    async def set_super_admin(
        self, actor: PrincipalContext, principal_id: UUID, value: bool
    ) -> Principal:
        """Grant or revoke another principal's super-admin flag.

        Args:
            actor: Super admin performing the change
            principal_id: Target principal (never the actor itself)
            value: New flag value

        Returns:
            Updated Principal instance

        Raises:
            PermissionDeniedError: actor is not a super admin, or targets itself
            NotFoundError: target principal does not exist
        """
        grant = authorize(actor, Action.TOGGLE_SUPER_ADMIN, target_principal_id=principal_id)
        principal = await self.store.set_super_admin(grant, principal_id, value)

        await self.activity_service.log(
            action=(
                ActivityAction.SUPER_ADMIN_GRANT if value else ActivityAction.SUPER_ADMIN_REVOKE
            ),
            entity_type="principal",
            entity_id=principal_id,
            actor_id=actor.id,
            diff_json={"is_super_admin": value},
        )

        await self.store.commit()
        return principal
