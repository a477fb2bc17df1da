"""Activity service for recording and reading administrative actions."""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.authorization import Action, PrincipalContext, authorize
from auditdesk.models.activity_event import ActivityEvent
from auditdesk.models.enums import ActivityAction
from auditdesk.services.tenant_store import TenantStore


class ActivityService:
    """Service for appending to and reading the activity trail.

    Entries are flushed into the caller's transaction, so an action and its
    trail entry commit or roll back together.
    """

    def __init__(self, db: AsyncSession):
        """Initialize activity service.

        Args:
            db: Database session
        """
        self.db = db
        self.store = TenantStore(db)

    async def log(
        self,
        action: ActivityAction,
        entity_type: str,
        entity_id: UUID,
        org_id: Optional[UUID] = None,
        actor_id: Optional[UUID] = None,
        diff_json: Optional[dict[str, Any]] = None,
    ) -> ActivityEvent:
        """Create an activity entry.

        Args:
            action: Action being performed
            entity_type: Type of entity being acted upon
            entity_id: ID of entity being acted upon
            org_id: Organization ID (None for platform-scope actions)
            actor_id: ID of principal performing the action
            diff_json: Before/after values for update actions

        Returns:
            Created ActivityEvent instance
        """
        event = ActivityEvent(
            org_id=org_id,
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            diff_json=diff_json,
        )
        self.db.add(event)
        await self.store.flush()
        return event

    async def log_membership_change(
        self,
        action: ActivityAction,
        org_id: UUID,
        actor_id: UUID,
        principal_id: UUID,
        diff: Optional[dict[str, Any]] = None,
    ) -> ActivityEvent:
        """Log a membership add/remove/role change.

        Args:
            action: One of the membership actions
            org_id: Organization ID
            actor_id: Principal performing the change
            principal_id: Principal whose membership changed
            diff: Role before/after, where relevant

        Returns:
            Created ActivityEvent instance
        """
        return await self.log(
            action=action,
            entity_type="membership",
            entity_id=principal_id,
            org_id=org_id,
            actor_id=actor_id,
            diff_json=diff,
        )

    async def list_events(
        self,
        actor: PrincipalContext,
        org_id: UUID,
        *,
        action: Optional[ActivityAction] = None,
        entity_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[ActivityEvent], int]:
        """List an organization's activity, newest first.

        Returns:
            Tuple of (page of events, total matching events)

        Raises:
            PermissionDeniedError: actor is neither org admin nor super admin
            NotFoundError: organization does not exist
        """
        grant = authorize(actor, Action.READ_ORG_ACTIVITY, org_id=org_id)
        await self.store.get_organization(grant, org_id)
        return await self.store.list_activity(
            grant,
            org_id,
            action=action,
            entity_type=entity_type,
            limit=limit,
            offset=offset,
        )
