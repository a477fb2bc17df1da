"""Bootstrap service: promotion of the platform's first super admin.

The state is derived, never stored: the platform is *open* while no
principal has ``is_super_admin`` set and *claimed* from the moment one does.
``check_status`` and ``claim_first_admin`` use the same existence query.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.authorization import PrincipalContext
from auditdesk.core.errors import PermissionDeniedError
from auditdesk.core.metrics import BOOTSTRAP_CLAIMS_TOTAL
from auditdesk.core.structured_logging import log_json
from auditdesk.models.enums import ActivityAction
from auditdesk.services.activity_service import ActivityService
from auditdesk.services.tenant_store import TenantStore

logger = logging.getLogger(__name__)

SETUP_COMPLETE_MESSAGE = "A super admin already exists. Setup is complete."
CLAIM_SUCCESS_MESSAGE = "You are now a super admin!"


class BootstrapService:
    """Service for the one-time first super-admin claim."""

    def __init__(self, db: AsyncSession):
        """Initialize bootstrap service.

        Args:
            db: Database session
        """
        self.db = db
        self.store = TenantStore(db)
        self.activity_service = ActivityService(db)

    async def check_status(self) -> bool:
        """Return True once any super admin exists. Needs no session."""
        return await self.store.has_any_super_admin()

    async def claim_first_admin(self, principal: PrincipalContext) -> None:
        """Promote ``principal`` to super admin if nobody holds the flag yet.

        Concurrent claims are serialized by the store's bootstrap guard and the
        promotion is a conditional update, so exactly one caller wins.

        Args:
            principal: Authenticated caller

        Raises:
            PermissionDeniedError: a super admin already exists
        """
        async with self.store.bootstrap_guard():
            if await self.store.has_any_super_admin():
                self._reject(principal, reason="already_claimed")

            if not await self.store.promote_if_unclaimed(principal.id):
                self._reject(principal, reason="lost_race")

            await self.activity_service.log(
                action=ActivityAction.BOOTSTRAP_CLAIM,
                entity_type="principal",
                entity_id=principal.id,
                actor_id=principal.id,
            )
            await self.store.commit()

        BOOTSTRAP_CLAIMS_TOTAL.labels(outcome="claimed").inc()
        log_json(
            logger,
            logging.WARNING,
            "bootstrap_claimed",
            principal_id=principal.id,
            email=principal.email,
        )

    def _reject(self, principal: PrincipalContext, *, reason: str) -> None:
        BOOTSTRAP_CLAIMS_TOTAL.labels(outcome=reason).inc()
        log_json(
            logger,
            logging.INFO,
            "bootstrap_claim_rejected",
            principal_id=principal.id,
            reason=reason,
        )
        raise PermissionDeniedError(SETUP_COMPLETE_MESSAGE)
