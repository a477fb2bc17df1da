"""Authorization evaluator.

``decide()`` is a pure function of the principal context, the requested
action and its target. It keeps no state and caches nothing, so it is
evaluated again on every access and is safe to call from any number of
concurrent requests.

``authorize()`` wraps ``decide()`` for application code: it records the
decision and either raises ``PermissionDeniedError`` or returns a ``Grant``.
Every tenant-data method of ``TenantStore`` demands a grant for its own
action and organization, so a store call cannot be reached without having
gone through the evaluator first.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from auditdesk.core.errors import PermissionDeniedError
from auditdesk.core.metrics import observe_authz_decision
from auditdesk.core.structured_logging import log_json
from auditdesk.models.enums import OrgRole

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Actions the evaluator decides on."""

    # Platform scope
    CREATE_ORG = "create_org"
    DELETE_ORG = "delete_org"
    LIST_ALL_USERS = "list_all_users"
    LIST_ALL_ORGS = "list_all_orgs"
    TOGGLE_SUPER_ADMIN = "toggle_super_admin"

    # Organization administration
    RENAME_ORG = "rename_org"
    ADD_MEMBER = "add_member"
    REMOVE_MEMBER = "remove_member"
    CHANGE_ROLE = "change_role"
    READ_ORG_ACTIVITY = "read_org_activity"

    # Organization resources
    READ_ORG_RESOURCE = "read_org_resource"
    WRITE_ORG_RESOURCE = "write_org_resource"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


PLATFORM_ACTIONS = frozenset(
    {Action.CREATE_ORG, Action.DELETE_ORG, Action.LIST_ALL_USERS, Action.LIST_ALL_ORGS}
)
ORG_ADMIN_ACTIONS = frozenset(
    {
        Action.RENAME_ORG,
        Action.ADD_MEMBER,
        Action.REMOVE_MEMBER,
        Action.CHANGE_ROLE,
        Action.READ_ORG_ACTIVITY,
    }
)


@dataclass(frozen=True)
class PrincipalContext:
    """The session principal as seen by the evaluator.

    Built from the store for each request; ``memberships`` maps organization
    id to the principal's role there.
    """

    id: UUID
    email: str
    is_super_admin: bool = False
    memberships: Mapping[UUID, OrgRole] = field(default_factory=dict)

    def role_in(self, org_id: UUID | None) -> OrgRole | None:
        if org_id is None:
            return None
        return self.memberships.get(org_id)


@dataclass(frozen=True)
class Target:
    """What an action applies to. Unused fields stay ``None``."""

    org_id: UUID | None = None
    principal_id: UUID | None = None


def _allow_if(condition: bool) -> Decision:
    return Decision.ALLOW if condition else Decision.DENY


def decide(principal: PrincipalContext, action: Action, target: Target | None = None) -> Decision:
    """Decide whether ``principal`` may perform ``action`` on ``target``.

    Rules, first match wins:

    1. TOGGLE_SUPER_ADMIN: never on oneself; otherwise super-admins only.
    2. CREATE_ORG, DELETE_ORG, LIST_ALL_USERS, LIST_ALL_ORGS: super-admins only.
    3. RENAME_ORG, ADD_MEMBER, REMOVE_MEMBER, CHANGE_ROLE, READ_ORG_ACTIVITY:
       admin membership in the organization, or super-admin.
    4. READ_ORG_RESOURCE: any membership in the organization, or super-admin.
       WRITE_ORG_RESOURCE: admin membership in the organization, or super-admin.
    5. Anything else is denied.
    """
    target = target or Target()

    if action is Action.TOGGLE_SUPER_ADMIN:
        if target.principal_id is None or target.principal_id == principal.id:
            return Decision.DENY
        return _allow_if(principal.is_super_admin)

    if action in PLATFORM_ACTIONS:
        return _allow_if(principal.is_super_admin)

    if target.org_id is None:
        return Decision.DENY

    role = principal.role_in(target.org_id)

    if action in ORG_ADMIN_ACTIONS or action is Action.WRITE_ORG_RESOURCE:
        return _allow_if(role is OrgRole.ADMIN or principal.is_super_admin)

    if action is Action.READ_ORG_RESOURCE:
        return _allow_if(role is not None or principal.is_super_admin)

    return Decision.DENY


# Deny messages never depend on whether the target exists.
_DENY_MESSAGES = {
    Action.CREATE_ORG: "Only platform super admins can create organizations",
    Action.DELETE_ORG: "Only platform super admins can delete organizations",
    Action.LIST_ALL_USERS: "Only platform super admins can list all users",
    Action.LIST_ALL_ORGS: "Only platform super admins can list all organizations",
    Action.TOGGLE_SUPER_ADMIN: "Super admin status can only be changed by another super admin",
    Action.RENAME_ORG: "Only organization admins can rename this organization",
    Action.ADD_MEMBER: "Only organization admins can add members",
    Action.REMOVE_MEMBER: "Only organization admins can remove members",
    Action.CHANGE_ROLE: "Only organization admins can change member roles",
    Action.READ_ORG_ACTIVITY: "Only organization admins can view the activity trail",
    Action.READ_ORG_RESOURCE: "You do not have access to this organization",
    Action.WRITE_ORG_RESOURCE: "Only organization admins can modify this organization's records",
}


@dataclass(frozen=True)
class Grant:
    """Proof that the evaluator allowed one action for one principal."""

    principal_id: UUID
    action: Action
    org_id: UUID | None = None
    target_principal_id: UUID | None = None

    def require(self, *actions: Action, org_id: UUID | None = None) -> None:
        """Fail unless this grant covers one of ``actions`` on ``org_id``.

        Raises:
            PermissionDeniedError: grant issued for another action or organization
        """
        if self.action not in actions:
            raise PermissionDeniedError()
        if org_id is not None and self.org_id != org_id:
            raise PermissionDeniedError()


def authorize(
    principal: PrincipalContext,
    action: Action,
    *,
    org_id: UUID | None = None,
    target_principal_id: UUID | None = None,
) -> Grant:
    """Evaluate ``action`` for ``principal`` and return a grant on allow.

    Raises:
        PermissionDeniedError: evaluator denied the action
    """
    decision = decide(principal, action, Target(org_id=org_id, principal_id=target_principal_id))
    allowed = decision is Decision.ALLOW
    observe_authz_decision(action=action.value, allowed=allowed)

    if not allowed:
        log_json(
            logger,
            logging.INFO,
            "authz_denied",
            action=action.value,
            principal_id=principal.id,
            org_id=org_id,
            target_principal_id=target_principal_id,
        )
        raise PermissionDeniedError(_DENY_MESSAGES[action])

    return Grant(
        principal_id=principal.id,
        action=action,
        org_id=org_id,
        target_principal_id=target_principal_id,
    )
