"""Enumerations for roles, audit resources and activity actions."""

from enum import Enum


class OrgRole(str, Enum):
    """Role held through one organization membership.

    ADMIN manages the membership list and writes organization resources;
    MEMBER reads them. A role in one organization says nothing about any
    other organization.
    """

    ADMIN = "admin"
    MEMBER = "member"


class AuditStatus(str, Enum):
    """Lifecycle of an audit plan."""

    DRAFT = "draft"
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FindingSeverity(str, Enum):
    OBSERVATION = "observation"
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


class ActivityAction(str, Enum):
    """Administrative actions recorded in the activity trail."""

    # Platform
    BOOTSTRAP_CLAIM = "platform.bootstrap_claim"
    SUPER_ADMIN_GRANT = "platform.super_admin_grant"
    SUPER_ADMIN_REVOKE = "platform.super_admin_revoke"

    # Organization
    ORG_CREATE = "organization.create"
    ORG_RENAME = "organization.rename"
    ORG_DELETE = "organization.delete"

    # Membership
    MEMBER_ADD = "membership.add"
    MEMBER_REMOVE = "membership.remove"
    MEMBER_ROLE_CHANGE = "membership.role_change"

    # Audit resources
    AUDIT_PLAN_CREATE = "audit_plan.create"
    AUDIT_PLAN_UPDATE = "audit_plan.update"
    AUDIT_PLAN_DELETE = "audit_plan.delete"
    FINDING_CREATE = "finding.create"
    FINDING_UPDATE = "finding.update"
    FINDING_DELETE = "finding.delete"
    DOCUMENT_CREATE = "document.create"
    DOCUMENT_DELETE = "document.delete"
