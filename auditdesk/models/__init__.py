"""SQLAlchemy models."""

from auditdesk.models.activity_event import ActivityEvent
from auditdesk.models.audit_finding import AuditFinding
from auditdesk.models.audit_plan import AuditPlan
from auditdesk.models.base import Base, BaseModel
from auditdesk.models.document import Document
from auditdesk.models.enums import ActivityAction, AuditStatus, FindingSeverity, OrgRole
from auditdesk.models.membership import Membership
from auditdesk.models.organization import Organization
from auditdesk.models.principal import Principal

__all__ = [
    "Base",
    "BaseModel",
    "OrgRole",
    "AuditStatus",
    "FindingSeverity",
    "ActivityAction",
    "Principal",
    "Organization",
    "Membership",
    "AuditPlan",
    "AuditFinding",
    "Document",
    "ActivityEvent",
]
