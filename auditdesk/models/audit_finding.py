"""AuditFinding model."""
from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from auditdesk.models.base import BaseModel
from auditdesk.models.enums import FindingSeverity


class AuditFinding(BaseModel):
    """A nonconformity or observation raised during an audit.

    ``org_id`` duplicates the parent plan's organization so tenant filters
    never need a join.
    """

    __tablename__ = "audit_findings"

    org_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    plan_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("audit_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    clause = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(
        SQLEnum(
            FindingSeverity,
            name="finding_severity",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=FindingSeverity.OBSERVATION
    )
    evidence = Column(Text, nullable=True)
    corrective_action = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    plan = relationship("AuditPlan", back_populates="findings")

    def __repr__(self) -> str:
        return f"<AuditFinding(id={self.id}, clause={self.clause}, severity={self.severity})>"
