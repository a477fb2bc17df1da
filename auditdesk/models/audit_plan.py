"""AuditPlan model."""
from sqlalchemy import Column, Date, ForeignKey, String, Text, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from auditdesk.models.base import BaseModel
from auditdesk.models.enums import AuditStatus


class AuditPlan(BaseModel):
    """A planned audit against a standard (e.g. ISO 9001) inside an organization."""

    __tablename__ = "audit_plans"

    org_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title = Column(String(255), nullable=False)
    iso_standard = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        SQLEnum(AuditStatus, name="audit_status", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=AuditStatus.DRAFT
    )
    planned_start_date = Column(Date, nullable=True)
    planned_end_date = Column(Date, nullable=True)
    created_by = Column(
        Uuid(as_uuid=True),
        ForeignKey("principals.id", ondelete="SET NULL"),
        nullable=True
    )

    # Relationships
    organization = relationship("Organization", back_populates="audit_plans")
    findings = relationship(
        "AuditFinding",
        back_populates="plan",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<AuditPlan(id={self.id}, title={self.title}, status={self.status})>"
