"""Organization model."""
from sqlalchemy import CheckConstraint, Column, String
from sqlalchemy.orm import relationship

from auditdesk.models.base import BaseModel


class Organization(BaseModel):
    """Organization entity, the tenant boundary.

    An organization owns memberships, audit plans, findings, documents and
    its slice of the activity trail; all of them are deleted with it.
    """

    __tablename__ = "organizations"

    name = Column(
        String(255),
        nullable=False,
        index=True
    )
    logo_url = Column(
        String(1024),
        nullable=True
    )

    # Relationships
    memberships = relationship(
        "Membership",
        back_populates="organization",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    audit_plans = relationship(
        "AuditPlan",
        back_populates="organization",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint(
            "LENGTH(name) > 0",
            name="organization_name_not_empty"
        ),
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"
