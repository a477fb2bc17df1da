"""Membership model."""
from sqlalchemy import Column, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from auditdesk.models.base import BaseModel
from auditdesk.models.enums import OrgRole


class Membership(BaseModel):
    """Join of a principal to an organization with a role.

    At most one membership exists per (organization, principal) pair.
    """

    __tablename__ = "memberships"

    org_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    principal_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("principals.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    role = Column(
        SQLEnum(OrgRole, name="org_role", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=OrgRole.MEMBER
    )
    invited_by = Column(
        Uuid(as_uuid=True),
        ForeignKey("principals.id", ondelete="SET NULL"),
        nullable=True
    )

    # Relationships
    organization = relationship(
        "Organization",
        back_populates="memberships"
    )
    principal = relationship(
        "Principal",
        back_populates="memberships",
        foreign_keys=[principal_id]
    )

    __table_args__ = (
        UniqueConstraint("org_id", "principal_id", name="uq_memberships_org_principal"),
    )

    def __repr__(self) -> str:
        return f"<Membership(org_id={self.org_id}, principal_id={self.principal_id}, role={self.role})>"
