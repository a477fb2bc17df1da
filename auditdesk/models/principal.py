"""Principal model."""
from sqlalchemy import Boolean, Column, String, false
from sqlalchemy.orm import relationship

from auditdesk.models.base import BaseModel


class Principal(BaseModel):
    """An authenticated human.

    The identity (id, email) is fixed once issued; full_name and avatar_url
    are profile fields the principal edits itself. ``is_super_admin`` is the
    platform-wide privilege flag and is never granted through a membership.
    """

    __tablename__ = "principals"

    email = Column(
        String(255),
        nullable=False,
        unique=True,
        index=True
    )
    full_name = Column(
        String(255),
        nullable=True
    )
    avatar_url = Column(
        String(1024),
        nullable=True
    )
    password_hash = Column(
        String(255),
        nullable=True
    )
    is_super_admin = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        index=True
    )

    # Relationships
    memberships = relationship(
        "Membership",
        back_populates="principal",
        foreign_keys="Membership.principal_id",
        passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Principal(id={self.id}, email={self.email}, super_admin={self.is_super_admin})>"
