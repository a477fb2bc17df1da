"""ActivityEvent model."""

from sqlalchemy import JSON, Column, ForeignKey, String, Uuid
from sqlalchemy import Enum as SQLEnum

from auditdesk.models.base import BaseModel
from auditdesk.models.enums import ActivityAction


class ActivityEvent(BaseModel):
    """Append-only trail of administrative actions.

    Platform-scope events (bootstrap claim, super-admin grants) carry no
    organization. Organization-scope events are deleted with their
    organization.
    """

    __tablename__ = "activity_events"

    org_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    actor_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("principals.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action = Column(
        SQLEnum(
            ActivityAction,
            name="activity_action",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Uuid(as_uuid=True), nullable=False)
    diff_json = Column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<ActivityEvent(id={self.id}, action={self.action}, entity_type={self.entity_type})>"
