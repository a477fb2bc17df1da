"""Document model."""
from sqlalchemy import BigInteger, Column, ForeignKey, String, Text, Uuid

from auditdesk.models.base import BaseModel


class Document(BaseModel):
    """Metadata of a file kept as audit evidence.

    The file content lives in external object storage under
    ``storage_path``; only the record is kept here. A document may be linked
    to an audit plan and survives that plan's deletion unlinked.
    """

    __tablename__ = "documents"

    org_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    plan_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("audit_plans.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(255), nullable=True)
    file_size = Column(BigInteger, nullable=True)
    description = Column(Text, nullable=True)
    storage_path = Column(String(1024), nullable=False)
    uploaded_by = Column(
        Uuid(as_uuid=True),
        ForeignKey("principals.id", ondelete="SET NULL"),
        nullable=True
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, file_name={self.file_name})>"
