"""Document service for organization evidence records."""
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.core.authorization import Action, PrincipalContext, authorize
from auditdesk.models.document import Document
from auditdesk.models.enums import ActivityAction
from auditdesk.services.activity_service import ActivityService
from auditdesk.services.tenant_store import TenantStore


class DocumentService:
    """Service for document records.

    Only metadata is handled here. Uploading and downloading the content is
    done by the client against object storage; ``storage_path`` is the key it
    stored the file under.
    """

    def __init__(self, db: AsyncSession):
        """Initialize document service.

        Args:
            db: Database session
        """
        self.db = db
        self.store = TenantStore(db)
        self.activity_service = ActivityService(db)

    async def list_documents(
        self, actor: PrincipalContext, org_id: UUID, plan_id: UUID | None = None
    ) -> list[Document]:
        grant = authorize(actor, Action.READ_ORG_RESOURCE, org_id=org_id)
        return await self.store.list_documents(grant, org_id, plan_id)

    async def get_document(
        self, actor: PrincipalContext, org_id: UUID, document_id: UUID
    ) -> Document:
        grant = authorize(actor, Action.READ_ORG_RESOURCE, org_id=org_id)
        return await self.store.get_document(grant, org_id, document_id)

    async def create_document(
        self, actor: PrincipalContext, org_id: UUID, data: dict[str, Any]
    ) -> Document:
        """Record a document.

        Args:
            actor: Principal registering the document
            org_id: Organization ID
            data: file_name, storage_path and optional file_type, file_size,
                description and plan_id

        Returns:
            Created Document instance

        Raises:
            PermissionDeniedError: actor cannot write this organization's records
            NotFoundError: organization, or the linked plan, does not exist
        """
        grant = authorize(actor, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        await self.store.get_organization(grant, org_id)
        if data.get("plan_id") is not None:
            await self.store.get_audit_plan(grant, org_id, data["plan_id"])

        document = await self.store.add_document(
            grant, Document(org_id=org_id, uploaded_by=actor.id, **data)
        )

        await self.activity_service.log(
            action=ActivityAction.DOCUMENT_CREATE,
            entity_type="document",
            entity_id=document.id,
            org_id=org_id,
            actor_id=actor.id,
            diff_json={"file_name": document.file_name},
        )

        await self.store.commit()
        return document

    async def delete_document(
        self, actor: PrincipalContext, org_id: UUID, document_id: UUID
    ) -> None:
        """Delete a document record. Stored content is left to the client."""
        grant = authorize(actor, Action.WRITE_ORG_RESOURCE, org_id=org_id)
        document = await self.store.get_document(grant, org_id, document_id)
        removed = {"file_name": document.file_name, "storage_path": document.storage_path}
        await self.store.delete_document(grant, document)

        await self.activity_service.log(
            action=ActivityAction.DOCUMENT_DELETE,
            entity_type="document",
            entity_id=document_id,
            org_id=org_id,
            actor_id=actor.id,
            diff_json=removed,
        )

        await self.store.commit()
