"""Document record endpoints, scoped to one organization."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.api.deps import get_current_principal
from auditdesk.core.authorization import PrincipalContext
from auditdesk.core.database import get_db
from auditdesk.schemas.document import DocumentCreateRequest, DocumentResponse
from auditdesk.services.document_service import DocumentService

router = APIRouter()


@router.get("/{org_id}/documents", response_model=list[DocumentResponse])
async def list_documents(
    org_id: UUID,
    plan_id: UUID | None = Query(None, description="Only documents linked to this plan"),
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List the organization's documents, newest first."""
    documents = await DocumentService(db).list_documents(current_principal, org_id, plan_id)
    return [DocumentResponse.model_validate(document) for document in documents]


@router.post(
    "/{org_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_document(
    org_id: UUID,
    request: DocumentCreateRequest,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Register an uploaded document.

    Args:
        org_id: Organization ID
        request: Document metadata
        current_principal: Org admin or super admin
        db: Database session

    Returns:
        Created document record

    Raises:
        403: caller cannot write this organization's records
        404: organization or linked audit plan not found
    """
    document = await DocumentService(db).create_document(
        current_principal, org_id, request.model_dump()
    )
    return DocumentResponse.model_validate(document)


@router.get("/{org_id}/documents/{document_id}", response_model=DocumentResponse)
async def get_document(
    org_id: UUID,
    document_id: UUID,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    document = await DocumentService(db).get_document(current_principal, org_id, document_id)
    return DocumentResponse.model_validate(document)


@router.delete("/{org_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    org_id: UUID,
    document_id: UUID,
    current_principal: PrincipalContext = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await DocumentService(db).delete_document(current_principal, org_id, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
