"""Pydantic schemas for document endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DocumentCreateRequest(BaseModel):
    """Request schema for POST /organizations/{org_id}/documents.

    The client uploads the file to object storage first and registers the
    resulting ``storage_path`` here.
    """

    file_name: str = Field(..., min_length=1, max_length=255, description="Original file name")
    storage_path: str = Field(
        ..., min_length=1, max_length=1024, description="Object storage key of the content"
    )
    file_type: str | None = Field(None, max_length=255, description="MIME type")
    file_size: int | None = Field(None, ge=0, description="Size in bytes")
    description: str | None = Field(None, description="What the document evidences")
    plan_id: UUID | None = Field(None, description="Audit plan the document belongs to")


class DocumentResponse(BaseModel):
    id: UUID
    org_id: UUID
    plan_id: UUID | None = None
    file_name: str
    file_type: str | None = None
    file_size: int | None = None
    description: str | None = None
    storage_path: str
    uploaded_by: UUID | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
