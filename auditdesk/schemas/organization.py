"""Pydantic schemas for organization endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auditdesk.models.enums import OrgRole


def _clean_name(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Organization name cannot be empty")
    return v.strip()


class CreateOrganizationRequest(BaseModel):
    """Request schema for creating an organization.

    Used for POST /organizations endpoint (super admins only).
    The caller becomes the organization's founding admin.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Organization display name")

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        """Validate that name is not empty or whitespace only."""
        return _clean_name(v)


class OrganizationUpdateRequest(BaseModel):
    """Request schema for renaming an organization.

    Used for PATCH /organizations/{org_id} endpoint.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Organization display name")

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        """Validate that name is not empty or whitespace only."""
        return _clean_name(v)


class OrganizationResponse(BaseModel):
    """Response schema for organization endpoints."""

    id: UUID = Field(..., description="Organization unique identifier")
    name: str = Field(..., description="Organization display name")
    logo_url: str | None = Field(None, description="Logo image URL")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last modification timestamp")

    model_config = ConfigDict(from_attributes=True)


class MyOrganizationResponse(OrganizationResponse):
    """An organization the caller belongs to, with the caller's role there."""

    role: OrgRole = Field(..., description="Caller's role in this organization")


class OrganizationSummaryResponse(BaseModel):
    """Dashboard counts for one organization."""

    total_audits: int = Field(..., description="Audit plans in the organization")
    completed_audits: int = Field(..., description="Audit plans with status completed")
    total_findings: int = Field(..., description="Findings across all plans")
    open_findings: int = Field(..., description="Findings not yet resolved")
    critical_findings: int = Field(..., description="Open findings with critical severity")
    documents: int = Field(..., description="Document records")
