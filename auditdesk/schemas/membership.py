"""Pydantic schemas for organization membership endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from auditdesk.models.enums import OrgRole


class AddMemberRequest(BaseModel):
    """Request schema for POST /organizations/{org_id}/members.

    Members are identified by email only; the server resolves it to a
    registered principal.
    """

    email: str = Field(..., min_length=3, max_length=255, description="Email of a registered user")
    role: OrgRole = Field(default=OrgRole.MEMBER, description="Role to grant")


class ChangeRoleRequest(BaseModel):
    role: OrgRole = Field(..., description="New role")


class MemberResponse(BaseModel):
    """A membership joined with the member's profile."""

    principal_id: UUID = Field(..., description="Member principal ID")
    org_id: UUID = Field(..., description="Organization ID")
    email: str = Field(..., description="Member email address")
    full_name: str | None = Field(None, description="Member display name")
    role: OrgRole = Field(..., description="Role in the organization")
    invited_by: UUID | None = Field(None, description="Principal who added the member")
    created_at: datetime = Field(..., description="When the membership was created")
