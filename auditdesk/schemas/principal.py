"""Pydantic schemas for profile and platform user endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from auditdesk.models.enums import OrgRole


class PrincipalResponse(BaseModel):
    """Response schema for a registered principal.

    Used for /me, /users and registration responses.
    """

    id: UUID = Field(..., description="Principal unique identifier")
    email: str = Field(..., description="Email address")
    full_name: str | None = Field(None, description="Display name")
    avatar_url: str | None = Field(None, description="Avatar image URL")
    is_super_admin: bool = Field(..., description="Platform super-admin flag")
    created_at: datetime = Field(..., description="Registration timestamp")

    model_config = ConfigDict(from_attributes=True)


class MembershipSummary(BaseModel):
    org_id: UUID = Field(..., description="Organization ID")
    org_name: str = Field(..., description="Organization display name")
    role: OrgRole = Field(..., description="Role held in the organization")


class MeResponse(PrincipalResponse):
    """Response schema for GET /me: profile plus memberships."""

    memberships: list[MembershipSummary] = Field(
        default_factory=list, description="Organizations the principal belongs to"
    )


class ProfileUpdateRequest(BaseModel):
    """Request schema for PATCH /me.

    Email and the super-admin flag cannot be changed here.
    """

    full_name: str | None = Field(None, max_length=255, description="Display name")
    avatar_url: str | None = Field(None, max_length=2048, description="Avatar image URL")

    model_config = ConfigDict(extra="forbid")


class SuperAdminUpdateRequest(BaseModel):
    is_super_admin: bool = Field(..., description="New value of the super-admin flag")
