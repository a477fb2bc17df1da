"""Pydantic schemas for audit plan and finding endpoints."""

from datetime import date, datetime
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from auditdesk.models.enums import AuditStatus, FindingSeverity


class _PlanDates(BaseModel):
    @model_validator(mode="after")
    def end_not_before_start(self) -> Self:
        start = getattr(self, "planned_start_date", None)
        end = getattr(self, "planned_end_date", None)
        if start and end and end < start:
            raise ValueError("planned_end_date cannot be before planned_start_date")
        return self


class AuditPlanCreateRequest(_PlanDates):
    """Request schema for POST /organizations/{org_id}/audits."""

    title: str = Field(..., min_length=1, max_length=255, description="Audit title")
    iso_standard: str = Field(
        ..., min_length=1, max_length=100, description="Standard audited against, e.g. ISO 9001"
    )
    description: str | None = Field(None, description="Scope and objectives")
    status: AuditStatus = Field(default=AuditStatus.DRAFT, description="Lifecycle status")
    planned_start_date: date | None = Field(None, description="Planned start date")
    planned_end_date: date | None = Field(None, description="Planned end date")


class AuditPlanUpdateRequest(_PlanDates):
    """Request schema for PATCH /organizations/{org_id}/audits/{plan_id}.

    All fields are optional (partial update).
    """

    title: str | None = Field(None, min_length=1, max_length=255)
    iso_standard: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    status: AuditStatus | None = None
    planned_start_date: date | None = None
    planned_end_date: date | None = None

    @field_validator("title", "iso_standard", "status")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class AuditPlanResponse(BaseModel):
    id: UUID
    org_id: UUID
    title: str
    iso_standard: str
    description: str | None = None
    status: AuditStatus
    planned_start_date: date | None = None
    planned_end_date: date | None = None
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FindingCreateRequest(BaseModel):
    """Request schema for POST .../audits/{plan_id}/findings."""

    clause: str = Field(..., min_length=1, max_length=100, description="Standard clause, e.g. 7.5.3")
    description: str = Field(..., min_length=1, description="What was observed")
    severity: FindingSeverity = Field(
        default=FindingSeverity.OBSERVATION, description="Finding severity"
    )
    evidence: str | None = Field(None, description="Objective evidence")
    corrective_action: str | None = Field(None, description="Agreed corrective action")
    due_date: date | None = Field(None, description="Corrective action due date")


class FindingUpdateRequest(BaseModel):
    """Partial update of a finding. Set ``resolved_at`` to close it."""

    clause: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1)
    severity: FindingSeverity | None = None
    evidence: str | None = None
    corrective_action: str | None = None
    due_date: date | None = None
    resolved_at: datetime | None = None

    @field_validator("clause", "description", "severity")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class FindingResponse(BaseModel):
    id: UUID
    org_id: UUID
    plan_id: UUID
    clause: str
    description: str
    severity: FindingSeverity
    evidence: str | None = None
    corrective_action: str | None = None
    due_date: date | None = None
    resolved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
