"""Pydantic schemas for the activity trail."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from auditdesk.models.enums import ActivityAction


class ActivityEventResponse(BaseModel):
    id: UUID
    created_at: datetime
    actor_id: UUID | None = None
    action: ActivityAction
    entity_type: str
    entity_id: UUID
    diff_json: dict[str, Any] | None = None

    model_config = ConfigDict(from_attributes=True)


class ActivityEventListResponse(BaseModel):
    items: list[ActivityEventResponse]
    total: int
    limit: int
    offset: int
