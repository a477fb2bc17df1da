"""Activity trail endpoints (organization admins)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.api.deps import get_current_principal
from auditdesk.core.authorization import PrincipalContext
from auditdesk.core.database import get_db
from auditdesk.models.enums import ActivityAction
from auditdesk.schemas.activity import ActivityEventListResponse, ActivityEventResponse
from auditdesk.services.activity_service import ActivityService

router = APIRouter()


@router.get(
    "/{org_id}/activity",
    response_model=ActivityEventListResponse,
    summary="List activity events (org admin)",
)
async def list_activity_events(
    org_id: UUID,
    action: ActivityAction | None = Query(None),
    entity_type: str | None = Query(None, max_length=50),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_principal: PrincipalContext = Depends(get_current_principal),
) -> ActivityEventListResponse:
    service = ActivityService(db)
    events, total = await service.list_events(
        current_principal,
        org_id,
        action=action,
        entity_type=entity_type,
        limit=limit,
        offset=offset,
    )
    return ActivityEventListResponse(
        items=[ActivityEventResponse.model_validate(event) for event in events],
        total=total,
        limit=limit,
        offset=offset,
    )
