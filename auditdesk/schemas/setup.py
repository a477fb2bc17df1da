"""Response bodies of the /admin-setup endpoint.

This endpoint predates the ``/api`` surface and keeps its own wire format:
camelCase ``hasAdmin`` and ``{"error": ...}`` bodies instead of ``detail``.
"""

from pydantic import BaseModel, ConfigDict, Field


class SetupStatusResponse(BaseModel):
    has_admin: bool = Field(..., serialization_alias="hasAdmin")

    model_config = ConfigDict(populate_by_name=True)


class SetupClaimResponse(BaseModel):
    success: bool = True
    message: str


class SetupErrorResponse(BaseModel):
    error: str
