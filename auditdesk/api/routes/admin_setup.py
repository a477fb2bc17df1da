"""First super-admin setup endpoint.

Served at ``/admin-setup`` outside the ``/api`` prefix. Any origin may call
it, so every response (errors and preflight included) carries wildcard CORS
headers, and errors use ``{"error": ...}`` bodies.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from auditdesk.api.deps import security
from auditdesk.api.middleware import ADMIN_SETUP_CORS_HEADERS, ADMIN_SETUP_PATH
from auditdesk.core.database import get_db
from auditdesk.core.errors import TransientStoreError
from auditdesk.core.structured_logging import log_json
from auditdesk.schemas.setup import SetupClaimResponse, SetupErrorResponse, SetupStatusResponse
from auditdesk.services.auth_service import principal_id_from_token
from auditdesk.services.bootstrap_service import CLAIM_SUCCESS_MESSAGE, BootstrapService
from auditdesk.services.principal_service import PrincipalService

logger = logging.getLogger(__name__)
router = APIRouter()


def _setup_response(status_code: int, content: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=ADMIN_SETUP_CORS_HEADERS)


def _error(status_code: int, message: str) -> JSONResponse:
    return _setup_response(status_code, SetupErrorResponse(error=message).model_dump())


@router.get(
    ADMIN_SETUP_PATH,
    response_model=SetupStatusResponse,
    summary="Check whether a super admin exists",
    description="Anonymous. Returns hasAdmin=true once any principal holds the super-admin flag.",
)
async def get_setup_status(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    try:
        has_admin = await BootstrapService(db).check_status()
    except HTTPException as exc:
        return _error(exc.status_code, str(exc.detail))
    except Exception as exc:
        log_json(logger, logging.ERROR, "admin_setup_status_failed", error=str(exc))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    return _setup_response(
        status.HTTP_200_OK,
        SetupStatusResponse(has_admin=has_admin).model_dump(by_alias=True),
    )


@router.post(
    ADMIN_SETUP_PATH,
    response_model=SetupClaimResponse,
    summary="Claim the first super-admin seat",
    description=(
        "Promotes the authenticated caller to super admin while none exists. "
        "Fails with 403 once setup is complete."
    ),
)
async def claim_first_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Claim the platform's first super-admin flag.

    Raises nothing: every failure is rendered as an ``{"error": ...}`` body
    (401 missing/invalid session, 403 already claimed, 503 store
    unavailable, 500 unexpected).
    """
    if credentials is None or not credentials.credentials:
        return _error(status.HTTP_401_UNAUTHORIZED, "Missing or invalid authorization header")

    try:
        principal_id = principal_id_from_token(credentials.credentials)
        principal = await PrincipalService(db).build_context(principal_id)
        await BootstrapService(db).claim_first_admin(principal)
    except TransientStoreError as exc:
        await db.rollback()
        return _error(exc.status_code, str(exc.detail))
    except HTTPException as exc:
        return _error(exc.status_code, str(exc.detail))
    except Exception as exc:
        log_json(
            logger,
            logging.ERROR,
            "admin_setup_claim_failed",
            error=str(exc),
            exception=exc.__class__.__name__,
        )
        await db.rollback()
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    return _setup_response(
        status.HTTP_200_OK,
        SetupClaimResponse(success=True, message=CLAIM_SUCCESS_MESSAGE).model_dump(),
    )


@router.options(ADMIN_SETUP_PATH, include_in_schema=False)
async def admin_setup_preflight() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=ADMIN_SETUP_CORS_HEADERS)


@router.api_route(
    ADMIN_SETUP_PATH,
    methods=["PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def admin_setup_method_not_allowed() -> JSONResponse:
    return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed")
