"""Error taxonomy shared by services and routes.

Each error is an ``HTTPException`` so services can raise it directly and
FastAPI renders it like any other API error (``{"detail": ...}``).
"""

from fastapi import HTTPException, status


class UnauthenticatedError(HTTPException):
    """No session, or the session does not resolve to a principal."""

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDeniedError(HTTPException):
    """The authorization evaluator denied the action."""

    def __init__(self, detail: str = "You do not have permission to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class TransientStoreError(HTTPException):
    """The database could not be reached; the caller may retry with backoff."""

    def __init__(self, detail: str = "The data store is temporarily unavailable. Please retry."):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
