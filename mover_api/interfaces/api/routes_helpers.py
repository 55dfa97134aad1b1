"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from mover_api.domain.errors import NotificationNotFoundError


def to_http_exception(exc: ValueError) -> HTTPException:
    """Return the HTTP error matching a domain ``ValueError``."""

    if isinstance(exc, NotificationNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
