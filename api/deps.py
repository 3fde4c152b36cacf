"""Shared helpers for the API routers."""
import logging

from fastapi import HTTPException, Request, status

from errors import ConflictError, DomainError, NotFoundError, ValidationError
from storage import Storage

logger = logging.getLogger(__name__)


def get_storage(request: Request) -> Storage:
    """Store the app was built with."""
    return request.app.state.storage


def parse_id(value: str, entity: str) -> int:
    """Parse a numeric path parameter.

    Raises:
        HTTPException: 400 if the value is not a positive integer
    """
    if not value.isascii() or not value.isdigit() or int(value) < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {entity} ID"
        )
    return int(value)


def http_error(error: DomainError, fallback: str) -> HTTPException:
    """Map a domain error onto the HTTP status it stands for.

    Args:
        error: Error raised by a manager
        fallback: Message used when the error maps to 500

    Returns:
        HTTPException to raise
    """
    if isinstance(error, ValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={'message': error.message, 'errors': error.errors}
        )
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    # UnexpectedError and anything unmapped: keep the cause out of the response
    logger.error(f"{fallback}: {error} ({error.__cause__!r})")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=fallback)


def server_error(error: Exception, fallback: str) -> HTTPException:
    """Log an unexpected failure and hide it behind a fixed message."""
    logger.exception(f"{fallback}: {error}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=fallback)
