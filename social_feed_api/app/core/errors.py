"""
Error taxonomy shared by the service layer.

Services raise one of the ``ServiceError`` subclasses below; endpoints
translate them into ``HTTPException`` using ``status_code``.  The message
passed to the constructor is returned to the client unchanged as the
``error`` field of the response body.
"""

import logging

from fastapi import HTTPException, status


logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for expected failures of a service operation."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError):
    """Uniqueness violation, e.g. an email or username already taken."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(ServiceError):
    """Missing or invalid credentials, or an ownership mismatch."""

    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class UnexpectedError(ServiceError):
    """Store or network failure surfaced to the caller as a 500."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(exc: ServiceError) -> HTTPException:
    """Translate a service failure into the matching ``HTTPException``."""
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    return HTTPException(status_code=exc.status_code, detail=exc.message)
