"""
DRF exception handler for domain errors

Translates the domain error taxonomy to HTTP responses with a consistent
body: ``{"detail": <message>, "code": <reason>}``. Everything else is left
to DRF's default handler.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.errors import (
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    StorageUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StorageUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_http_status_for_error(exc: DomainError) -> int:
    for error_class, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def domain_exception_handler(exc, context):
    if not isinstance(exc, DomainError):
        return exception_handler(exc, context)

    status_code = get_http_status_for_error(exc)
    if status_code >= 500:
        logger.error(f"{exc.__class__.__name__}: {exc.message}")
    else:
        logger.info(f"{exc.__class__.__name__} ({exc.reason}): {exc.message}")

    response = Response({"detail": exc.message, "code": exc.reason}, status=status_code)
    if isinstance(exc, StorageUnavailable):
        response["Retry-After"] = "1"
    return response
