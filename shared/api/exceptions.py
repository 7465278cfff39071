"""DRF exception handler translating domain errors into HTTP responses."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import (
    ConflictError,
    DomainError,
    InternalError,
    NotFoundError,
    StateError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    StateError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def domain_exception_handler(exc, context):
    if not isinstance(exc, DomainError):
        return drf_exception_handler(exc, context)

    http_status = status.HTTP_400_BAD_REQUEST
    for error_class, mapped_status in STATUS_BY_ERROR.items():
        if isinstance(exc, error_class):
            http_status = mapped_status
            break

    view = context.get("view")
    if http_status >= 500:
        logger.error(f"{exc.code} in {view.__class__.__name__}: {exc.message}")
    else:
        logger.warning(f"{exc.code} in {view.__class__.__name__}: {exc.message}")
    return Response(exc.to_dict(), status=http_status)
