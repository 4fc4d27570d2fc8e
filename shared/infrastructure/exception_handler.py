"""DRF exception handler that understands domain errors."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler  # type: ignore

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


def domain_exception_handler(exc, context):
    """
    Map domain errors to HTTP responses.

    DRF and Django exceptions keep the stock behaviour. Anything else is
    logged with the request path and answered with a generic 500 so that
    internals never leak to the client.
    """
    if isinstance(exc, DomainError):
        return Response(exc.as_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        return response

    request = context.get("request")
    view = context.get("view")
    logger.exception(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'} "
        f"for {getattr(request, 'method', '?')} {getattr(request, 'path', '?')}: {exc}"
    )
    return Response(
        {"detail": "Internal server error", "code": "server_error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
