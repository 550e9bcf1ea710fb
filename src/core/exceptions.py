"""Custom exception handling to enforce the API error envelope."""

import logging
from typing import Any

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated, PermissionDenied
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from authentication.services import BlocklistUnavailable
from .response import UNAUTHORIZED_MESSAGE, envelope

logger = logging.getLogger(__name__)

GENERIC_FORBIDDEN = "You do not have permission to perform this action on this resource."


def _normalize_errors(payload: Any) -> list[Any]:
    """Convert DRF's response.data into a list for the envelope."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and "detail" in payload:
        # Common DRF pattern: {"detail": "..."}
        return [payload["detail"]]
    return [payload]


def _forbidden_errors(exc: Exception, payload: Any) -> list[Any]:
    """Keep explicit policy messages; replace DRF's stock wording."""
    detail = getattr(exc, "detail", None)
    if isinstance(exc, PermissionDenied) and str(detail) != str(PermissionDenied.default_detail):
        return _normalize_errors(payload)
    return [GENERIC_FORBIDDEN]


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap DRF errors in `{ "data": null, "errors": [...] }` shape.

    - Uses DRF's default handler to produce the base response (which also
      maps ``Http404`` to 404 and ``PermissionDenied`` to 403).
    - Normalizes auth messages; hidden diaries always arrive here as 404.
    - Optionally exposes more detailed auth errors when DEBUG_AUTH_ERRORS is enabled.
    """

    # Blocklist outages are security-critical and must fail closed with 503.
    if isinstance(exc, BlocklistUnavailable):
        return Response(
            envelope(errors=["Authentication service unavailable (blocklist)."]),
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    # Treat database errors as a temporary service outage and still respect the
    # global envelope format instead of returning Django's HTML 500 page.
    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling %s", context.get("view").__class__.__name__)
        return Response(
            envelope(errors=["Service temporarily unavailable."]),
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    response = drf_exception_handler(exc, context)

    if response is None:
        return response

    # DRF downgrades NotAuthenticated to 403 when no authenticator offers a
    # WWW-Authenticate header; keep these as 401.
    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if response.status_code >= 400:
        base_errors = response.data

        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            if getattr(settings, "DEBUG_AUTH_ERRORS", False):
                errors = _normalize_errors(base_errors)
            else:
                errors = [UNAUTHORIZED_MESSAGE]
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            errors = _forbidden_errors(exc, base_errors)
        else:
            errors = _normalize_errors(base_errors)

        response.data = envelope(errors=errors)

    return response
