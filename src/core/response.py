"""The `{data, errors}` envelope shared by every JSON response."""

from typing import Any, Iterable

from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

ENVELOPE_KEYS = frozenset({"data", "errors"})

UNAUTHORIZED_MESSAGE = (
    "Authentication credentials were not provided or are invalid, token revoked, or user is inactive."
)


def envelope(data: Any = None, errors: Iterable[Any] = ()) -> dict[str, Any]:
    """Build an envelope body; error bodies carry ``data: null``."""
    return {"data": data, "errors": list(errors)}


def api_response(data: Any, status: int = 200) -> Response:
    """Return ``data`` wrapped for a successful response."""
    return Response(envelope(data), status=status)


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and set(payload) == ENVELOPE_KEYS


class EnvelopeMixin:
    """Wrap successful responses that views returned unwrapped.

    204 responses keep an empty body.
    """

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore[override]
        status_code = response.status_code or 0
        if hasattr(response, "data") and status_code < 400 and status_code != 204:
            if not _is_enveloped(response.data):
                response.data = envelope(response.data)
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore[attr-defined]


class BaseAPIView(EnvelopeMixin, APIView):
    """APIView whose successful responses are always enveloped."""


class BaseViewSet(EnvelopeMixin, GenericViewSet):
    """GenericViewSet variant; subclasses declare the actions they expose."""
