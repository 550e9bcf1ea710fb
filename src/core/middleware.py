"""Middleware to authenticate requests via JWT and Redis blocklist."""

import logging

from django.contrib.auth.models import AnonymousUser
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from authentication.services import AccountBanned, BlocklistUnavailable, TokenService
from .response import UNAUTHORIZED_MESSAGE, envelope

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(MiddlewareMixin):
    """Decode access JWT, check blocklist and account state, attach request.user.

    Requests without a bearer token continue as anonymous viewers; public
    diary reads depend on that.
    """

    def process_request(self, request):  # type: ignore[override]
        """Authenticate request using Bearer access token if present."""
        auth_header = request.META.get("HTTP_AUTHORIZATION", "")
        if not auth_header or not auth_header.startswith("Bearer "):
            request.user = AnonymousUser()
            return None

        token = auth_header.split(" ", 1)[1]

        try:
            request.user = TokenService.authenticate_access_token(token)
            return None
        except AuthenticationFailed as exc:
            logger.debug("Rejected bearer token: %s", exc.detail)
            return _reject(status.HTTP_401_UNAUTHORIZED)
        except AccountBanned as exc:
            logger.info("Banned account %s attempted access", exc)
            return _reject(status.HTTP_403_FORBIDDEN, "This account has been banned. Contact a maintainer.")
        except BlocklistUnavailable:
            return _reject(status.HTTP_503_SERVICE_UNAVAILABLE, "Authentication service unavailable (blocklist).")


def _reject(status_code: int, message: str = UNAUTHORIZED_MESSAGE) -> JsonResponse:
    return JsonResponse(envelope(errors=[message]), status=status_code)


__all__ = ["JWTAuthMiddleware"]
