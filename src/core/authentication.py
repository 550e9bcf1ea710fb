"""DRF authenticator surfacing the user resolved by ``JWTAuthMiddleware``.

Token parsing happens once, in the middleware, so that plain Django views
and DRF views agree on who is asking. DRF only needs to be told about the
result.
"""

from typing import Any, Optional, Tuple

from rest_framework.authentication import BaseAuthentication

from access_control.policies import as_viewer


class MiddlewareUserAuthentication(BaseAuthentication):
    """Expose ``request._request.user`` (set by middleware) to DRF.

    Anonymous requests are not an error here: diary reads are public, so
    authentication is skipped and DRF falls back to ``AnonymousUser``.
    """

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        if django_request is None:
            return None

        user = as_viewer(getattr(django_request, "user", None))
        if user is None:
            return None
        return user, None

    def authenticate_header(self, request) -> str:
        # Lets DRF answer 401 rather than 403 for unauthenticated writes.
        return 'Bearer realm="api"'


__all__ = ["MiddlewareUserAuthentication"]
