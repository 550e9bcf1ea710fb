"""Authentication endpoints: register, login, refresh, logout, profile, moderation."""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.http import JsonResponse
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from core.response import BaseAPIView, api_response, envelope
from .serializers import (
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserDetailSerializer,
    UserStatusSerializer,
)
from .services import AccountBanned, TokenService

logger = logging.getLogger(__name__)

User = get_user_model()


class RegisterView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Register a new regular user and return their profile."""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Registered user %s", user.pk)
        return api_response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Authenticate and issue access + refresh tokens."""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        access, refresh = TokenService.generate_tokens(user)
        return api_response(
            {"access": access, "refresh": refresh, "user": UserDetailSerializer(user).data}
        )


class RefreshView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Exchange a valid refresh token for new access/refresh tokens."""
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            raise AuthenticationFailed("Refresh token required")

        payload = TokenService.decode_token(refresh_token, expected_type="refresh")
        try:
            # Also rejects tokens minted before the user's last logout-all.
            user = TokenService.resolve_user(payload)
        except AccountBanned:
            raise PermissionDenied("This account has been banned. Contact a maintainer.")

        access, new_refresh = TokenService.generate_tokens(user)
        return api_response({"access": access, "refresh": new_refresh})


class LogoutView(APIView):
    """Invalidate the current access token by blocklisting its jti."""

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Blocklist the bearer access token and return 204 No Content."""
        token = _get_bearer_token(request)
        if not token:
            return JsonResponse(envelope(errors=["Missing token."]), status=401)

        payload = TokenService.decode_token(token, expected_type="access")
        TokenService.block_token(payload["jti"], payload["exp"])
        # 204 responses must not include a body.
        return Response(status=status.HTTP_204_NO_CONTENT)


class LogoutAllView(APIView):
    """Invalidate all existing tokens for the current user across devices."""

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Increment token_version and blocklist the current access token."""
        if not request.user.is_authenticated:
            raise AuthenticationFailed("Authentication required")

        user = request.user
        user.token_version = (user.token_version or 1) + 1
        user.save(update_fields=["token_version"])

        token = _get_bearer_token(request)
        if token:
            payload = TokenService.decode_token(token, expected_type="access")
            TokenService.block_token(payload["jti"], payload["exp"])

        logger.info("User %s revoked all tokens", user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Return the current user's profile."""
        if not request.user.is_authenticated:
            raise AuthenticationFailed("Authentication required")
        return api_response(UserDetailSerializer(request.user).data)

    # noinspection PyMethodMayBeStatic
    def patch(self, request):
        """Update profile fields for the current user."""
        if not request.user.is_authenticated:
            raise AuthenticationFailed("Authentication required")
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response(UserDetailSerializer(request.user).data)


class UserStatusView(BaseAPIView):
    """Ban or reinstate an account (admins and maintainers)."""

    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def patch(self, request, user_id):
        if not request.user.is_authenticated:
            raise AuthenticationFailed("Authentication required")
        if not request.user.is_staff_member:
            raise PermissionDenied("Admin or maintainer role required.")

        serializer = UserStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if user_id == request.user.pk:
            raise ValidationError("You cannot change your own status.")

        target = User.objects.filter(pk=user_id).first()
        if target is None:
            raise NotFound("User not found.")
        if target.is_maintainer and not request.user.is_maintainer:
            raise PermissionDenied("Only a maintainer may change another maintainer's status.")

        target.status = serializer.validated_data["status"]
        target.save(update_fields=["status", "updated_at"])
        logger.info("User %s set status of %s to %s", request.user.pk, target.pk, target.status)
        return api_response({"id": str(target.pk), "status": target.status})


def _get_bearer_token(request) -> str | None:
    """Extract the Bearer token from Authorization header if present."""
    auth_header = request.META.get("HTTP_AUTHORIZATION", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None
