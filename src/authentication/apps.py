"""App configuration for accounts and token authentication."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Owns the User model (role, ban status, token version) and JWT services."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
