"""App configuration for the access_control Django application.

The app holds no models; it hosts the diary access policies and registers
the system checks that guard their assumptions about the user model.
"""

from django.apps import AppConfig


class AccessControlConfig(AppConfig):
    """Application configuration for the access_control app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "access_control"

    def ready(self) -> None:
        """Register system checks when the app is loaded."""
        from . import checks  # noqa: F401
