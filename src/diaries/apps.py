"""App configuration for diaries and their collaboration requests."""

from django.apps import AppConfig


class DiariesConfig(AppConfig):
    """Diaries app owns the Diary and CollaborationRequest tables."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "diaries"
