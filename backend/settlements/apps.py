"""App configuration for the settlements domain."""

from django.apps import AppConfig


class SettlementsConfig(AppConfig):
    """Register the settlements app; it defines no models."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "settlements"
