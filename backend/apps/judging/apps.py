from django.apps import AppConfig


class JudgingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.judging"

    def ready(self):
        # Register change-broadcast receivers
        from . import signals  # noqa: F401
