from django.apps import AppConfig


class RewardsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.rewards"

    def ready(self):
        # Register change-broadcast receivers
        from . import signals  # noqa: F401
