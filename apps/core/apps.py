from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.core"
    verbose_name = "Core"

    def ready(self):
        """
        Import signal handlers when the app is ready.
        """
        import apps.core.cache_invalidation  # noqa: F401
