from django.apps import AppConfig


class FleetConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'fleet'
    verbose_name = 'Fleet'

    def ready(self):
        # Import signal handlers
        from . import signals  # noqa: F401
