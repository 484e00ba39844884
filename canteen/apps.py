from django.apps import AppConfig


class CanteenConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'canteen'
    verbose_name = 'Canteen'

    def ready(self):
        from . import signals  # noqa: F401
