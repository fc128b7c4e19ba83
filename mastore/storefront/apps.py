from django.apps import AppConfig


class StorefrontConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'storefront'

    def ready(self):
        # Event logging and the post-migrate schema guard
        from . import signals  # noqa: F401
