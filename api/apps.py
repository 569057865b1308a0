from django.apps import AppConfig


class ApiConfig(AppConfig):
    name = 'api'

    def ready(self):
        from django.conf import settings
        from .auth_utils import configure_tokens
        configure_tokens(settings.JWT_SECRET, settings.JWT_LIFETIME_DAYS)
