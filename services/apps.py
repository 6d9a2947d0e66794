"""Services app configuration."""

from django.apps import AppConfig


class ServicesConfig(AppConfig):
    """Django app config for the service catalog."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'services'
    verbose_name = 'Service Catalog'
