"""Analytics app configuration."""

from django.apps import AppConfig


class AnalyticsConfig(AppConfig):
    """Django app config for admin analytics (no models)."""

    name = 'analytics'
