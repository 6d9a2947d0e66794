"""Notifications app configuration and channel registration."""

from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    """Django app config for notifications; subscribes the channels."""

    name = 'notifications'

    def ready(self):
        from .channels import connect_channels
        connect_channels()
