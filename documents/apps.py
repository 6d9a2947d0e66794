"""Documents app configuration and signal registration."""

from django.apps import AppConfig


class DocumentsConfig(AppConfig):
    """Django app config for personal documents."""

    name = 'documents'
    verbose_name = 'Personal Documents'

    def ready(self):
        import documents.signals  # noqa: F401
