"""Personal documents a customer keeps with their account."""

import os
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


def user_document_upload_to(instance, filename):
    """``documents/<user>/<millis>.<ext>``."""
    stamp = int(timezone.now().timestamp() * 1000)
    ext = os.path.splitext(filename)[1].lower()
    return f"documents/{instance.user_id}/{stamp}{ext}"


class UserDocument(models.Model):
    """A file in the customer's personal locker; not tied to any order.

    ``document_type`` stores the MIME type reported at upload.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='documents')
    file_name = models.CharField(max_length=255)
    file = models.FileField(upload_to=user_document_upload_to, max_length=500)
    document_type = models.CharField(max_length=100, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.file_name

    @property
    def file_url(self):
        return self.file.url if self.file else None
