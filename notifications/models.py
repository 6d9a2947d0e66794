import uuid

from django.conf import settings
from django.db import models


class Notification(models.Model):
    """
    One entry in a user's notification feed.
    """

    ORDER = 'order'
    SYSTEM = 'system'
    INFO = 'info'
    TYPE_CHOICES = [
        (ORDER, 'Order'),
        (SYSTEM, 'System'),
        (INFO, 'Info'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=INFO)
    read = models.BooleanField(default=False)
    # Kept as a plain value so the entry outlives a deleted order.
    order_id = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'read', 'created_at'], name='notif_user_read_created_idx'),
        ]

    def __str__(self):
        return f"{self.title} -> {self.user_id}"


class NotificationPermission(models.Model):
    """Whether the user allowed platform (OS/browser) notifications."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='notification_permission',
    )
    granted = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user_id}: {'granted' if self.granted else 'denied'}"
