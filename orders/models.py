"""Database models for orders and their documents."""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from services.models import Service


def order_document_upload_to(instance, filename):
    """``documents/<user>/<order>/<millis>-<name>``."""
    stamp = int(timezone.now().timestamp() * 1000)
    return f"documents/{instance.order.user_id}/{instance.order_id}/{stamp}-{filename}"


class Order(models.Model):
    """A customer's request for one service.

    ``details`` is the snapshot of the wizard form at submission and
    ``total_amount`` the price frozen at the same moment; neither follows
    later edits to the service.
    """

    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    READY = 'ready'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'
    STATUS_CHOICES = (
        (PENDING, 'Pending'),
        (IN_PROGRESS, 'In Progress'),
        (READY, 'Ready for Pickup'),
        (DELIVERED, 'Delivered'),
        (CANCELLED, 'Cancelled'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='orders')
    service = models.ForeignKey(Service, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    details = models.JSONField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    expected_delivery_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='order_user_created_idx'),
            models.Index(fields=['status', 'created_at'], name='order_status_created_idx'),
        ]

    def __str__(self):
        return f"Order {self.short_id} - {self.user}"

    @property
    def short_id(self):
        return str(self.pk)[:8]

    @property
    def service_name(self):
        return self.service.name if self.service_id else None


class OrderDocument(models.Model):
    """A file attached to an order.

    ``uploaded`` files come from the customer; ``completed`` files are the
    finished work the admin hands back.
    """

    UPLOADED = 'uploaded'
    COMPLETED = 'completed'
    TYPE_CHOICES = (
        (UPLOADED, 'Uploaded by customer'),
        (COMPLETED, 'Completed by admin'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='documents')
    file_name = models.CharField(max_length=255)
    file = models.FileField(upload_to=order_document_upload_to, max_length=500)
    document_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=UPLOADED)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.file_name} ({self.document_type})"

    @property
    def file_url(self):
        if not self.file:
            return None
        return self.file.url