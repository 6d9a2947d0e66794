"""Database models for the service catalog."""

import uuid

from django.db import models


class Service(models.Model):
    """A purchasable service (printing, certificates, bill payments, CSC).

    ``custom_fields`` holds the ordered form definition shown in the order
    wizard; when it is empty the category's default fields are used instead
    (see :mod:`services.fields`).
    """

    PRINTING = 'printing'
    CERTIFICATES = 'certificates'
    BILLS = 'bills'
    MP_ONLINE = 'mp_online'
    CATEGORY_CHOICES = (
        (PRINTING, 'Printing Services'),
        (CERTIFICATES, 'Government Certificates'),
        (BILLS, 'Bill Payments'),
        (MP_ONLINE, 'CSC Services'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(null=True, blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    icon = models.CharField(max_length=50, null=True, blank=True)
    price_per_copy = models.BooleanField(default=False)
    custom_fields = models.JSONField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    show_upload_section = models.BooleanField(default=True)
    show_completed_section = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['category', 'name']
        indexes = [
            models.Index(fields=['is_active', 'category'], name='service_active_category_idx'),
        ]

    def __str__(self):
        return self.name
