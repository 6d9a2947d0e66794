"""Database models for user profiles and roles."""

import os

from django.contrib.auth.models import AbstractUser
from django.db import models


def avatar_upload_to(instance, filename):
    ext = os.path.splitext(filename)[1].lower() or '.png'
    return f"avatars/{instance.pk}/avatar{ext}"


class User(AbstractUser):
    """Custom user model doubling as the customer profile.

    Extends Django's :class:`~django.contrib.auth.models.AbstractUser` with
    the contact details the order wizard pre-fills (name, email, phone,
    address) and an avatar image. Accounts sign in with their email, which is
    also stored as ``username``.
    """

    email = models.EmailField('email address', unique=True)
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, null=True, blank=True)
    address = models.TextField(null=True, blank=True)
    avatar = models.ImageField(upload_to=avatar_upload_to, null=True, blank=True)

    def __str__(self):
        return self.full_name or self.email or self.username

    @property
    def is_admin(self):
        return self.roles.filter(role=UserRole.ADMIN).exists()

    @property
    def display_name(self):
        return self.full_name or self.email or 'A customer'


class UserRole(models.Model):
    """Role assignment; an ``admin`` row unlocks the admin surface."""

    ADMIN = 'admin'
    USER = 'user'
    ROLE_CHOICES = (
        (ADMIN, 'Admin'),
        (USER, 'User'),
    )

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='roles')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=USER)

    class Meta:
        verbose_name = "User Role"
        verbose_name_plural = "User Roles"
        constraints = [
            models.UniqueConstraint(fields=['user', 'role'], name='unique_user_role'),
        ]

    def __str__(self):
        return f"{self.user} - {self.role}"
