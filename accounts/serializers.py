"""Serializers for the accounts app.

Includes:
- Registration with phone/password validation
- Profile read/update and avatar upload
- Password change
- Admin-facing user listings
"""

import re

import phonenumbers
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import UserRole


User = get_user_model()

DEFAULT_PHONE_REGION = 'IN'


def normalize_phone(phone):
    """Return ``phone`` in E.164 form, or raise ``serializers.ValidationError``.

    Local numbers without a country code are parsed as Indian numbers; a
    leading ``00`` is treated as ``+``.
    """
    raw = str(phone or '').strip()
    if not raw:
        return None

    clean = re.sub(r'(?<!^)\+|[^\d+]', '', raw)
    if clean.startswith('00'):
        clean = '+' + clean[2:]

    try:
        parsed = phonenumbers.parse(clean, None if clean.startswith('+') else DEFAULT_PHONE_REGION)
        if not phonenumbers.is_valid_number(parsed):
            raise ValueError(raw)
    except (phonenumbers.NumberParseException, ValueError):
        raise serializers.ValidationError(f"Phone number {raw} is not valid.")

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def _image_url(value, *, request=None):
    if not value:
        return None
    try:
        url = value.url
    except ValueError:
        return None
    if request is not None:
        return request.build_absolute_uri(url)
    return url


class RegisterSerializer(serializers.ModelSerializer):
    """Create a customer account.

    The email doubles as the login name. New accounts get the ``user`` role.
    """

    password = serializers.CharField(write_only=True)
    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = User
        fields = ('id', 'email', 'password', 'full_name', 'phone')
        read_only_fields = ('id',)

    def validate_email(self, value):
        value = value.lower().strip()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value

    def validate_password(self, value):
        try:
            validate_password(value)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(list(exc.messages))
        return value

    def validate_phone(self, value):
        return normalize_phone(value)

    def create(self, validated_data):
        email = validated_data['email']
        user = User.objects.create_user(
            username=email,
            email=email,
            password=validated_data['password'],
            full_name=validated_data.get('full_name', ''),
            phone=validated_data.get('phone'),
        )
        UserRole.objects.get_or_create(user=user, role=UserRole.USER)
        return user


class UserProfileSerializer(serializers.ModelSerializer):
    """Profile fields the customer can see and edit."""

    avatar_url = serializers.SerializerMethodField()
    is_admin = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ('id', 'email', 'full_name', 'phone', 'address', 'avatar_url', 'is_admin', 'date_joined')
        read_only_fields = ('id', 'email', 'date_joined')

    def get_avatar_url(self, obj):
        return _image_url(obj.avatar, request=self.context.get('request'))

    def get_is_admin(self, obj):
        return obj.is_admin

    def validate_phone(self, value):
        return normalize_phone(value)


class AvatarSerializer(serializers.Serializer):
    """Avatar upload: images only, bounded size."""

    avatar = serializers.ImageField()

    def validate_avatar(self, value):
        limit = settings.DASTAWEZ['AVATAR_MAX_BYTES']
        content_type = getattr(value, 'content_type', '') or ''
        if content_type and not content_type.startswith('image/'):
            raise serializers.ValidationError("Please upload an image file.")
        if value.size > limit:
            raise serializers.ValidationError(f"Please upload an image smaller than {limit // (1024 * 1024)}MB.")
        return value


class ChangePasswordSerializer(serializers.Serializer):
    new_password = serializers.CharField(write_only=True)
    confirm_password = serializers.CharField(write_only=True)

    def validate_new_password(self, value):
        try:
            validate_password(value, user=self.context.get('user'))
        except DjangoValidationError as exc:
            raise serializers.ValidationError(list(exc.messages))
        return value

    def validate(self, attrs):
        if attrs['new_password'] != attrs['confirm_password']:
            raise serializers.ValidationError({'confirm_password': 'Passwords do not match'})
        return attrs


class SetAdminSerializer(serializers.Serializer):
    is_admin = serializers.BooleanField(default=True)


class AdminUserSerializer(serializers.ModelSerializer):
    """User row for the admin users table."""

    is_admin = serializers.SerializerMethodField()
    orders_count = serializers.SerializerMethodField()
    avatar_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ('id', 'email', 'full_name', 'phone', 'address', 'avatar_url', 'is_admin', 'orders_count', 'date_joined')

    def get_is_admin(self, obj):
        admin_ids = self.context.get('admin_ids')
        if admin_ids is not None:
            return obj.pk in admin_ids
        return obj.roles.filter(role=UserRole.ADMIN).exists()

    def get_orders_count(self, obj):
        annotated = getattr(obj, 'orders_count', None)
        if annotated is not None:
            return annotated
        return obj.orders.count()

    def get_avatar_url(self, obj):
        return _image_url(obj.avatar, request=self.context.get('request'))
