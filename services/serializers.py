"""Serializers for the service catalog."""

from rest_framework import serializers

from .fields import FIELD_TYPES, service_fields
from .models import Service


class CustomFieldSerializer(serializers.Serializer):
    """One entry of a service's order form."""

    id = serializers.RegexField(r'^[A-Za-z][A-Za-z0-9_]*$', max_length=64)
    label = serializers.CharField(max_length=255)
    placeholder = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    type = serializers.ChoiceField(choices=FIELD_TYPES, required=False, default='text')
    required = serializers.BooleanField(required=False, default=False)


class ServiceSerializer(serializers.ModelSerializer):
    """Service catalog entry.

    ``form_fields`` is the resolved form (custom fields or category
    defaults); ``custom_fields`` is what the admin stored.
    """

    custom_fields = CustomFieldSerializer(many=True, required=False, allow_null=True)
    form_fields = serializers.SerializerMethodField()
    category_label = serializers.CharField(source='get_category_display', read_only=True)

    class Meta:
        model = Service
        fields = [
            'id', 'name', 'description', 'category', 'category_label', 'price', 'icon',
            'price_per_copy', 'custom_fields', 'form_fields', 'is_active',
            'show_upload_section', 'show_completed_section', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_form_fields(self, obj):
        return service_fields(obj)

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value

    def validate_custom_fields(self, value):
        if not value:
            return None
        ids = [f['id'] for f in value]
        if len(ids) != len(set(ids)):
            raise serializers.ValidationError("Field ids must be unique.")
        return [dict(f) for f in value]

    def create(self, validated_data):
        return Service.objects.create(**validated_data)

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        return instance
