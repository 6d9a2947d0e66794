from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ['id', 'title', 'message', 'type', 'read', 'created_at', 'order_id']
        read_only_fields = fields


class PermissionSerializer(serializers.Serializer):
    granted = serializers.BooleanField()
