"""DRF serializers for orders APIs."""

import json

from rest_framework import serializers

from services.models import Service

from .models import Order, OrderDocument


class OrderDocumentSerializer(serializers.ModelSerializer):
    file_url = serializers.SerializerMethodField()
    order_id = serializers.ReadOnlyField(source='order.id')

    class Meta:
        model = OrderDocument
        fields = ['id', 'order_id', 'file_name', 'file_url', 'document_type', 'created_at']

    def get_file_url(self, obj):
        url = obj.file_url
        request = self.context.get('request')
        if url and request is not None:
            return request.build_absolute_uri(url)
        return url


class OrderSerializer(serializers.ModelSerializer):
    """
    Order with its service summary and customer name; documents are nested
    on detail views only (``include_documents`` in the context).
    """

    service_name = serializers.ReadOnlyField(source='service.name')
    service_category = serializers.ReadOnlyField(source='service.category')
    status_display = serializers.ReadOnlyField(source='get_status_display')
    customer_name = serializers.SerializerMethodField()
    customer_email = serializers.ReadOnlyField(source='user.email')
    documents = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id',
            'user',
            'service',
            'service_name',
            'service_category',
            'status',
            'status_display',
            'details',
            'notes',
            'total_amount',
            'expected_delivery_date',
            'customer_name',
            'customer_email',
            'documents',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_customer_name(self, obj):
        return obj.user.display_name

    def get_documents(self, obj):
        if not self.context.get('include_documents'):
            return None
        return OrderDocumentSerializer(obj.documents.all(), many=True, context=self.context).data


class DetailsField(serializers.JSONField):
    """Form values as an object; multipart submissions send it as a JSON string."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            try:
                data = json.loads(data) if data.strip() else {}
            except ValueError:
                raise serializers.ValidationError('Details must be a JSON object.')
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise serializers.ValidationError('Details must be a JSON object.')
        return {str(k): '' if v is None else str(v) for k, v in data.items()}


class OrderSubmissionSerializer(serializers.Serializer):
    """Input of the new-order wizard (``multipart/form-data`` or JSON)."""

    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    details = DetailsField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    files = serializers.ListField(child=serializers.FileField(), required=False)


class QuoteSerializer(serializers.Serializer):
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    details = DetailsField(required=False)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


class DeliveryDateSerializer(serializers.Serializer):
    expected_delivery_date = serializers.DateField(allow_null=True)


class DocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
