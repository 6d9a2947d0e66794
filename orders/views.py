"""Orders API views.

Customers place orders through the wizard endpoint, follow their status,
attach documents and pay through UPI. Admins see every order, change its
status and delivery date, hand back completed documents and delete orders.
"""

import logging

from django.http import HttpResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.context import get_auth_context
from accounts.permissions import IsAdmin
from services.fields import service_fields

from .models import Order, OrderDocument
from .payments import QRCodeUnavailable, fetch_qr_image, payment_details
from .pricing import calculate_total
from .serializers import (
    DeliveryDateSerializer,
    DocumentUploadSerializer,
    OrderDocumentSerializer,
    OrderSerializer,
    OrderStatusSerializer,
    OrderSubmissionSerializer,
    QuoteSerializer,
)
from .wizard import MissingFields, OrderWizard, RejectedFile, WizardError, check_upload

logger = logging.getLogger(__name__)


def wizard_error_response(exc):
    body = {'detail': str(exc)}
    if isinstance(exc, MissingFields):
        body['missing_fields'] = exc.fields
    if isinstance(exc, RejectedFile):
        body['file_name'] = exc.file_name
    return Response(body, status=status.HTTP_400_BAD_REQUEST)


class OrderViewSet(mixins.ListModelMixin,
                   mixins.RetrieveModelMixin,
                   mixins.DestroyModelMixin,
                   viewsets.GenericViewSet):
    """Order API endpoints for customers and admins.

    Customers list and read their own orders; admins see all of them.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['status', 'service']
    ordering_fields = ['created_at', 'total_amount']
    ordering = ['-created_at']

    admin_actions = ('destroy', 'set_status', 'set_delivery_date')

    def get_permissions(self):
        if self.action in self.admin_actions:
            return [IsAuthenticated(), IsAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        qs = Order.objects.select_related('service', 'user')
        if get_auth_context(self.request).is_admin:
            return qs
        return qs.filter(user=self.request.user)

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['include_documents'] = self.action != 'list'
        return context

    def create(self, request, *args, **kwargs):
        """Run the wizard end to end for one submission.

        The order row is written first; files that fail to store are listed in
        ``failed_uploads`` while the order stands.
        """
        serializer = OrderSubmissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        wizard = OrderWizard(request.user)
        try:
            wizard.select_service(data['service'])
            wizard.set_details(data.get('details') or {})
            wizard.set_notes(data.get('notes'))
            for upload in data.get('files') or []:
                wizard.attach(upload)
            wizard.confirm()
        except WizardError as exc:
            return wizard_error_response(exc)

        result = wizard.submit()
        body = OrderSerializer(result.order, context=self.get_serializer_context()).data
        body['failed_uploads'] = result.failed_uploads
        body['payment'] = payment_details(result.order)
        return Response(body, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def quote(self, request):
        """Price and required fields for a service before submitting."""
        serializer = QuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = serializer.validated_data['service']
        details = serializer.validated_data.get('details') or {}
        fields = service_fields(service)
        missing = [f['id'] for f in fields if f['required'] and not details.get(f['id'], '').strip()]
        return Response({
            'service': str(service.pk),
            'total_amount': calculate_total(service, details),
            'price_per_copy': service.price_per_copy,
            'fields': fields,
            'missing_fields': missing,
        })

    def perform_destroy(self, instance):
        logger.info("Admin %s deleted order %s", self.request.user.pk, instance.pk)
        instance.delete()

    @action(detail=True, methods=['patch'], url_path='set-status')
    def set_status(self, request, pk=None):
        order = self.get_object()
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order.status = serializer.validated_data['status']
        order.save(update_fields=['status', 'updated_at'])
        return Response(self.get_serializer(order).data)

    @action(detail=True, methods=['patch'], url_path='set-delivery-date')
    def set_delivery_date(self, request, pk=None):
        order = self.get_object()
        serializer = DeliveryDateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order.expected_delivery_date = serializer.validated_data['expected_delivery_date']
        order.save(update_fields=['expected_delivery_date', 'updated_at'])
        return Response(self.get_serializer(order).data)

    @action(detail=True, methods=['get', 'post'])
    def documents(self, request, pk=None):
        """List documents, or attach one.

        Customer uploads are ``uploaded``; admin uploads are ``completed``.
        """
        order = self.get_object()
        context = self.get_serializer_context()
        if request.method == 'GET':
            docs = order.documents.all()
            doc_type = request.query_params.get('document_type')
            if doc_type:
                docs = docs.filter(document_type=doc_type)
            return Response(OrderDocumentSerializer(docs, many=True, context=context).data)

        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            staged = check_upload(serializer.validated_data['file'])
        except WizardError as exc:
            return wizard_error_response(exc)

        is_admin = get_auth_context(request).is_admin
        document = OrderDocument(
            order=order,
            file_name=staged.name,
            document_type=OrderDocument.COMPLETED if is_admin else OrderDocument.UPLOADED,
        )
        document.file.save(staged.name, staged.upload, save=True)
        return Response(OrderDocumentSerializer(document, context=context).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def payment(self, request, pk=None):
        """UPI deep link and QR image URL for the order's total."""
        return Response(payment_details(self.get_object()))

    @action(detail=True, methods=['get'], url_path='payment/qr')
    def payment_qr(self, request, pk=None):
        order = self.get_object()
        try:
            content, content_type = fetch_qr_image(order)
        except QRCodeUnavailable:
            return Response({'detail': 'QR code is unavailable right now. Please pay using the UPI ID.'},
                            status=status.HTTP_502_BAD_GATEWAY)
        return HttpResponse(content, content_type=content_type)

    @action(detail=True, methods=['post'], url_path='mark-paid')
    def mark_paid(self, request, pk=None):
        """The customer reports the payment as done; nothing is verified or stored."""
        order = self.get_object()
        if order.user_id != request.user.pk:
            raise PermissionDenied('Only the customer who placed the order can report its payment.')
        wizard = OrderWizard.for_payment(order)
        wizard.complete_payment()
        logger.info("User %s reported payment for order %s (%s)", request.user.pk, order.pk, order.total_amount)
        return Response({
            'order_id': str(order.pk),
            'step': wizard.step.name.lower(),
            'detail': 'Thank you for your payment! Your order is being processed.',
        })


class OrderDocumentViewSet(mixins.RetrieveModelMixin,
                           mixins.DestroyModelMixin,
                           viewsets.GenericViewSet):
    """Single order document; deleting it also deletes the stored file.

    Admins may delete any document; customers only their own uploads.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = OrderDocumentSerializer

    def get_queryset(self):
        qs = OrderDocument.objects.select_related('order')
        if get_auth_context(self.request).is_admin:
            return qs
        return qs.filter(order__user=self.request.user)

    def perform_destroy(self, instance):
        if not get_auth_context(self.request).is_admin and instance.document_type != OrderDocument.UPLOADED:
            raise PermissionDenied('Completed documents can only be removed by an admin.')
        instance.delete()
