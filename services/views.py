"""Service catalog API views.

Customers see active services only; admins see and manage all of them.
"""

from collections import OrderedDict

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.context import get_auth_context
from accounts.permissions import IsAdmin, IsAdminOrReadOnly

from .fields import service_fields
from .models import Service
from .serializers import ServiceSerializer


class ServiceViewSet(viewsets.ModelViewSet):
    """Services CRUD.

    - Customers: read active services.
    - Admins: read all services, create, edit, delete and toggle.
    """

    serializer_class = ServiceSerializer
    permission_classes = [IsAdminOrReadOnly]

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['category', 'is_active', 'price_per_copy']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'price', 'created_at']

    def get_queryset(self):
        qs = Service.objects.order_by('category', 'name')
        if get_auth_context(self.request).is_admin:
            return qs
        return qs.filter(is_active=True)

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsAdmin])
    def toggle(self, request, pk=None):
        """Flip ``is_active``; inactive services vanish from the customer catalog."""
        service = self.get_object()
        service.is_active = not service.is_active
        service.save(update_fields=['is_active', 'updated_at'])
        return Response(self.get_serializer(service).data)

    @action(detail=True, methods=['get'])
    def fields(self, request, pk=None):
        """Resolved order form for one service."""
        service = self.get_object()
        return Response({
            'service': str(service.pk),
            'custom': bool(service.custom_fields),
            'fields': service_fields(service),
        })

    @action(detail=False, methods=['get'])
    def grouped(self, request):
        """Visible services grouped by category, in category order."""
        groups = OrderedDict()
        labels = dict(Service.CATEGORY_CHOICES)
        for service in self.filter_queryset(self.get_queryset()):
            group = groups.setdefault(service.category, {
                'category': service.category,
                'label': labels.get(service.category, service.category),
                'services': [],
            })
            group['services'].append(self.get_serializer(service).data)
        return Response(list(groups.values()))
