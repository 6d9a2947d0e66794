"""Admin dashboard and analytics endpoints.

Both recompute their figures from the full order list on every request.
"""

from django.contrib.auth import get_user_model
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.models import UserRole
from accounts.permissions import IsAdmin
from orders.models import Order
from orders.serializers import OrderSerializer

from .aggregates import build_analytics, dashboard_stats


def _all_orders():
    return list(Order.objects.select_related('service', 'user').order_by('-created_at'))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_dashboard_view(request):
    """Counters plus the five most recent orders."""
    orders = _all_orders()
    customers = (
        get_user_model().objects
        .exclude(roles__role=UserRole.ADMIN)
        .count()
    )
    return Response({
        'stats': dashboard_stats(orders, customers=customers),
        'recent_orders': OrderSerializer(orders[:5], many=True, context={'request': request}).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_analytics_view(request):
    return Response(build_analytics(_all_orders()))
