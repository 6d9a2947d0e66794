"""Accounts app views.

Contains:
- The auth HTML entry page
- Auth API endpoints (register, login, logout, auth context)
- Customer profile APIs (profile, avatar, password)
- Admin user management APIs

Kept intentionally simple and DRF-native.
"""

import logging

from django.contrib.auth import get_user_model, login, logout, update_session_auth_hash
from django.db import transaction
from django.db.models import Count
from django.shortcuts import redirect, render
from rest_framework import generics, mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView

from .context import get_auth_context
from .models import UserRole
from .permissions import IsAdmin
from .serializers import (
    AdminUserSerializer,
    AvatarSerializer,
    ChangePasswordSerializer,
    RegisterSerializer,
    SetAdminSerializer,
    UserProfileSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()


def auth_page(request):
    """Render the sign-in / sign-up page; signed-in users go to their dashboard."""
    ctx = get_auth_context(request)
    if ctx.is_authenticated:
        return redirect('admin_dashboard' if ctx.is_admin else 'customer_dashboard')
    return render(request, 'pages/auth.html')


class RegisterView(generics.CreateAPIView):
    """Public registration endpoint."""
    queryset = User.objects.all()
    permission_classes = [AllowAny]
    serializer_class = RegisterSerializer


class SessionTokenObtainPairView(TokenObtainPairView):
    """JWT login that also establishes a Django session.

    The HTML shells under ``/dashboard/`` and ``/admin/`` are protected with
    ``login_required``, which relies on Django's session auth. Accepts
    ``email`` as an alias of ``username``.
    """

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
        if not data.get('username') and data.get('email'):
            data['username'] = str(data['email']).strip().lower()

        serializer = self.get_serializer(data=data)
        serializer.is_valid(raise_exception=True)

        user = getattr(serializer, 'user', None)
        if user is not None and getattr(user, 'is_active', True):
            # DRF wraps the underlying Django HttpRequest at request._request.
            login(request._request, user)

        return Response(serializer.validated_data, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """End the Django session (JWTs simply expire)."""
    logout(request._request)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([AllowAny])
def auth_context_view(request):
    """Return the caller's auth context for route guards on the client."""
    ctx = get_auth_context(request)
    user = None
    if ctx.is_authenticated:
        user = UserProfileSerializer(ctx.user, context={'request': request}).data
    return Response({
        'user': user,
        'is_admin': ctx.is_admin,
        'is_loading': ctx.is_loading,
    })


class UserProfileViewSet(viewsets.GenericViewSet):
    """Authenticated profile management: details, avatar and password."""

    permission_classes = [IsAuthenticated]
    serializer_class = UserProfileSerializer

    @action(detail=False, methods=['get', 'put', 'patch'])
    def me(self, request):
        """Get or update the authenticated user's profile."""
        user = request.user
        if request.method == 'GET':
            serializer = self.get_serializer(user)
            return Response(serializer.data)

        serializer = self.get_serializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        user.refresh_from_db()
        return Response(self.get_serializer(user).data)

    @action(detail=False, methods=['post'])
    def avatar(self, request):
        """Replace the profile picture (images up to 2MB)."""
        serializer = AvatarSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        if user.avatar:
            user.avatar.delete(save=False)
        user.avatar = serializer.validated_data['avatar']
        user.save(update_fields=['avatar'])
        return Response(self.get_serializer(user).data)

    @action(detail=False, methods=['post'], url_path='change-password')
    def change_password(self, request):
        serializer = ChangePasswordSerializer(data=request.data, context={'user': request.user})
        serializer.is_valid(raise_exception=True)

        user = request.user
        user.set_password(serializer.validated_data['new_password'])
        user.save(update_fields=['password'])
        update_session_auth_hash(request._request, user)
        return Response({'detail': 'Your password has been updated successfully.'})


class AdminUserViewSet(mixins.ListModelMixin,
                       mixins.RetrieveModelMixin,
                       mixins.DestroyModelMixin,
                       viewsets.GenericViewSet):
    """Admin-only user management.

    - list: every profile with its admin flag and order count
    - retrieve: profile plus orders, personal documents and order documents
    - destroy: removes the user with their orders, documents and roles
    """

    permission_classes = [IsAuthenticated, IsAdmin]
    serializer_class = AdminUserSerializer

    def get_queryset(self):
        return User.objects.annotate(orders_count=Count('orders')).order_by('-date_joined')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['admin_ids'] = set(
            UserRole.objects.filter(role=UserRole.ADMIN).values_list('user_id', flat=True)
        )
        return context

    def retrieve(self, request, *args, **kwargs):
        from documents.serializers import UserDocumentSerializer
        from orders.models import OrderDocument
        from orders.serializers import OrderDocumentSerializer, OrderSerializer

        user = self.get_object()
        orders = user.orders.select_related('service').order_by('-created_at')
        order_documents = (
            OrderDocument.objects.filter(order__user=user)
            .select_related('order')
            .order_by('-created_at')
        )
        context = self.get_serializer_context()
        return Response({
            'profile': self.get_serializer(user).data,
            'orders': OrderSerializer(orders, many=True, context=context).data,
            'user_documents': UserDocumentSerializer(user.documents.order_by('-created_at'), many=True, context=context).data,
            'order_documents': OrderDocumentSerializer(order_documents, many=True, context=context).data,
        })

    def perform_destroy(self, instance):
        if instance.pk == self.request.user.pk:
            raise ValidationError({'detail': 'You cannot delete your own account.'})
        with transaction.atomic():
            instance.delete()
        logger.info("Admin %s deleted user %s", self.request.user.pk, instance.email)

    @action(detail=True, methods=['post'], url_path='set-admin')
    def set_admin(self, request, pk=None):
        """Grant or revoke the admin role. Payload: ``{"is_admin": bool}``."""
        user = self.get_object()
        serializer = SetAdminSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        make_admin = serializer.validated_data['is_admin']
        if make_admin:
            UserRole.objects.get_or_create(user=user, role=UserRole.ADMIN)
        else:
            if user.pk == request.user.pk:
                return Response({'detail': 'You cannot revoke your own admin role.'}, status=status.HTTP_400_BAD_REQUEST)
            UserRole.objects.filter(user=user, role=UserRole.ADMIN).delete()
        return Response(self.get_serializer(self.get_queryset().get(pk=user.pk)).data)
