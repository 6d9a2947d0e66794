"""
URL configuration for the Dastawez project.

- ``/api/...``: REST API (DRF router plus the accounts and admin endpoints)
- ``/auth/``, ``/dashboard/...``, ``/admin/...``: HTML shells
- ``/django-admin/``: Django's own admin site
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView
from rest_framework.routers import DefaultRouter

from accounts.views import AdminUserViewSet, auth_page
from analytics.views import admin_analytics_view, admin_dashboard_view
from documents.views import UserDocumentViewSet
from notifications.views import NotificationViewSet
from orders import views_pages
from orders.urls import admin_urlpatterns, dashboard_urlpatterns
from orders.views import OrderDocumentViewSet, OrderViewSet
from services.views import ServiceViewSet


router = DefaultRouter()
router.register(r'services', ServiceViewSet, basename='service')
router.register(r'orders', OrderViewSet, basename='order')
router.register(r'order-documents', OrderDocumentViewSet, basename='order-document')
router.register(r'documents', UserDocumentViewSet, basename='user-document')
router.register(r'notifications', NotificationViewSet, basename='notification')
router.register(r'admin/users', AdminUserViewSet, basename='admin-user')


urlpatterns = [
    path('', views_pages.home, name='home'),
    path('auth/', auth_page, name='auth'),
    path('dashboard/', include(dashboard_urlpatterns)),
    path('admin/', include(admin_urlpatterns)),
    path('django-admin/', admin.site.urls),
    path('api/admin/dashboard/', admin_dashboard_view, name='admin_dashboard_api'),
    path('api/admin/analytics/', admin_analytics_view, name='admin_analytics_api'),
    path('api/accounts/', include('accounts.urls')),
    path('api/', include(router.urls)),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
