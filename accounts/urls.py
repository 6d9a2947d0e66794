"""URL routes for accounts APIs."""

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    RegisterView,
    SessionTokenObtainPairView,
    UserProfileViewSet,
    auth_context_view,
    logout_view,
)

router = DefaultRouter()
router.register(r'profile', UserProfileViewSet, basename='user-profile')

urlpatterns = [
    path('register/', RegisterView.as_view(), name='auth_register'),
    path('login/', SessionTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('logout/', logout_view, name='auth_logout'),
    path('auth-context/', auth_context_view, name='auth_context'),
    path('', include(router.urls)),
]
