from functools import wraps

from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect
from rest_framework import permissions

from .context import get_auth_context


class IsAdmin(permissions.BasePermission):
    """
    Only users holding the ``admin`` role.
    """
    message = 'Admin access required.'

    def has_permission(self, request, view):
        return get_auth_context(request).is_admin


class IsAdminOrReadOnly(permissions.BasePermission):
    """
    Authenticated reads for everyone, writes for admins only.
    """

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return get_auth_context(request).is_admin


def customer_required(view_func):
    """Gate an HTML page on an authenticated session."""
    return login_required(view_func, login_url=settings.LOGIN_URL)


def admin_required(view_func):
    """Gate an HTML page on the admin role.

    Non-admins are redirected to the customer dashboard before the view
    runs, so no admin data is read on their behalf.
    """

    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not get_auth_context(request).is_admin:
            return redirect(settings.DASTAWEZ.get('ADMIN_REQUIRED_REDIRECT', 'customer_dashboard'))
        return view_func(request, *args, **kwargs)

    return customer_required(_wrapped)
