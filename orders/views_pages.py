"""HTML entry points for the customer dashboard and the admin panel.

The pages are shells: data is loaded by the browser from the REST API. The
guards run before anything is rendered, so an anonymous visitor is sent to
``/auth/`` and a customer opening an admin page is sent to ``/dashboard/``
without any admin data being read.
"""

from django.shortcuts import render

from accounts.permissions import admin_required, customer_required
from services.models import Service

CUSTOMER_PAGES = {
    'customer_dashboard': 'Dashboard',
    'new_order': 'Place New Order',
    'customer_orders': 'My Orders',
    'order_detail': 'Order Details',
    'customer_documents': 'My Documents',
    'customer_profile': 'Profile',
}

ADMIN_PAGES = {
    'admin_dashboard': 'Admin Dashboard',
    'admin_orders': 'Orders',
    'admin_order_detail': 'Order Details',
    'admin_users': 'Users',
    'admin_user_detail': 'User Data',
    'admin_services': 'Services',
    'admin_analytics': 'Analytics',
}


def home(request):
    """Public landing page with the active catalog."""
    groups = {}
    for service in Service.objects.filter(is_active=True).order_by('category', 'name'):
        groups.setdefault(service.get_category_display(), []).append(service)
    return render(request, 'pages/home.html', {'groups': groups})


def _page(name, titles, guard, area):
    def view(request, **kwargs):
        context = {'page': name, 'title': titles[name], 'area': area}
        context.update({key: str(value) for key, value in kwargs.items()})
        return render(request, 'pages/shell.html', context)

    view.__name__ = name
    return guard(view)


customer_dashboard = _page('customer_dashboard', CUSTOMER_PAGES, customer_required, 'dashboard')
new_order = _page('new_order', CUSTOMER_PAGES, customer_required, 'dashboard')
customer_orders = _page('customer_orders', CUSTOMER_PAGES, customer_required, 'dashboard')
order_detail = _page('order_detail', CUSTOMER_PAGES, customer_required, 'dashboard')
customer_documents = _page('customer_documents', CUSTOMER_PAGES, customer_required, 'dashboard')
customer_profile = _page('customer_profile', CUSTOMER_PAGES, customer_required, 'dashboard')

admin_dashboard = _page('admin_dashboard', ADMIN_PAGES, admin_required, 'admin')
admin_orders = _page('admin_orders', ADMIN_PAGES, admin_required, 'admin')
admin_order_detail = _page('admin_order_detail', ADMIN_PAGES, admin_required, 'admin')
admin_users = _page('admin_users', ADMIN_PAGES, admin_required, 'admin')
admin_user_detail = _page('admin_user_detail', ADMIN_PAGES, admin_required, 'admin')
admin_services = _page('admin_services', ADMIN_PAGES, admin_required, 'admin')
admin_analytics = _page('admin_analytics', ADMIN_PAGES, admin_required, 'admin')
