"""HTML page routes for the customer dashboard and admin panel."""

from django.urls import path

from . import views_pages

dashboard_urlpatterns = [
    path('', views_pages.customer_dashboard, name='customer_dashboard'),
    path('new-order/', views_pages.new_order, name='new_order'),
    path('orders/', views_pages.customer_orders, name='customer_orders'),
    path('orders/<uuid:order_id>/', views_pages.order_detail, name='order_detail'),
    path('documents/', views_pages.customer_documents, name='customer_documents'),
    path('profile/', views_pages.customer_profile, name='customer_profile'),
]

admin_urlpatterns = [
    path('', views_pages.admin_dashboard, name='admin_dashboard'),
    path('orders/', views_pages.admin_orders, name='admin_orders'),
    path('orders/<uuid:order_id>/', views_pages.admin_order_detail, name='admin_order_detail'),
    path('users/', views_pages.admin_users, name='admin_users'),
    path('users/<int:user_id>/', views_pages.admin_user_detail, name='admin_user_detail'),
    path('services/', views_pages.admin_services, name='admin_services'),
    path('analytics/', views_pages.admin_analytics, name='admin_analytics'),
]
