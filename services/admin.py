"""Django admin configuration for the service catalog."""

from django.contrib import admin
from django.utils.html import format_html

from .models import Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'price', 'price_per_copy', 'colored_status', 'updated_at')
    list_filter = ('category', 'is_active', 'price_per_copy')
    search_fields = ('name', 'description')
    actions = ['activate', 'deactivate']

    def colored_status(self, obj):
        color = 'green' if obj.is_active else 'red'
        return format_html('<b style="color: {};">{}</b>', color, 'Active' if obj.is_active else 'Inactive')

    colored_status.short_description = 'Status'
    colored_status.admin_order_field = 'is_active'

    @admin.action(description='Activate selected services')
    def activate(self, request, queryset):
        queryset.update(is_active=True)

    @admin.action(description='Deactivate selected services')
    def deactivate(self, request, queryset):
        queryset.update(is_active=False)
