"""Django admin configuration for orders."""

from django.contrib import admin

from .models import Order, OrderDocument


class OrderDocumentInline(admin.TabularInline):
    model = OrderDocument
    extra = 0
    fields = ('file_name', 'file', 'document_type', 'created_at')
    readonly_fields = ('created_at',)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('short_id', 'user', 'service', 'status', 'total_amount', 'expected_delivery_date', 'created_at')
    list_filter = ('status', 'service__category', 'created_at')
    search_fields = ('id', 'user__email', 'user__full_name', 'service__name')
    readonly_fields = ('id', 'details', 'total_amount', 'created_at', 'updated_at')
    date_hierarchy = 'created_at'
    inlines = [OrderDocumentInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('user', 'service')


@admin.register(OrderDocument)
class OrderDocumentAdmin(admin.ModelAdmin):
    list_display = ('file_name', 'order', 'document_type', 'created_at')
    list_filter = ('document_type',)
    search_fields = ('file_name', 'order__id', 'order__user__email')
