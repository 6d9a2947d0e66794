from django.contrib import admin

from .models import Notification, NotificationPermission


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('title', 'user', 'type', 'read', 'order_id', 'created_at')
    list_filter = ('type', 'read')
    search_fields = ('title', 'message', 'user__email')


@admin.register(NotificationPermission)
class NotificationPermissionAdmin(admin.ModelAdmin):
    list_display = ('user', 'granted', 'updated_at')
