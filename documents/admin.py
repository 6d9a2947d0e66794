from django.contrib import admin

from .models import UserDocument


@admin.register(UserDocument)
class UserDocumentAdmin(admin.ModelAdmin):
    list_display = ('file_name', 'user', 'document_type', 'created_at')
    list_filter = ('document_type',)
    search_fields = ('file_name', 'user__email', 'user__full_name')
