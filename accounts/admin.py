from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User, UserRole

if admin.site.is_registered(User):
    admin.site.unregister(User)


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0


class ProfileUserAdmin(UserAdmin):
    """User admin with the profile fields and role rows on one page."""

    model = User
    list_display = ['email', 'full_name', 'phone', 'is_staff', 'date_joined']
    search_fields = ['email', 'full_name', 'phone']
    ordering = ['-date_joined']

    fieldsets = UserAdmin.fieldsets + (
        ('Profile', {'fields': ('full_name', 'phone', 'address', 'avatar')}),
    )
    inlines = [UserRoleInline]


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ('user', 'role')
    list_filter = ('role',)
    search_fields = ('user__email', 'user__full_name')


admin.site.register(User, ProfileUserAdmin)
