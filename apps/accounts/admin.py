# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import User, UserProfile, UserType


class UserProfileInline(admin.StackedInline):
    model = UserProfile
    can_delete = False
    readonly_fields = ['created_at', 'updated_at']


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for accounts.

    Lists customers, admins and drivers with their role badge and lets
    staff edit the synced profile inline.
    """

    list_display = [
        'email',
        'user_type_badge',
        'is_active',
        'is_staff',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'user_type',
        'is_active',
        'is_staff',
        'is_superuser',
        'created_at',
    ]

    search_fields = ['email', 'profile__full_name', 'profile__phone']

    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'user_type', 'password')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'user_type', 'password1', 'password2'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser'),
        }),
    )

    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = ['groups', 'user_permissions']
    inlines = [UserProfileInline]

    BADGE_COLORS = {
        UserType.CUSTOMER: '#6B8E5E',
        UserType.ADMIN: '#A47449',
        UserType.DELIVERY_DRIVER: '#4A6FA5',
    }

    def user_type_badge(self, obj):
        """Display user type as colored badge."""
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            self.BADGE_COLORS.get(obj.user_type, '#ccc'),
            obj.get_user_type_display(),
        )
    user_type_badge.short_description = 'Type'
    user_type_badge.admin_order_field = 'user_type'
