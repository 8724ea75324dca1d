"""
Django admin registrations for the registry models.

Superusers can inspect and correct registry data through the built-in
``/admin/`` site.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    Baby,
    Location,
    Mother,
    Notification,
    Permission,
    Role,
    User,
    UserNotification,
)


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'type', 'parent', 'created_at')
    list_filter = ('type',)
    search_fields = ('name',)
    filter_horizontal = ('users',)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'location', 'is_active', 'is_superuser')
    list_filter = ('role', 'is_active')
    search_fields = ('email', 'name')


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ('id', 'name')
    filter_horizontal = ('permissions',)


@admin.register(Permission)
class PermissionAdmin(admin.ModelAdmin):
    list_display = ('action', 'description')
    search_fields = ('action',)


class MotherInline(admin.StackedInline):
    model = Mother
    extra = 0


class BabyInline(admin.TabularInline):
    model = Baby
    extra = 0


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'facility_name', 'location', 'date_of_notification', 'created_by')
    list_filter = ('date_of_notification',)
    search_fields = ('facility_name', 'mfl_code', 'county', 'sub_county')
    inlines = [MotherInline, BabyInline]


@admin.register(UserNotification)
class UserNotificationAdmin(admin.ModelAdmin):
    list_display = ('notification', 'user', 'is_read', 'created_at')
    list_filter = ('is_read',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'user', 'action', 'object_type', 'object_id')
    list_filter = ('action',)
