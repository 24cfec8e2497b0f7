"""
Django Admin configuration for FLEET app.
"""

from django.contrib import admin
from .models import Driver, DriverStatus


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ('user', 'vehicle_type', 'license_number', 'status', 'created_at')
    list_filter = ('status', 'vehicle_type')
    search_fields = ('user__email', 'user__full_name', 'user__phone', 'license_number')
    raw_id_fields = ('user',)
    readonly_fields = ('created_at', 'updated_at')

    actions = ['mark_offline']

    @admin.action(description="Mark selected drivers offline")
    def mark_offline(self, request, queryset):
        updated = queryset.update(status=DriverStatus.OFFLINE)
        self.message_user(request, f"{updated} driver(s) marked offline.")
