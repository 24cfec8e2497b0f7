"""
Django Admin configuration for LOGISTICS app.

Order status and driver are read-only here: lifecycle changes go through
the dispatch service so the transition rules apply.
"""

from django.contrib import admin
from .models import Order, TrackingPing


class TrackingPingInline(admin.TabularInline):
    model = TrackingPing
    extra = 0
    can_delete = False
    fields = ('timestamp', 'latitude', 'longitude', 'driver', 'recorded_at')
    readonly_fields = fields
    ordering = ('-timestamp',)

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('short_id', 'customer', 'driver', 'status', 'priority', 'created_at')
    list_filter = ('status', 'priority', 'created_at')
    search_fields = ('id', 'customer__user__email', 'driver__user__email', 'pickup_address', 'delivery_address')
    raw_id_fields = ('customer',)
    readonly_fields = (
        'id', 'status', 'driver', 'created_at', 'updated_at', 'assigned_at',
        'picked_up_at', 'in_transit_at', 'delivered_at', 'cancelled_at',
    )
    inlines = [TrackingPingInline]

    fieldsets = (
        (None, {
            'fields': ('id', 'customer', 'driver', 'status', 'priority')
        }),
        ('Package', {
            'fields': ('pickup_address', 'delivery_address', 'package_description',
                       'delivery_instructions', 'notes')
        }),
        ('Lifecycle', {
            'fields': ('created_at', 'updated_at', 'assigned_at', 'picked_up_at',
                       'in_transit_at', 'delivered_at', 'cancelled_at'),
            'classes': ('collapse',)
        }),
    )

    @admin.display(description="Order")
    def short_id(self, obj):
        return str(obj.id)[:8]


@admin.register(TrackingPing)
class TrackingPingAdmin(admin.ModelAdmin):
    list_display = ('order', 'driver', 'latitude', 'longitude', 'timestamp', 'recorded_at')
    list_filter = ('timestamp',)
    search_fields = ('order__id',)
    readonly_fields = ('order', 'driver', 'latitude', 'longitude', 'timestamp', 'recorded_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
