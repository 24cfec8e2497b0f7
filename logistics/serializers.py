"""
Logistics App Serializers - Orders & Tracking
"""

from rest_framework import serializers

from .models import Order, OrderPriority, OrderStatus, TrackingPing


class OrderSerializer(serializers.ModelSerializer):
    """Full, read-only representation of an order."""

    customer_id = serializers.UUIDField(read_only=True)
    customer_name = serializers.CharField(source='customer.user.full_name', read_only=True)
    driver_id = serializers.UUIDField(read_only=True, allow_null=True)
    driver_name = serializers.CharField(source='driver.name', read_only=True, default=None)
    allowed_next_statuses = serializers.ListField(child=serializers.CharField(), read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customer_id', 'customer_name', 'driver_id', 'driver_name',
            'pickup_address', 'delivery_address',
            'package_description', 'delivery_instructions',
            'priority', 'status', 'allowed_next_statuses', 'notes',
            'created_at', 'updated_at', 'assigned_at', 'picked_up_at',
            'in_transit_at', 'delivered_at', 'cancelled_at',
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order listings."""

    customer_id = serializers.UUIDField(read_only=True)
    driver_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customer_id', 'driver_id', 'pickup_address', 'delivery_address',
            'priority', 'status', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class OrderCreateSerializer(serializers.Serializer):
    """Serializer for placing an order. Customers may omit customer_id."""

    customer_id = serializers.UUIDField(required=False)
    pickup_address = serializers.CharField(max_length=255)
    delivery_address = serializers.CharField(max_length=255)
    package_description = serializers.CharField(required=False, allow_blank=True, default='')
    delivery_instructions = serializers.CharField(required=False, allow_blank=True, default='')
    priority = serializers.ChoiceField(choices=OrderPriority.choices, default=OrderPriority.NORMAL)


class OrderStatusUpdateSerializer(serializers.Serializer):
    """Serializer for requesting a status change."""

    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=2000)


class DriverAssignSerializer(serializers.Serializer):
    """Serializer for driver assignment."""

    driver_id = serializers.UUIDField()


class PendingQuerySerializer(serializers.Serializer):
    """
    Raw `driver_id`; the dispatch service parses it for staff callers and
    ignores it for drivers.
    """

    driver_id = serializers.CharField(required=False, allow_blank=True)


class TrackingPingSerializer(serializers.ModelSerializer):

    class Meta:
        model = TrackingPing
        fields = ['id', 'order', 'driver', 'latitude', 'longitude', 'timestamp', 'recorded_at']
        read_only_fields = fields


class LocationUpdateSerializer(serializers.Serializer):
    """Serializer for a single location update from a driver."""

    order_id = serializers.UUIDField()
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    timestamp = serializers.DateTimeField(required=False)


class BatchLocationUpdateSerializer(serializers.Serializer):
    """
    Serializer for an offline batch.

    Entries are validated one by one by the tracking service, which drops
    bad ones instead of rejecting the whole batch.
    """

    updates = serializers.ListField(allow_empty=False)
