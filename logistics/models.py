"""
LOGISTICS App - Orders & Tracking for GoExpress

Handles: Orders (status state machine), Tracking pings
"""

import uuid
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


class OrderStatus(models.TextChoices):
    """Order status enumeration."""
    PENDING = 'pending', 'Pending'
    ASSIGNED = 'assigned', 'Driver assigned'
    PICKED_UP = 'picked_up', 'Picked up'
    IN_TRANSIT = 'in_transit', 'In transit'
    DELIVERED = 'delivered', 'Delivered'
    CANCELLED = 'cancelled', 'Cancelled'


# Legal next states for each state. DELIVERED and CANCELLED are terminal.
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.ASSIGNED, OrderStatus.CANCELLED}),
    OrderStatus.ASSIGNED: frozenset({OrderStatus.PICKED_UP, OrderStatus.CANCELLED}),
    OrderStatus.PICKED_UP: frozenset({OrderStatus.IN_TRANSIT, OrderStatus.CANCELLED}),
    OrderStatus.IN_TRANSIT: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Orders holding a driver
DRIVER_BOUND_STATUSES = (
    OrderStatus.ASSIGNED,
    OrderStatus.PICKED_UP,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
)

# Orders still on a driver's queue
OPEN_ASSIGNMENT_STATUSES = (
    OrderStatus.ASSIGNED,
    OrderStatus.PICKED_UP,
    OrderStatus.IN_TRANSIT,
)

# A driver holding one of these is busy, whatever its stored status says
IN_PROGRESS_STATUSES = (
    OrderStatus.PICKED_UP,
    OrderStatus.IN_TRANSIT,
)

# Lifecycle timestamp stamped when an order enters a status
STATUS_TIMESTAMP_FIELDS = {
    OrderStatus.ASSIGNED: 'assigned_at',
    OrderStatus.PICKED_UP: 'picked_up_at',
    OrderStatus.IN_TRANSIT: 'in_transit_at',
    OrderStatus.DELIVERED: 'delivered_at',
    OrderStatus.CANCELLED: 'cancelled_at',
}


def next_statuses(current) -> frozenset:
    """Statuses reachable in one step from `current` (empty if unknown)."""
    try:
        return ORDER_TRANSITIONS[OrderStatus(current)]
    except ValueError:
        return frozenset()


def can_transition(current, requested) -> bool:
    try:
        return OrderStatus(requested) in next_statuses(current)
    except ValueError:
        return False


def is_terminal(status) -> bool:
    return not next_statuses(status)


class OrderPriority(models.TextChoices):
    """Order priority, lowest to highest."""
    LOW = 'low', 'Low'
    NORMAL = 'normal', 'Normal'
    HIGH = 'high', 'High'
    URGENT = 'urgent', 'Urgent'


PRIORITY_RANK = {
    OrderPriority.LOW: 0,
    OrderPriority.NORMAL: 1,
    OrderPriority.HIGH: 2,
    OrderPriority.URGENT: 3,
}


class Order(models.Model):
    """
    Delivery order.

    Status and driver linkage change only through
    logistics.services.dispatch; the check constraints below keep the
    stored rows inside the state machine even if that rule is bypassed.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Actors
    customer = models.ForeignKey(
        'core.Customer',
        on_delete=models.PROTECT,
        related_name='orders',
        verbose_name="Customer"
    )
    driver = models.ForeignKey(
        'fleet.Driver',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='orders',
        verbose_name="Driver"
    )

    # Addresses & package
    pickup_address = models.CharField(max_length=255, verbose_name="Pickup address")
    delivery_address = models.CharField(max_length=255, verbose_name="Delivery address")
    package_description = models.TextField(blank=True, verbose_name="Package description")
    delivery_instructions = models.TextField(blank=True, verbose_name="Delivery instructions")

    priority = models.CharField(
        max_length=10,
        choices=OrderPriority.choices,
        default=OrderPriority.NORMAL,
        verbose_name="Priority"
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        verbose_name="Status"
    )
    notes = models.TextField(blank=True, verbose_name="Notes")

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    assigned_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    in_transit_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='logistics_o_status_3f2a61_idx'),
            models.Index(fields=['driver', 'status'], name='logistics_o_driver__8e4b27_idx'),
            models.Index(fields=['customer', 'created_at'], name='logistics_o_custome_a91c05_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(status__in=OrderStatus.values),
                name='order_status_valid',
            ),
            models.CheckConstraint(
                condition=Q(priority__in=OrderPriority.values),
                name='order_priority_valid',
            ),
            models.CheckConstraint(
                condition=(
                    Q(status=OrderStatus.PENDING, driver__isnull=True)
                    | Q(status__in=DRIVER_BOUND_STATUSES, driver__isnull=False)
                    | Q(status=OrderStatus.CANCELLED)
                ),
                name='order_driver_matches_status',
            ),
        ]

    def __str__(self):
        return f"Order {str(self.id)[:8]} - {self.status}"

    @property
    def allowed_next_statuses(self) -> list:
        return sorted(next_statuses(self.status))


class TrackingPing(models.Model):
    """
    One location fact reported by the assigned driver for an order.

    Append-only: pings are never updated or deleted.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name='tracking_pings',
        verbose_name="Order"
    )
    driver = models.ForeignKey(
        'fleet.Driver',
        on_delete=models.PROTECT,
        related_name='tracking_pings',
        verbose_name="Driver"
    )
    latitude = models.FloatField(verbose_name="Latitude")
    longitude = models.FloatField(verbose_name="Longitude")
    timestamp = models.DateTimeField(default=timezone.now, verbose_name="Reported at")
    recorded_at = models.DateTimeField(auto_now_add=True, verbose_name="Recorded at")

    class Meta:
        verbose_name = "Tracking ping"
        verbose_name_plural = "Tracking pings"
        ordering = ['-timestamp', '-id']
        indexes = [
            models.Index(fields=['order', '-timestamp'], name='logistics_t_order_i_5d7e90_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(latitude__gte=-90, latitude__lte=90),
                name='tracking_latitude_range',
            ),
            models.CheckConstraint(
                condition=Q(longitude__gte=-180, longitude__lte=180),
                name='tracking_longitude_range',
            ),
        ]

    def __str__(self):
        return f"{self.latitude:.5f},{self.longitude:.5f} @ {self.timestamp:%Y-%m-%d %H:%M:%S}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Tracking pings are append-only and cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Tracking pings are append-only and cannot be deleted.")
