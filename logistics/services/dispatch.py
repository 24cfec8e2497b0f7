"""
LOGISTICS App - Dispatch Service for GoExpress

Order lifecycle: creation, status changes, driver assignment and the
role-scoped read paths over orders and drivers.
"""

import logging
import uuid
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Case, IntegerField, QuerySet, Value, When
from django.utils import timezone

from core.exceptions import (
    DriverUnavailable,
    InvalidInput,
    InvalidTransition,
    NotFound,
    OrderNotPending,
    guard_persistence,
)
from core.identity import CallerIdentity
from core.models import Customer
from fleet.models import Driver, DriverStatus
from logistics.models import (
    IN_PROGRESS_STATUSES,
    OPEN_ASSIGNMENT_STATUSES,
    PRIORITY_RANK,
    STATUS_TIMESTAMP_FIELDS,
    Order,
    OrderPriority,
    OrderStatus,
    can_transition,
)
from logistics.policies import Action, authorize

logger = logging.getLogger(__name__)


# ============================================
# LOOKUPS
# ============================================

def load_order(order_id, for_update: bool = False) -> Order:
    """
    Fetch an order by id, optionally taking a row lock.

    Raises:
        NotFound: unknown or malformed id
    """
    queryset = Order.objects.select_for_update() if for_update else Order.objects.all()
    try:
        return queryset.get(pk=order_id)
    except (Order.DoesNotExist, ValidationError, ValueError):
        raise NotFound(f"Order {order_id} not found", code='ORDER_NOT_FOUND')


def _load_driver(driver_id, for_update: bool = False) -> Driver:
    queryset = Driver.objects.select_for_update() if for_update else Driver.objects.all()
    try:
        return queryset.get(pk=driver_id)
    except (Driver.DoesNotExist, ValidationError, ValueError):
        raise NotFound(f"Driver {driver_id} not found", code='DRIVER_NOT_FOUND')


def _as_uuid(value, field: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise InvalidInput(f"'{field}' must be a valid UUID", code='INVALID_INPUT', field=field)


def busy_driver_ids() -> QuerySet:
    """Ids of drivers currently holding a picked-up or in-transit order."""
    return Order.objects.filter(
        status__in=IN_PROGRESS_STATUSES,
        driver__isnull=False,
    ).values_list('driver_id', flat=True)


def is_driver_busy(driver_id) -> bool:
    return Order.objects.filter(status__in=IN_PROGRESS_STATUSES, driver_id=driver_id).exists()


def priority_rank_expression() -> Case:
    """SQL expression ranking priorities urgent > high > normal > low."""
    return Case(
        *[When(priority=priority, then=Value(rank)) for priority, rank in PRIORITY_RANK.items()],
        default=Value(PRIORITY_RANK[OrderPriority.NORMAL]),
        output_field=IntegerField(),
    )


# ============================================
# ORDER LIFECYCLE
# ============================================

@guard_persistence('create_order')
def create_order(
    caller: CallerIdentity,
    customer_id,
    pickup_address: str,
    delivery_address: str,
    package_description: str = '',
    delivery_instructions: str = '',
    priority: str = OrderPriority.NORMAL,
) -> Order:
    """
    Create a pending order for a customer.

    Customers may only order for themselves; staff may order on behalf
    of any customer.

    Raises:
        InvalidInput: missing address or unknown priority
        AccessDenied: customer ordering for someone else
        NotFound: unknown customer
    """
    if not pickup_address or not delivery_address:
        raise InvalidInput(
            "Pickup and delivery addresses are required.",
            code='MISSING_ADDRESS',
        )
    if priority not in OrderPriority.values:
        raise InvalidInput(f"Unknown priority '{priority}'", code='INVALID_PRIORITY')

    authorize(Action.CREATE_ORDER, caller, customer_id=customer_id)

    try:
        customer = Customer.objects.get(pk=customer_id)
    except (Customer.DoesNotExist, ValidationError, ValueError):
        raise NotFound(f"Customer {customer_id} not found", code='CUSTOMER_NOT_FOUND')

    order = Order.objects.create(
        customer=customer,
        pickup_address=pickup_address,
        delivery_address=delivery_address,
        package_description=package_description or '',
        delivery_instructions=delivery_instructions or '',
        priority=priority,
        status=OrderStatus.PENDING,
    )

    logger.info(
        f"[DISPATCH] Order {str(order.id)[:8]} created for customer {customer.pk} | "
        f"priority={order.priority} by {caller.role}"
    )
    return order


@guard_persistence('request_status_change')
@transaction.atomic
def request_status_change(
    order_id,
    requested_status: str,
    caller: CallerIdentity,
    notes: Optional[str] = None,
) -> Order:
    """
    Move an order to `requested_status` (race condition safe).

    The order row stays locked from the existence check to the write, so
    two concurrent requests are serialized and the second one is judged
    against the state the first one left behind.

    Checks run in this order: existence, permission, transition.

    Raises:
        NotFound: unknown order
        AccessDenied: caller may not change this order's status
        InvalidTransition: requested status is not reachable from the
            current one, or is `assigned` (use assign_driver)
    """
    order = load_order(order_id, for_update=True)

    authorize(Action.CHANGE_STATUS, caller, order, requested_status=requested_status)

    current_status = order.status
    if not can_transition(current_status, requested_status):
        logger.info(
            f"[DISPATCH] Rejected {current_status} -> {requested_status} "
            f"on order {str(order.id)[:8]}"
        )
        raise InvalidTransition(current_status, requested_status)

    if requested_status == OrderStatus.ASSIGNED:
        raise InvalidTransition(
            current_status,
            requested_status,
            message="Use driver assignment to move an order to assigned",
            code='DRIVER_REQUIRED',
        )

    new_status = OrderStatus(requested_status)
    now = timezone.now()
    update_fields = ['status', 'updated_at']

    order.status = new_status
    stamp_field = STATUS_TIMESTAMP_FIELDS.get(new_status)
    if stamp_field:
        setattr(order, stamp_field, now)
        update_fields.append(stamp_field)

    if notes:
        order.notes = f"{order.notes}\n{notes}" if order.notes else notes
        update_fields.append('notes')

    order.save(update_fields=update_fields)

    logger.info(
        f"[DISPATCH] Order {str(order.id)[:8]} {current_status} -> {new_status} "
        f"by {caller.role} {caller.id}"
    )
    return order


@guard_persistence('assign_driver')
@transaction.atomic
def assign_driver(order_id, driver_id, caller: CallerIdentity) -> Order:
    """
    Dispatch a pending order to a driver (race condition safe).

    Both the order and the driver rows are locked, so one driver cannot be
    handed the same order twice and one order cannot go to two drivers.

    Raises:
        AccessDenied: caller is not staff
        NotFound: unknown order or driver
        OrderNotPending: order already left `pending`
        DriverUnavailable: driver not active, or busy with an order in progress
    """
    authorize(Action.ASSIGN_DRIVER, caller)

    order = load_order(order_id, for_update=True)
    driver = _load_driver(driver_id, for_update=True)

    if order.status != OrderStatus.PENDING:
        raise OrderNotPending(order.status)
    if driver.status != DriverStatus.ACTIVE:
        logger.info(f"[DISPATCH] Driver {driver.pk} not active (status: {driver.status})")
        raise DriverUnavailable()
    if is_driver_busy(driver.pk):
        logger.info(f"[DISPATCH] Driver {driver.pk} busy with an order in progress")
        raise DriverUnavailable(
            "Driver is currently handling an order in progress.",
            code='DRIVER_BUSY',
        )

    order.driver = driver
    order.status = OrderStatus.ASSIGNED
    order.assigned_at = timezone.now()
    order.save(update_fields=['driver', 'status', 'assigned_at', 'updated_at'])

    logger.info(
        f"[DISPATCH] Order {str(order.id)[:8]} assigned to driver {driver.pk} "
        f"by {caller.role} {caller.id}"
    )
    return order


# ============================================
# READ PATHS
# ============================================

def list_available_drivers(vehicle_type: Optional[str] = None) -> QuerySet:
    """Active drivers minus those busy with an order in progress, by name."""
    drivers = Driver.objects.filter(
        status=DriverStatus.ACTIVE,
    ).exclude(
        pk__in=busy_driver_ids(),
    ).select_related('user')

    if vehicle_type:
        drivers = drivers.filter(vehicle_type__iexact=vehicle_type)

    return drivers.order_by('user__full_name', 'user__email')


def list_pending_for_driver(caller: CallerIdentity, driver_id=None) -> QuerySet:
    """
    Orders still on a driver's queue (assigned, picked up, in transit).

    A driver always sees only their own queue; `driver_id` is honoured
    for staff only. Ordered by priority (urgent first), then oldest first.
    """
    authorize(Action.LIST_PENDING, caller)

    orders = Order.objects.filter(
        status__in=OPEN_ASSIGNMENT_STATUSES,
    ).select_related('customer__user', 'driver__user')

    if caller.is_driver:
        if driver_id and str(driver_id) != str(caller.id):
            logger.debug(f"[DISPATCH] Ignoring driver_id={driver_id} from driver {caller.id}")
        orders = orders.filter(driver_id=caller.id)
    elif driver_id:
        orders = orders.filter(driver_id=_as_uuid(driver_id, 'driver_id'))

    return orders.annotate(
        priority_order=priority_rank_expression(),
    ).order_by('-priority_order', 'created_at')


def visible_orders(caller: CallerIdentity) -> QuerySet:
    """Orders the caller may list: everything for staff, own orders otherwise."""
    orders = Order.objects.select_related('customer__user', 'driver__user')

    if caller.is_staff_role:
        return orders
    if caller.is_customer:
        return orders.filter(customer_id=caller.id)
    if caller.is_driver:
        return orders.filter(driver_id=caller.id)
    return orders.none()


@guard_persistence('get_order_for')
def get_order_for(caller: CallerIdentity, order_id) -> Order:
    order = load_order(order_id)
    authorize(Action.VIEW_ORDER, caller, order)
    return order
