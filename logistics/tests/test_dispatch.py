"""
Dispatch Engine Tests
=====================

Tests for:
1. Transition table enforcement
2. Customer cancellation rule
3. Driver assignment (active, derived busy, pending only)
4. Available drivers and pending queue read paths
5. Storage failures surfacing as Unavailable
"""

import uuid
from unittest.mock import patch

from django.db import OperationalError
from django.test import TestCase

from core.exceptions import (
    AccessDenied,
    DriverUnavailable,
    InvalidInput,
    InvalidTransition,
    NotFound,
    OrderNotPending,
    Unavailable,
)
from core.models import UserRole
from fleet.models import Driver, DriverStatus
from logistics.models import (
    DRIVER_BOUND_STATUSES,
    ORDER_TRANSITIONS,
    Order,
    OrderPriority,
    OrderStatus,
    can_transition,
    is_terminal,
)
from logistics.services import dispatch

from .helpers import caller_for, make_customer, make_driver, make_order, make_staff


class TestTransitionTable(TestCase):
    """The table itself, then the engine enforcing it on stored orders."""

    def setUp(self):
        self.admin = caller_for(make_staff('admin@test.local', UserRole.ADMIN))
        self.customer = make_customer()
        self.driver = make_driver()

    def _order_in(self, status):
        driver = self.driver if status in DRIVER_BOUND_STATUSES else None
        return make_order(self.customer, status=status, driver=driver)

    def test_table_covers_every_status(self):
        self.assertEqual(set(ORDER_TRANSITIONS), set(OrderStatus))

    def test_terminal_statuses_have_no_exit(self):
        self.assertTrue(is_terminal(OrderStatus.DELIVERED))
        self.assertTrue(is_terminal(OrderStatus.CANCELLED))
        for requested in OrderStatus.values:
            self.assertFalse(can_transition(OrderStatus.DELIVERED, requested))
            self.assertFalse(can_transition(OrderStatus.CANCELLED, requested))

    def test_unknown_statuses_never_transition(self):
        self.assertFalse(can_transition('pending', 'lost'))
        self.assertFalse(can_transition('lost', 'pending'))

    def test_every_pair_outside_the_table_is_rejected(self):
        for current in OrderStatus:
            for requested in OrderStatus:
                if requested in ORDER_TRANSITIONS[current]:
                    continue
                order = self._order_in(current)
                with self.subTest(current=current.value, requested=requested.value):
                    with self.assertRaises(InvalidTransition) as ctx:
                        dispatch.request_status_change(order.id, requested.value, self.admin)
                    self.assertEqual(ctx.exception.details['current_status'], current)
                    self.assertEqual(ctx.exception.details['requested_status'], requested.value)
                    order.refresh_from_db()
                    self.assertEqual(order.status, current)

    def test_assigned_requires_the_assignment_operation(self):
        order = self._order_in(OrderStatus.PENDING)
        with self.assertRaises(InvalidTransition) as ctx:
            dispatch.request_status_change(order.id, 'assigned', self.admin)
        self.assertEqual(ctx.exception.code, 'DRIVER_REQUIRED')

    def test_legal_moves_stamp_lifecycle_timestamps(self):
        order = self._order_in(OrderStatus.ASSIGNED)

        dispatch.request_status_change(order.id, 'picked_up', self.admin)
        dispatch.request_status_change(order.id, 'in_transit', self.admin)
        dispatch.request_status_change(order.id, 'delivered', self.admin)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.DELIVERED)
        self.assertIsNotNone(order.picked_up_at)
        self.assertIsNotNone(order.in_transit_at)
        self.assertIsNotNone(order.delivered_at)
        self.assertIsNone(order.cancelled_at)

    def test_notes_are_appended(self):
        order = self._order_in(OrderStatus.PENDING)
        order.notes = 'Fragile'
        order.save(update_fields=['notes'])

        dispatch.request_status_change(order.id, 'cancelled', self.admin, notes='Customer called')

        order.refresh_from_db()
        self.assertEqual(order.notes, 'Fragile\nCustomer called')
        self.assertIsNotNone(order.cancelled_at)

    def test_unknown_order(self):
        with self.assertRaises(NotFound) as ctx:
            dispatch.request_status_change(uuid.uuid4(), 'cancelled', self.admin)
        self.assertEqual(ctx.exception.code, 'ORDER_NOT_FOUND')

    def test_malformed_order_id_is_not_found(self):
        with self.assertRaises(NotFound):
            dispatch.request_status_change('not-a-uuid', 'cancelled', self.admin)


class TestCustomerCancellation(TestCase):

    def setUp(self):
        self.customer = make_customer('owner@test.local')
        self.caller = caller_for(self.customer)
        self.driver = make_driver()

    def test_customer_cancels_own_pending_order(self):
        order = make_order(self.customer)
        dispatch.request_status_change(order.id, 'cancelled', self.caller)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.CANCELLED)

    def test_every_other_customer_move_is_denied(self):
        for current in OrderStatus:
            for requested in OrderStatus:
                if current == OrderStatus.PENDING and requested == OrderStatus.CANCELLED:
                    continue
                driver = self.driver if current in DRIVER_BOUND_STATUSES else None
                order = make_order(self.customer, status=current, driver=driver)
                with self.subTest(current=current.value, requested=requested.value):
                    with self.assertRaises(AccessDenied):
                        dispatch.request_status_change(order.id, requested.value, self.caller)

    def test_cannot_cancel_someone_elses_order(self):
        order = make_order(make_customer('other@test.local'))
        with self.assertRaises(AccessDenied):
            dispatch.request_status_change(order.id, 'cancelled', self.caller)


class TestDriverStatusChanges(TestCase):

    def setUp(self):
        self.customer = make_customer()
        self.driver = make_driver('d1@test.local')
        self.other_driver = make_driver('d2@test.local')

    def test_driver_moves_own_order(self):
        order = make_order(self.customer, status=OrderStatus.ASSIGNED, driver=self.driver)
        dispatch.request_status_change(order.id, 'picked_up', caller_for(self.driver))
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PICKED_UP)

    def test_driver_cannot_touch_other_assignment(self):
        order = make_order(self.customer, status=OrderStatus.ASSIGNED, driver=self.other_driver)
        with self.assertRaises(AccessDenied):
            dispatch.request_status_change(order.id, 'picked_up', caller_for(self.driver))

    def test_permission_is_checked_before_the_transition(self):
        # Illegal move by an unauthorized caller reports the permission failure
        order = make_order(self.customer, status=OrderStatus.ASSIGNED, driver=self.other_driver)
        with self.assertRaises(AccessDenied):
            dispatch.request_status_change(order.id, 'delivered', caller_for(self.driver))

    def test_second_conflicting_change_sees_the_first(self):
        order = make_order(self.customer, status=OrderStatus.ASSIGNED, driver=self.driver)
        admin = caller_for(make_staff())

        dispatch.request_status_change(order.id, 'cancelled', admin)
        with self.assertRaises(InvalidTransition) as ctx:
            dispatch.request_status_change(order.id, 'picked_up', caller_for(self.driver))

        self.assertEqual(ctx.exception.details['current_status'], OrderStatus.CANCELLED)
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.CANCELLED)


class TestAssignDriver(TestCase):

    def setUp(self):
        self.admin = caller_for(make_staff())
        self.customer = make_customer()
        self.driver = make_driver()
        self.order = make_order(self.customer)

    def test_assigns_active_free_driver(self):
        order = dispatch.assign_driver(self.order.id, self.driver.pk, self.admin)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.ASSIGNED)
        self.assertEqual(order.driver_id, self.driver.pk)
        self.assertIsNotNone(order.assigned_at)

    def test_staff_roles_only(self):
        for caller in [caller_for(self.customer), caller_for(self.driver)]:
            with self.assertRaises(AccessDenied):
                dispatch.assign_driver(self.order.id, self.driver.pk, caller)

        manager = caller_for(make_staff('manager@test.local', UserRole.MANAGER))
        dispatch.assign_driver(self.order.id, self.driver.pk, manager)

    def test_driver_must_be_active(self):
        for index, driver_status in enumerate([DriverStatus.INACTIVE, DriverStatus.BUSY, DriverStatus.OFFLINE]):
            driver = make_driver(f'idle{index}@test.local', status=driver_status)
            with self.assertRaises(DriverUnavailable):
                dispatch.assign_driver(self.order.id, driver.pk, self.admin)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.PENDING)
        self.assertIsNone(self.order.driver_id)

    def test_derived_busy_driver_is_refused(self):
        make_order(self.customer, status=OrderStatus.IN_TRANSIT, driver=self.driver)

        with self.assertRaises(DriverUnavailable) as ctx:
            dispatch.assign_driver(self.order.id, self.driver.pk, self.admin)
        self.assertEqual(ctx.exception.code, 'DRIVER_BUSY')

    def test_order_must_be_pending(self):
        dispatch.assign_driver(self.order.id, self.driver.pk, self.admin)
        second = make_driver('second@test.local')

        with self.assertRaises(OrderNotPending) as ctx:
            dispatch.assign_driver(self.order.id, second.pk, self.admin)
        self.assertIsInstance(ctx.exception, InvalidTransition)
        self.assertEqual(ctx.exception.code, 'ORDER_NOT_PENDING')

        self.order.refresh_from_db()
        self.assertEqual(self.order.driver_id, self.driver.pk)

    def test_unknown_driver(self):
        with self.assertRaises(NotFound) as ctx:
            dispatch.assign_driver(self.order.id, uuid.uuid4(), self.admin)
        self.assertEqual(ctx.exception.code, 'DRIVER_NOT_FOUND')

    def test_unknown_driver_is_reported_before_order_state(self):
        self.order.status = OrderStatus.CANCELLED
        self.order.save(update_fields=['status'])

        with self.assertRaises(NotFound) as ctx:
            dispatch.assign_driver(self.order.id, uuid.uuid4(), self.admin)
        self.assertEqual(ctx.exception.code, 'DRIVER_NOT_FOUND')


class TestRowLocks(TestCase):
    """Mutations read the rows they change through select_for_update."""

    def setUp(self):
        self.admin = caller_for(make_staff())
        self.driver = make_driver()
        self.order = make_order(make_customer())

    def test_status_change_locks_the_order(self):
        with patch.object(Order.objects, 'select_for_update', wraps=Order.objects.select_for_update) as lock:
            dispatch.request_status_change(self.order.id, 'cancelled', self.admin)
        lock.assert_called_once_with()

    def test_assignment_locks_order_and_driver(self):
        with patch.object(Order.objects, 'select_for_update', wraps=Order.objects.select_for_update) as order_lock, \
                patch.object(Driver.objects, 'select_for_update', wraps=Driver.objects.select_for_update) as driver_lock:
            dispatch.assign_driver(self.order.id, self.driver.pk, self.admin)

        order_lock.assert_called_once_with()
        driver_lock.assert_called_once_with()
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.ASSIGNED)

    def test_read_paths_do_not_lock(self):
        with patch.object(Order.objects, 'select_for_update') as lock:
            dispatch.get_order_for(self.admin, self.order.id)
            list(dispatch.visible_orders(self.admin))
        lock.assert_not_called()


class TestCreateOrder(TestCase):

    def setUp(self):
        self.customer = make_customer()

    def test_customer_orders_for_themselves(self):
        order = dispatch.create_order(
            caller_for(self.customer),
            self.customer.pk,
            pickup_address='1 Depot Lane',
            delivery_address='2 Home Street',
            priority=OrderPriority.HIGH,
        )
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertIsNone(order.driver_id)
        self.assertEqual(order.customer_id, self.customer.pk)

    def test_customer_cannot_order_for_someone_else(self):
        other = make_customer('other@test.local')
        with self.assertRaises(AccessDenied):
            dispatch.create_order(caller_for(self.customer), other.pk, 'a', 'b')

    def test_staff_orders_on_behalf_of_customer(self):
        staff = caller_for(make_staff('desk@test.local', UserRole.STAFF))
        order = dispatch.create_order(staff, self.customer.pk, 'a', 'b')
        self.assertEqual(order.customer_id, self.customer.pk)

    def test_unknown_customer(self):
        staff = caller_for(make_staff())
        with self.assertRaises(NotFound) as ctx:
            dispatch.create_order(staff, uuid.uuid4(), 'a', 'b')
        self.assertEqual(ctx.exception.code, 'CUSTOMER_NOT_FOUND')

    def test_addresses_and_priority_are_validated(self):
        caller = caller_for(self.customer)
        with self.assertRaises(InvalidInput):
            dispatch.create_order(caller, self.customer.pk, '', 'b')
        with self.assertRaises(InvalidInput):
            dispatch.create_order(caller, self.customer.pk, 'a', 'b', priority='asap')


class TestAvailableDrivers(TestCase):

    def setUp(self):
        self.customer = make_customer()

    def test_excludes_derived_busy_and_inactive_drivers(self):
        free = make_driver('free@test.local', full_name='Alpha')
        assigned_only = make_driver('assigned@test.local', full_name='Bravo')
        picking_up = make_driver('pickup@test.local', full_name='Charlie')
        driving = make_driver('driving@test.local', full_name='Delta')
        make_driver('off@test.local', full_name='Echo', status=DriverStatus.OFFLINE)

        make_order(self.customer, status=OrderStatus.ASSIGNED, driver=assigned_only)
        make_order(self.customer, status=OrderStatus.PICKED_UP, driver=picking_up)
        make_order(self.customer, status=OrderStatus.IN_TRANSIT, driver=driving)

        available = list(dispatch.list_available_drivers())

        self.assertEqual(available, [free, assigned_only])
        self.assertEqual(picking_up.status, DriverStatus.ACTIVE)

    def test_finished_orders_free_the_driver(self):
        driver = make_driver()
        make_order(self.customer, status=OrderStatus.DELIVERED, driver=driver)
        self.assertIn(driver, list(dispatch.list_available_drivers()))

    def test_vehicle_type_filter(self):
        bike = make_driver('bike@test.local', vehicle_type='bike')
        make_driver('van@test.local', vehicle_type='van')

        self.assertEqual(list(dispatch.list_available_drivers('BIKE')), [bike])


class TestPendingQueue(TestCase):

    def setUp(self):
        self.customer = make_customer()
        self.driver_x = make_driver('x@test.local')
        self.driver_y = make_driver('y@test.local')

        self.x_normal = make_order(self.customer, status=OrderStatus.ASSIGNED, driver=self.driver_x)
        self.x_urgent = make_order(
            self.customer, status=OrderStatus.PICKED_UP, driver=self.driver_x, priority=OrderPriority.URGENT
        )
        self.x_low = make_order(
            self.customer, status=OrderStatus.IN_TRANSIT, driver=self.driver_x, priority=OrderPriority.LOW
        )
        self.x_done = make_order(self.customer, status=OrderStatus.DELIVERED, driver=self.driver_x)
        self.y_high = make_order(
            self.customer, status=OrderStatus.ASSIGNED, driver=self.driver_y, priority=OrderPriority.HIGH
        )

    def test_driver_sees_only_own_queue_whatever_the_query(self):
        orders = list(dispatch.list_pending_for_driver(caller_for(self.driver_x), driver_id=self.driver_y.pk))
        self.assertEqual(orders, [self.x_urgent, self.x_normal, self.x_low])

    def test_staff_can_filter_by_driver(self):
        admin = caller_for(make_staff())
        orders = list(dispatch.list_pending_for_driver(admin, driver_id=self.driver_y.pk))
        self.assertEqual(orders, [self.y_high])

    def test_staff_sees_all_open_assignments_by_priority(self):
        admin = caller_for(make_staff())
        orders = list(dispatch.list_pending_for_driver(admin))
        self.assertEqual(orders, [self.x_urgent, self.y_high, self.x_normal, self.x_low])

    def test_same_priority_oldest_first(self):
        later = make_order(self.customer, status=OrderStatus.ASSIGNED, driver=self.driver_x)
        orders = list(dispatch.list_pending_for_driver(caller_for(self.driver_x)))
        self.assertLess(orders.index(self.x_normal), orders.index(later))

    def test_customers_cannot_read_the_queue(self):
        with self.assertRaises(AccessDenied):
            dispatch.list_pending_for_driver(caller_for(self.customer))


class TestVisibility(TestCase):

    def setUp(self):
        self.alice = make_customer('alice@test.local')
        self.bob = make_customer('bob@test.local')
        self.driver = make_driver()
        self.alice_order = make_order(self.alice, status=OrderStatus.ASSIGNED, driver=self.driver)
        self.bob_order = make_order(self.bob)

    def test_scoped_lists(self):
        self.assertEqual(list(dispatch.visible_orders(caller_for(self.alice))), [self.alice_order])
        self.assertEqual(list(dispatch.visible_orders(caller_for(self.driver))), [self.alice_order])
        self.assertEqual(dispatch.visible_orders(caller_for(make_staff())).count(), 2)

    def test_get_order_for_checks_existence_then_permission(self):
        with self.assertRaises(NotFound):
            dispatch.get_order_for(caller_for(self.alice), uuid.uuid4())
        with self.assertRaises(AccessDenied):
            dispatch.get_order_for(caller_for(self.alice), self.bob_order.id)
        self.assertEqual(dispatch.get_order_for(caller_for(self.bob), self.bob_order.id), self.bob_order)


class TestStorageFailure(TestCase):

    def test_database_error_becomes_unavailable(self):
        admin = caller_for(make_staff())
        order = make_order(make_customer())

        with patch('logistics.services.dispatch.load_order', side_effect=OperationalError('server closed')):
            with self.assertLogs('core.exceptions', level='ERROR') as logs:
                with self.assertRaises(Unavailable) as ctx:
                    dispatch.request_status_change(order.id, 'cancelled', admin)

        self.assertEqual(ctx.exception.status_code, 503)
        self.assertIn('request_status_change', logs.output[0])
        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PENDING)


class TestScenario(TestCase):
    """Create, assign, pick up, customer cancel attempt, skipped step."""

    def test_dispatch_story(self):
        customer = make_customer()
        driver = make_driver()
        admin = caller_for(make_staff())

        order = dispatch.create_order(caller_for(customer), customer.pk, 'Depot', 'Home')
        self.assertEqual(order.status, OrderStatus.PENDING)

        order = dispatch.assign_driver(order.id, driver.pk, admin)
        self.assertEqual(order.status, OrderStatus.ASSIGNED)
        self.assertEqual(order.driver_id, driver.pk)

        order = dispatch.request_status_change(order.id, 'picked_up', caller_for(driver))
        self.assertEqual(order.status, OrderStatus.PICKED_UP)

        with self.assertRaises(AccessDenied):
            dispatch.request_status_change(order.id, 'cancelled', caller_for(customer))

        with self.assertRaises(InvalidTransition):
            dispatch.request_status_change(order.id, 'delivered', caller_for(driver))

        self.assertEqual(Order.objects.get(pk=order.id).status, OrderStatus.PICKED_UP)
