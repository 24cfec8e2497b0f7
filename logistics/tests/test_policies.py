"""
Role policy tests - no database, plain identities and order stand-ins.
"""

import uuid
from types import SimpleNamespace

from django.test import SimpleTestCase

from core.exceptions import AccessDenied
from core.identity import CallerIdentity
from core.models import UserRole
from logistics.models import OrderStatus
from logistics.policies import Action, authorize, is_allowed


def identity(role):
    return CallerIdentity(id=uuid.uuid4(), role=str(role))


def order_for(customer=None, driver=None, status=OrderStatus.PENDING):
    return SimpleNamespace(
        pk=uuid.uuid4(),
        customer_id=customer.id if customer else uuid.uuid4(),
        driver_id=driver.id if driver else None,
        status=status,
    )


class TestChangeStatusPolicy(SimpleTestCase):

    def setUp(self):
        self.customer = identity(UserRole.CUSTOMER)
        self.driver = identity(UserRole.DRIVER)

    def test_staff_roles_may_change_any_order(self):
        order = order_for(status=OrderStatus.IN_TRANSIT)
        for role in [UserRole.ADMIN, UserRole.MANAGER, UserRole.STAFF]:
            self.assertTrue(
                is_allowed(Action.CHANGE_STATUS, identity(role), order, requested_status='delivered'),
                role
            )

    def test_driver_only_on_own_assignment(self):
        own = order_for(driver=self.driver, status=OrderStatus.ASSIGNED)
        other = order_for(driver=identity(UserRole.DRIVER), status=OrderStatus.ASSIGNED)

        self.assertTrue(is_allowed(Action.CHANGE_STATUS, self.driver, own, requested_status='picked_up'))
        self.assertFalse(is_allowed(Action.CHANGE_STATUS, self.driver, other, requested_status='picked_up'))

    def test_customer_only_cancels_own_pending_order(self):
        own_pending = order_for(customer=self.customer)
        self.assertTrue(
            is_allowed(Action.CHANGE_STATUS, self.customer, own_pending, requested_status='cancelled')
        )

        own_assigned = order_for(customer=self.customer, status=OrderStatus.ASSIGNED)
        self.assertFalse(
            is_allowed(Action.CHANGE_STATUS, self.customer, own_assigned, requested_status='cancelled')
        )

        for requested in OrderStatus.values:
            if requested == OrderStatus.CANCELLED:
                continue
            self.assertFalse(
                is_allowed(Action.CHANGE_STATUS, self.customer, own_pending, requested_status=requested),
                requested
            )

        someone_elses = order_for()
        self.assertFalse(
            is_allowed(Action.CHANGE_STATUS, self.customer, someone_elses, requested_status='cancelled')
        )


class TestViewPolicy(SimpleTestCase):

    def test_view_order_and_tracking_share_rules(self):
        customer = identity(UserRole.CUSTOMER)
        driver = identity(UserRole.DRIVER)
        order = order_for(customer=customer, driver=driver, status=OrderStatus.ASSIGNED)

        for action in [Action.VIEW_ORDER, Action.VIEW_TRACKING]:
            self.assertTrue(is_allowed(action, customer, order))
            self.assertTrue(is_allowed(action, driver, order))
            self.assertTrue(is_allowed(action, identity(UserRole.STAFF), order))
            self.assertFalse(is_allowed(action, identity(UserRole.CUSTOMER), order))
            self.assertFalse(is_allowed(action, identity(UserRole.DRIVER), order))

    def test_view_requires_an_order(self):
        self.assertFalse(is_allowed(Action.VIEW_ORDER, identity(UserRole.ADMIN)))


class TestRoleGatedActions(SimpleTestCase):

    def test_assignment_and_availability_are_staff_only(self):
        for action in [Action.ASSIGN_DRIVER, Action.LIST_AVAILABLE_DRIVERS]:
            for role in [UserRole.ADMIN, UserRole.MANAGER, UserRole.STAFF]:
                self.assertTrue(is_allowed(action, identity(role)))
            for role in [UserRole.DRIVER, UserRole.CUSTOMER]:
                self.assertFalse(is_allowed(action, identity(role)))

    def test_pending_queue_for_drivers_and_staff(self):
        self.assertTrue(is_allowed(Action.LIST_PENDING, identity(UserRole.DRIVER)))
        self.assertTrue(is_allowed(Action.LIST_PENDING, identity(UserRole.STAFF)))
        self.assertFalse(is_allowed(Action.LIST_PENDING, identity(UserRole.CUSTOMER)))

    def test_dashboard_for_admin_and_manager(self):
        self.assertTrue(is_allowed(Action.VIEW_DASHBOARD, identity(UserRole.ADMIN)))
        self.assertTrue(is_allowed(Action.VIEW_DASHBOARD, identity(UserRole.MANAGER)))
        self.assertFalse(is_allowed(Action.VIEW_DASHBOARD, identity(UserRole.STAFF)))
        self.assertFalse(is_allowed(Action.VIEW_DASHBOARD, identity(UserRole.DRIVER)))

    def test_record_ping_needs_driver_role_and_assignment(self):
        driver = identity(UserRole.DRIVER)
        order = order_for(driver=driver, status=OrderStatus.IN_TRANSIT)

        self.assertTrue(is_allowed(Action.RECORD_PING, driver, order))
        self.assertFalse(is_allowed(Action.RECORD_PING, identity(UserRole.DRIVER), order))
        self.assertFalse(is_allowed(Action.RECORD_PING, identity(UserRole.ADMIN), order))

    def test_customers_create_orders_for_themselves_only(self):
        customer = identity(UserRole.CUSTOMER)
        self.assertTrue(is_allowed(Action.CREATE_ORDER, customer, customer_id=customer.id))
        self.assertTrue(is_allowed(Action.CREATE_ORDER, customer, customer_id=str(customer.id)))
        self.assertFalse(is_allowed(Action.CREATE_ORDER, customer, customer_id=uuid.uuid4()))
        self.assertTrue(is_allowed(Action.CREATE_ORDER, identity(UserRole.STAFF), customer_id=uuid.uuid4()))


class TestAuthorize(SimpleTestCase):

    def test_raises_access_denied(self):
        with self.assertRaises(AccessDenied) as ctx:
            authorize(Action.ASSIGN_DRIVER, identity(UserRole.CUSTOMER))
        self.assertEqual(ctx.exception.code, 'ACCESS_DENIED')
        self.assertEqual(ctx.exception.status_code, 403)

    def test_passes_silently_when_allowed(self):
        self.assertIsNone(authorize(Action.ASSIGN_DRIVER, identity(UserRole.ADMIN)))
