"""
Shared builders for logistics tests.
"""

from core.identity import CallerIdentity
from core.models import Customer, Staff, User, UserRole
from fleet.models import Driver, DriverStatus
from logistics.models import Order, OrderPriority, OrderStatus

PASSWORD = 'testpass123'


def make_user(email, role, full_name=None, **extra):
    return User.objects.create_user(
        email=email,
        password=PASSWORD,
        role=role,
        full_name=full_name if full_name is not None else email.split('@')[0].title(),
        **extra
    )


def make_customer(email='customer@test.local', **extra):
    return Customer.objects.create(user=make_user(email, UserRole.CUSTOMER, **extra))


def make_driver(email='driver@test.local', status=DriverStatus.ACTIVE, vehicle_type='bike', **extra):
    user = make_user(email, UserRole.DRIVER, **extra)
    return Driver.objects.create(user=user, status=status, vehicle_type=vehicle_type)


def make_staff(email='admin@test.local', role=UserRole.ADMIN, **extra):
    return Staff.objects.create(user=make_user(email, role, **extra))


def make_order(customer, status=OrderStatus.PENDING, driver=None, priority=OrderPriority.NORMAL, **extra):
    return Order.objects.create(
        customer=customer,
        driver=driver,
        status=status,
        priority=priority,
        pickup_address=extra.pop('pickup_address', '1 Depot Lane'),
        delivery_address=extra.pop('delivery_address', '99 Destination Ave'),
        **extra
    )


def caller_for(profile_or_user):
    """CallerIdentity for a User or for a Customer/Driver/Staff profile."""
    user = getattr(profile_or_user, 'user', profile_or_user)
    return CallerIdentity.from_user(user)
