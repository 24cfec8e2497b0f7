"""
CORE App - Account & Dashboard Services

Account creation for customers and staff, plus the aggregated
statistics shown on the back-office dashboard.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from .exceptions import Conflict, guard_persistence
from .models import Customer, Staff, User, UserRole

logger = logging.getLogger(__name__)


def ensure_contact_available(email: str, phone: str = '', code: str = 'USER_EXISTS') -> None:
    """Raise Conflict when another user already holds this email or phone."""
    clash = User.objects.filter(email__iexact=email)
    if phone:
        clash = clash | User.objects.filter(phone=phone)

    if clash.exists():
        raise Conflict("An account with this email or phone already exists.", code=code)


def create_account(email: str, password: Optional[str], role: str, code: str,
                   full_name: str = '', phone: str = '') -> User:
    """
    Create a user after the duplicate check.

    Callers wrap this and the profile insert in one transaction.
    """
    ensure_contact_available(email, phone, code=code)
    try:
        with transaction.atomic():
            return User.objects.create_user(
                email=email,
                password=password,
                full_name=full_name,
                phone=phone,
                role=role,
            )
    except IntegrityError:
        # Lost a race against a concurrent registration
        raise Conflict("An account with this email or phone already exists.", code=code)


@guard_persistence('register_customer')
@transaction.atomic
def register_customer(email: str, password: str, full_name: str = '', phone: str = '',
                      address: str = '') -> Customer:
    user = create_account(email, password, UserRole.CUSTOMER, 'CUSTOMER_EXISTS', full_name, phone)
    customer = Customer.objects.create(user=user, address=address)
    logger.info(f"[ACCOUNTS] Customer {user.pk} registered")
    return customer


@guard_persistence('create_staff_member')
@transaction.atomic
def create_staff_member(created_by: User, email: str, password: str, role: str,
                        full_name: str = '', phone: str = '', department: str = '') -> Staff:
    user = create_account(email, password, role, 'STAFF_EXISTS', full_name, phone)
    if role == UserRole.ADMIN:
        user.is_staff = True
        user.save(update_fields=['is_staff'])
    staff = Staff.objects.create(user=user, department=department, created_by=created_by)
    logger.info(f"[ACCOUNTS] Staff member {user.pk} ({role}) created by {created_by.pk}")
    return staff


@guard_persistence('delete_staff_member')
@transaction.atomic
def delete_staff_member(staff: Staff, deleted_by: User) -> None:
    """Remove a back-office account together with its user."""
    user_id = staff.pk
    staff.user.delete()
    logger.info(f"[ACCOUNTS] Staff member {user_id} deleted by {deleted_by.pk}")


USER_FIELDS = ('full_name', 'phone', 'role')


@guard_persistence('update_profile')
@transaction.atomic
def update_profile(profile, code: str = 'USER_EXISTS', **changes):
    """
    Apply `changes` to a Customer, Staff or Driver profile and its user.

    Keys in USER_FIELDS go to the user row, everything else to the profile.
    """
    user = profile.user
    user_changes = {key: value for key, value in changes.items() if key in USER_FIELDS}
    profile_changes = {key: value for key, value in changes.items() if key not in USER_FIELDS}

    if user_changes.get('phone'):
        clash = User.objects.filter(phone=user_changes['phone']).exclude(pk=user.pk)
        if clash.exists():
            raise Conflict("An account with this phone already exists.", code=code)

    for field, value in user_changes.items():
        setattr(user, field, value)
    if user_changes:
        user.save(update_fields=list(user_changes))

    for field, value in profile_changes.items():
        setattr(profile, field, value)
    profile.save(update_fields=list(profile_changes) + ['updated_at'])

    logger.info(f"[ACCOUNTS] {type(profile).__name__} {profile.pk} updated: {sorted(changes)}")
    return profile


class DashboardStatsService:
    """Aggregated figures for the back-office dashboard."""

    @staticmethod
    @guard_persistence('dashboard_statistics')
    def get_statistics() -> Dict[str, Any]:
        """
        Returns:
            {
                'statistics': {total_orders, pending_orders, active_drivers,
                               total_customers, recent_orders_24h},
                'orders_by_status': {status: count, ...},
                'generated_at': ISO timestamp,
            }
        """
        from fleet.models import Driver, DriverStatus
        from logistics.models import Order, OrderStatus

        now = timezone.now()
        since = now - timedelta(hours=settings.RECENT_ORDERS_WINDOW_HOURS)

        orders_by_status = {value: 0 for value in OrderStatus.values}
        counts = Order.objects.order_by().values('status').annotate(count=Count('id'))
        for row in counts:
            orders_by_status[row['status']] = row['count']

        return {
            'statistics': {
                'total_orders': sum(orders_by_status.values()),
                'pending_orders': orders_by_status[OrderStatus.PENDING],
                'active_drivers': Driver.objects.filter(status=DriverStatus.ACTIVE).count(),
                'total_customers': Customer.objects.count(),
                'recent_orders_24h': Order.objects.filter(created_at__gte=since).count(),
            },
            'orders_by_status': orders_by_status,
            'generated_at': now.isoformat(),
        }
