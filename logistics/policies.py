"""
LOGISTICS App - Role policy for GoExpress

Single decision point for "may this caller do this to this order?".
Views and services ask here instead of branching on roles inline.
"""

import enum
import logging

from core.exceptions import AccessDenied
from core.models import UserRole
from logistics.models import OrderStatus

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    VIEW_ORDER = 'view_order'
    CREATE_ORDER = 'create_order'
    CHANGE_STATUS = 'change_status'
    ASSIGN_DRIVER = 'assign_driver'
    LIST_PENDING = 'list_pending'
    LIST_AVAILABLE_DRIVERS = 'list_available_drivers'
    RECORD_PING = 'record_ping'
    VIEW_TRACKING = 'view_tracking'
    VIEW_DASHBOARD = 'view_dashboard'


DASHBOARD_ROLES = (UserRole.ADMIN, UserRole.MANAGER)


def _can_view(caller, order) -> bool:
    if caller.is_staff_role:
        return True
    if caller.is_customer:
        return caller.owns(order.customer_id)
    if caller.is_driver:
        return caller.owns(order.driver_id)
    return False


def _can_change_status(caller, order, requested_status) -> bool:
    if caller.is_staff_role:
        return True
    if caller.is_driver:
        return caller.owns(order.driver_id)
    if caller.is_customer:
        return (
            caller.owns(order.customer_id)
            and requested_status == OrderStatus.CANCELLED
            and order.status == OrderStatus.PENDING
        )
    return False


def is_allowed(action, caller, order=None, **context) -> bool:
    """
    Decide whether `caller` may perform `action`.

    Args:
        action: Action member
        caller: CallerIdentity
        order: Order the action targets, when there is one
        context: action-specific inputs (`requested_status` for
            CHANGE_STATUS, `customer_id` for CREATE_ORDER)

    Returns:
        True when allowed. Unknown actions are denied.
    """
    if action == Action.VIEW_ORDER or action == Action.VIEW_TRACKING:
        return order is not None and _can_view(caller, order)

    if action == Action.CHANGE_STATUS:
        return order is not None and _can_change_status(
            caller, order, context.get('requested_status')
        )

    if action == Action.RECORD_PING:
        return order is not None and caller.is_driver and caller.owns(order.driver_id)

    if action == Action.CREATE_ORDER:
        if caller.is_customer:
            return caller.owns(context.get('customer_id'))
        return True

    if action in [Action.ASSIGN_DRIVER, Action.LIST_AVAILABLE_DRIVERS]:
        return caller.is_staff_role

    if action == Action.LIST_PENDING:
        return caller.is_staff_role or caller.is_driver

    if action == Action.VIEW_DASHBOARD:
        return caller.role in DASHBOARD_ROLES

    return False


def authorize(action, caller, order=None, **context) -> None:
    """Raise AccessDenied unless `is_allowed` says yes."""
    if not is_allowed(action, caller, order, **context):
        logger.info(
            f"[POLICY] Denied {action.value} to {caller.role} {caller.id}"
            + (f" on order {str(order.pk)[:8]}" if order is not None else "")
        )
        raise AccessDenied()
