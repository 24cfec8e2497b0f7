"""
FLEET App - Driver account services
"""

import logging

from django.db import transaction

from core.exceptions import guard_persistence
from core.models import UserRole
from core.services import create_account
from .models import Driver

logger = logging.getLogger(__name__)


@guard_persistence('create_driver')
@transaction.atomic
def create_driver(email: str, password: str, vehicle_type: str, full_name: str = '',
                  phone: str = '', license_number: str = '') -> Driver:
    """
    Create a driver account: a user with role DRIVER plus its profile.

    Raises:
        Conflict (DRIVER_EXISTS): email or phone already taken
    """
    user = create_account(email, password, UserRole.DRIVER, 'DRIVER_EXISTS', full_name, phone)
    driver = Driver.objects.create(
        user=user,
        vehicle_type=vehicle_type,
        license_number=license_number,
    )
    logger.info(f"[FLEET] Driver {user.pk} created ({vehicle_type})")
    return driver
