"""
FLEET App - Driver records for GoExpress

A driver is a one-to-one extension of a User with role DRIVER; the driver
id equals the user id.
"""

from django.conf import settings
from django.db import models


class DriverStatus(models.TextChoices):
    """
    Stored driver status.

    Dispatch never trusts BUSY from this field: a driver is busy while holding
    an order that is picked up or in transit (see
    logistics.services.dispatch.busy_driver_ids).
    """
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'
    BUSY = 'busy', 'Busy'
    OFFLINE = 'offline', 'Offline'


class Driver(models.Model):
    """Driver profile with vehicle information."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='driver_profile',
        verbose_name="User"
    )
    vehicle_type = models.CharField(
        max_length=30,
        db_index=True,
        verbose_name="Vehicle type",
        help_text="e.g. bike, motorbike, car, van"
    )
    license_number = models.CharField(
        max_length=50,
        blank=True,
        verbose_name="License number"
    )
    status = models.CharField(
        max_length=20,
        choices=DriverStatus.choices,
        default=DriverStatus.ACTIVE,
        verbose_name="Status"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Driver"
        verbose_name_plural = "Drivers"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'vehicle_type'], name='fleet_drive_status_5c1d0e_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.vehicle_type})"

    @property
    def name(self) -> str:
        return self.user.full_name or self.user.email

    @property
    def is_active(self) -> bool:
        return self.status == DriverStatus.ACTIVE
