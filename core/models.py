"""
CORE App - Identity & Profile Models for GoExpress

Handles: Users (Admins, Managers, Staff, Drivers, Customers),
Customer profiles, Staff profiles.

Profiles share their primary key with the user they extend, so a
driver's or customer's id is the id carried by their access token.
"""

import uuid
from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models


class UserRole(models.TextChoices):
    """User role enumeration."""
    ADMIN = 'admin', 'Administrator'
    MANAGER = 'manager', 'Manager'
    STAFF = 'staff', 'Staff'
    DRIVER = 'driver', 'Driver'
    CUSTOMER = 'customer', 'Customer'


# Roles allowed to run dispatch operations (assignment, queue views, ...)
STAFF_ROLES = (UserRole.ADMIN, UserRole.MANAGER, UserRole.STAFF)


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('An email address is required')

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as primary identifier.

    The role decides what the caller may do with orders; see
    logistics.policies for the rules.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, verbose_name="Email")

    # Profile
    full_name = models.CharField(max_length=150, blank=True, verbose_name="Full name")
    phone = models.CharField(max_length=20, blank=True, db_index=True, verbose_name="Phone")
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CUSTOMER,
        verbose_name="Role"
    )

    # Django Auth Fields
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        ordering = ['-date_joined']

    def __str__(self):
        return f"{self.full_name or self.email} ({self.role})"

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER

    @property
    def has_staff_role(self) -> bool:
        return self.role in STAFF_ROLES


class Customer(models.Model):
    """Customer profile (order owner)."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='customer_profile',
        verbose_name="User"
    )
    address = models.TextField(blank=True, verbose_name="Address")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Customer"
        verbose_name_plural = "Customers"
        ordering = ['-created_at']

    def __str__(self):
        return self.user.full_name or self.user.email


class StaffStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'
    SUSPENDED = 'suspended', 'Suspended'


class Staff(models.Model):
    """
    Back-office member profile.

    The staff member's role (admin / manager / staff) is the role of the
    linked user.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='staff_profile',
        verbose_name="User"
    )
    department = models.CharField(max_length=100, blank=True, verbose_name="Department")
    status = models.CharField(
        max_length=20,
        choices=StaffStatus.choices,
        default=StaffStatus.ACTIVE,
        verbose_name="Status"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name="Created by"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Staff member"
        verbose_name_plural = "Staff"
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.full_name or self.user.email} ({self.user.role})"
