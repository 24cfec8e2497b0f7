"""
Django management command to seed demo accounts for local development.

Usage:
    python manage.py seed_demo_data
    python manage.py seed_demo_data --password secret123
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from core.models import Customer, Staff, User, UserRole
from fleet.models import Driver

STAFF_ACCOUNTS = [
    ('admin@goexpress.local', 'Ada Admin', UserRole.ADMIN, 'Operations'),
    ('manager@goexpress.local', 'Max Manager', UserRole.MANAGER, 'Operations'),
    ('dispatch@goexpress.local', 'Sam Dispatcher', UserRole.STAFF, 'Dispatch'),
]

DRIVER_ACCOUNTS = [
    ('driver.bike@goexpress.local', 'Bea Rider', '+10000000001', 'bike'),
    ('driver.car@goexpress.local', 'Carl Driver', '+10000000002', 'car'),
    ('driver.van@goexpress.local', 'Vera Vanner', '+10000000003', 'van'),
]

CUSTOMER_ACCOUNTS = [
    ('alice@example.com', 'Alice Customer', '+10000000101', '12 Harbour Road'),
    ('bob@example.com', 'Bob Customer', '+10000000102', '7 Market Street'),
]


class Command(BaseCommand):
    help = 'Seed admin, manager, staff, driver and customer demo accounts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            default='goexpress-demo',
            help='Password set on newly created accounts',
        )

    def _user(self, email, full_name, role, password, phone=''):
        user, created = User.objects.get_or_create(
            email=email,
            defaults={'full_name': full_name, 'role': role, 'phone': phone},
        )
        if created:
            user.set_password(password)
            if role == UserRole.ADMIN:
                user.is_staff = True
                user.is_superuser = True
            user.save()
            self.stdout.write(self.style.SUCCESS(f'Created: {email} ({role})'))
        else:
            self.stdout.write(f'Exists: {email} ({user.role})')
        return user

    @transaction.atomic
    def handle(self, *args, **options):
        password = options['password']

        for email, full_name, role, department in STAFF_ACCOUNTS:
            user = self._user(email, full_name, role, password)
            Staff.objects.get_or_create(user=user, defaults={'department': department})

        for email, full_name, phone, vehicle_type in DRIVER_ACCOUNTS:
            user = self._user(email, full_name, UserRole.DRIVER, password, phone)
            Driver.objects.get_or_create(user=user, defaults={'vehicle_type': vehicle_type})

        for email, full_name, phone, address in CUSTOMER_ACCOUNTS:
            user = self._user(email, full_name, UserRole.CUSTOMER, password, phone)
            Customer.objects.get_or_create(user=user, defaults={'address': address})

        self.stdout.write(self.style.SUCCESS(
            f'Demo data ready: {User.objects.count()} users, '
            f'{Driver.objects.count()} drivers, {Customer.objects.count()} customers'
        ))
