"""
Fleet Tests - driver accounts and availability
"""

from rest_framework import status
from rest_framework.test import APITestCase

from core.exceptions import Conflict
from core.models import UserRole
from fleet.models import Driver, DriverStatus
from fleet.services import create_driver
from logistics.models import OrderStatus
from logistics.tests.helpers import make_customer, make_driver, make_order, make_staff


class TestCreateDriver(APITestCase):

    def setUp(self):
        self.admin = make_staff('admin@test.local', UserRole.ADMIN)
        self.client.force_authenticate(self.admin.user)

    def test_admin_creates_driver(self):
        response = self.client.post('/api/drivers/', {
            'email': 'rider@test.local',
            'password': 'Str0ng-enough-pw',
            'full_name': 'Road Runner',
            'phone': '+237600000100',
            'vehicle_type': 'motorbike',
            'license_number': 'CM-12345',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['status'], 'active')
        self.assertEqual(response.data['license_number'], 'CM-12345')
        driver = Driver.objects.get(pk=response.data['id'])
        self.assertEqual(driver.user.role, UserRole.DRIVER)

    def test_duplicate_driver(self):
        create_driver('rider@test.local', 'pw', 'bike', phone='+237600000100')

        with self.assertRaises(Conflict) as ctx:
            create_driver('other@test.local', 'pw', 'car', phone='+237600000100')
        self.assertEqual(ctx.exception.code, 'DRIVER_EXISTS')

        response = self.client.post('/api/drivers/', {
            'email': 'rider@test.local',
            'password': 'Str0ng-enough-pw',
            'full_name': 'Copy',
            'vehicle_type': 'bike',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'DRIVER_EXISTS')

    def test_only_admins_create(self):
        self.client.force_authenticate(make_staff('ops@test.local', UserRole.STAFF).user)
        response = self.client.post('/api/drivers/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class TestDriverAccess(APITestCase):

    def setUp(self):
        self.admin = make_staff('admin@test.local', UserRole.ADMIN)
        self.staff = make_staff('ops@test.local', UserRole.STAFF)
        self.bike = make_driver('bike@test.local', vehicle_type='bike')
        self.van = make_driver('van@test.local', vehicle_type='Van', status=DriverStatus.OFFLINE)

    def test_list_is_staff_only(self):
        self.client.force_authenticate(self.bike.user)
        self.assertEqual(self.client.get('/api/drivers/').status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.staff.user)
        response = self.client.get('/api/drivers/')
        self.assertEqual(response.data['pagination']['total'], 2)

    def test_list_filters(self):
        self.client.force_authenticate(self.staff.user)

        response = self.client.get('/api/drivers/', {'status': 'offline'})
        self.assertEqual([d['id'] for d in response.data['results']], [str(self.van.pk)])

        response = self.client.get('/api/drivers/', {'vehicle_type': 'van'})
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_private_fields_for_admin_and_self(self):
        self.client.force_authenticate(self.staff.user)
        response = self.client.get(f'/api/drivers/{self.bike.pk}/')
        self.assertNotIn('email', response.data)
        self.assertNotIn('license_number', response.data)

        self.client.force_authenticate(self.admin.user)
        response = self.client.get(f'/api/drivers/{self.bike.pk}/')
        self.assertEqual(response.data['email'], 'bike@test.local')

        self.client.force_authenticate(self.bike.user)
        response = self.client.get(f'/api/drivers/{self.bike.pk}/')
        self.assertIn('license_number', response.data)

    def test_drivers_cannot_see_each_other(self):
        self.client.force_authenticate(self.bike.user)
        response = self.client.get(f'/api/drivers/{self.van.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail_lists_open_assignments(self):
        customer = make_customer()
        open_order = make_order(customer, status=OrderStatus.ASSIGNED, driver=self.bike)
        make_order(customer, status=OrderStatus.DELIVERED, driver=self.bike)

        self.client.force_authenticate(self.bike.user)
        response = self.client.get(f'/api/drivers/{self.bike.pk}/')

        self.assertEqual([o['id'] for o in response.data['assigned_orders']], [str(open_order.id)])

    def test_driver_updates_own_status_only(self):
        self.client.force_authenticate(self.bike.user)
        response = self.client.patch(
            f'/api/drivers/{self.bike.pk}/', {'status': 'offline', 'vehicle_type': 'car'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.bike.refresh_from_db()
        self.assertEqual(self.bike.status, DriverStatus.OFFLINE)
        self.assertEqual(self.bike.vehicle_type, 'bike')

        response = self.client.patch(f'/api/drivers/{self.van.pk}/', {'status': 'active'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_full_edit(self):
        self.client.force_authenticate(self.admin.user)
        response = self.client.patch(
            f'/api/drivers/{self.van.pk}/', {'vehicle_type': 'car', 'full_name': 'Vera'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['vehicle_type'], 'car')
        self.assertEqual(response.data['full_name'], 'Vera')


class TestAvailableEndpoint(APITestCase):

    def setUp(self):
        self.staff = make_staff('ops@test.local', UserRole.STAFF)
        self.free = make_driver('free@test.local', vehicle_type='bike')
        self.busy = make_driver('busy@test.local', vehicle_type='bike')
        make_driver('car@test.local', vehicle_type='car')
        make_driver('away@test.local', status=DriverStatus.OFFLINE)
        make_order(make_customer(), status=OrderStatus.IN_TRANSIT, driver=self.busy)

    def test_excludes_busy_and_inactive(self):
        self.client.force_authenticate(self.staff.user)
        response = self.client.get('/api/drivers/available/', {'vehicle_type': 'BIKE'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_count'], 1)
        self.assertEqual(response.data['drivers'][0]['id'], str(self.free.pk))

    def test_forbidden_for_drivers(self):
        self.client.force_authenticate(self.free.user)
        response = self.client.get('/api/drivers/available/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
