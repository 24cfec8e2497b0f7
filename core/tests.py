"""
GoExpress Core Tests
====================

Tests for:
1. Custom User model (email login, roles)
2. Customer registration & profile access
3. Staff management & dashboard statistics
4. Health endpoints, audit middleware, error envelope
"""

from unittest import mock

from django.db import DatabaseError, OperationalError
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from core.exceptions import Conflict, Unavailable
from core.models import Customer, Staff, User, UserRole
from core.services import DashboardStatsService, register_customer
from logistics.models import OrderStatus
from logistics.tests.helpers import PASSWORD, make_customer, make_driver, make_order, make_staff


class TestUserModel(TestCase):
    """Tests for the custom User model."""

    def test_create_user_normalizes_email(self):
        user = User.objects.create_user(email='Someone@EXAMPLE.com', password=PASSWORD)

        self.assertEqual(user.email, 'Someone@example.com')
        self.assertEqual(user.role, UserRole.CUSTOMER)
        self.assertTrue(user.check_password(PASSWORD))
        self.assertTrue(user.is_customer)

    def test_email_is_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password=PASSWORD)

    def test_superuser_is_admin(self):
        user = User.objects.create_superuser(email='root@test.local', password=PASSWORD)

        self.assertTrue(user.is_superuser)
        self.assertTrue(user.is_staff)
        self.assertEqual(user.role, UserRole.ADMIN)
        self.assertTrue(user.has_staff_role)

    def test_no_password_means_unusable(self):
        user = User.objects.create_user(email='nopass@test.local')
        self.assertFalse(user.has_usable_password())


class TestCustomerRegistration(APITestCase):

    payload = {
        'email': 'new@test.local',
        'password': 'Str0ng-enough-pw',
        'full_name': 'New Customer',
        'phone': '+237600000009',
    }

    def test_public_registration(self):
        response = self.client.post('/api/customers/', self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['email'], 'new@test.local')
        customer = Customer.objects.get(pk=response.data['id'])
        self.assertEqual(customer.user.role, UserRole.CUSTOMER)

    def test_duplicate_email_or_phone(self):
        self.client.post('/api/customers/', self.payload, format='json')

        response = self.client.post('/api/customers/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'CUSTOMER_EXISTS')

        response = self.client.post(
            '/api/customers/', dict(self.payload, email='other@test.local'), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(User.objects.count(), 1)

    def test_weak_password_rejected(self):
        response = self.client.post('/api/customers/', dict(self.payload, password='123'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data['details'])

    def test_service_conflict_is_case_insensitive(self):
        register_customer('case@test.local', PASSWORD)
        with self.assertRaises(Conflict):
            register_customer('CASE@test.local', PASSWORD)


class TestCustomerAccess(APITestCase):

    def setUp(self):
        self.alice = make_customer('alice@test.local')
        self.bob = make_customer('bob@test.local')
        self.staff = make_staff('staff@test.local', UserRole.STAFF)
        self.admin = make_staff('admin@test.local', UserRole.ADMIN)

    def test_list_is_staff_only(self):
        self.client.force_authenticate(self.alice.user)
        response = self.client.get('/api/customers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'INSUFFICIENT_PERMISSIONS')

        self.client.force_authenticate(self.staff.user)
        response = self.client.get('/api/customers/')
        self.assertEqual(response.data['pagination']['total'], 2)

    def test_retrieve_self_or_staff(self):
        self.client.force_authenticate(self.alice.user)
        self.assertEqual(self.client.get(f'/api/customers/{self.alice.pk}/').status_code, 200)
        self.assertEqual(self.client.get(f'/api/customers/{self.bob.pk}/').status_code, 403)

        self.client.force_authenticate(self.staff.user)
        self.assertEqual(self.client.get(f'/api/customers/{self.bob.pk}/').status_code, 200)
        response = self.client.get('/api/customers/not-an-id/')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['code'], 'CUSTOMER_NOT_FOUND')

    def test_update_self_or_admin(self):
        self.client.force_authenticate(self.alice.user)
        response = self.client.patch(
            f'/api/customers/{self.alice.pk}/', {'address': 'Akwa, Douala'}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['address'], 'Akwa, Douala')

        self.client.force_authenticate(self.staff.user)
        response = self.client.patch(f'/api/customers/{self.alice.pk}/', {'full_name': 'X'}, format='json')
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.admin.user)
        response = self.client.patch(f'/api/customers/{self.alice.pk}/', {'full_name': 'Alice A.'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['full_name'], 'Alice A.')


class TestStaffManagement(APITestCase):

    def setUp(self):
        self.admin = make_staff('admin@test.local', UserRole.ADMIN)
        self.manager = make_staff('manager@test.local', UserRole.MANAGER)
        self.client.force_authenticate(self.admin.user)

    def test_admin_creates_staff(self):
        response = self.client.post('/api/staff/', {
            'email': 'ops@test.local',
            'password': 'Str0ng-enough-pw',
            'full_name': 'Ops Person',
            'role': 'staff',
            'department': 'Dispatch',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['role'], 'staff')
        self.assertEqual(response.data['created_by'], str(self.admin.pk))

    def test_staff_roles_only(self):
        response = self.client.post('/api/staff/', {
            'email': 'sneaky@test.local',
            'password': 'Str0ng-enough-pw',
            'full_name': 'Sneaky',
            'role': 'driver',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_manager_cannot_create(self):
        self.client.force_authenticate(self.manager.user)
        response = self.client.post('/api/staff/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_filter_by_role(self):
        response = self.client.get('/api/staff/', {'role': 'manager'})
        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['results'][0]['email'], 'manager@test.local')

    def test_retrieve_rules(self):
        self.client.force_authenticate(self.manager.user)
        self.assertEqual(self.client.get(f'/api/staff/{self.manager.pk}/').status_code, 200)
        self.assertEqual(self.client.get(f'/api/staff/{self.admin.pk}/').status_code, 403)

    def test_update_and_delete(self):
        response = self.client.patch(f'/api/staff/{self.manager.pk}/', {'department': 'Fleet'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['department'], 'Fleet')

        response = self.client.delete(f'/api/staff/{self.manager.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(email='manager@test.local').exists())

    def test_admin_cannot_delete_self(self):
        response = self.client.delete(f'/api/staff/{self.admin.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'CANNOT_DELETE_SELF')
        self.assertTrue(Staff.objects.filter(pk=self.admin.pk).exists())


class TestDashboardStats(APITestCase):

    def setUp(self):
        customer = make_customer()
        driver = make_driver()
        make_order(customer)
        make_order(customer)
        make_order(customer, status=OrderStatus.ASSIGNED, driver=driver)

    def test_statistics_shape(self):
        stats = DashboardStatsService.get_statistics()

        self.assertEqual(stats['statistics']['total_orders'], 3)
        self.assertEqual(stats['statistics']['pending_orders'], 2)
        self.assertEqual(stats['statistics']['active_drivers'], 1)
        self.assertEqual(stats['statistics']['total_customers'], 1)
        self.assertEqual(stats['statistics']['recent_orders_24h'], 3)
        self.assertEqual(stats['orders_by_status']['delivered'], 0)
        self.assertEqual(set(stats['orders_by_status']), set(OrderStatus.values))

    def test_admin_and_manager_only(self):
        for role, expected in [(UserRole.ADMIN, 200), (UserRole.MANAGER, 200), (UserRole.STAFF, 403)]:
            staff = make_staff(f'{role.value}@test.local', role)
            self.client.force_authenticate(staff.user)
            response = self.client.get('/api/staff/dashboard/stats/')
            self.assertEqual(response.status_code, expected, role)

    def test_storage_failure(self):
        with mock.patch('logistics.models.Order.objects.order_by', side_effect=OperationalError('gone')):
            with self.assertLogs('core.exceptions', level='ERROR'):
                with self.assertRaises(Unavailable):
                    DashboardStatsService.get_statistics()


class TestAuthentication(APITestCase):

    def test_obtain_token_with_email(self):
        make_customer('login@test.local')

        response = self.client.post(
            '/api/auth/token/', {'email': 'login@test.local', 'password': PASSWORD}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

        response = self.client.post(
            '/api/auth/token/', {'email': 'login@test.local', 'password': 'wrong'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['code'], 'INVALID_TOKEN')

    def test_bad_bearer_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer nonsense')
        response = self.client.get('/api/orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class TestHealthEndpoints(TestCase):

    def test_liveness(self):
        response = self.client.get('/health/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'ok')

    def test_readiness(self):
        response = self.client.get('/health/ready/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['checks']['database']['status'], 'healthy')

    def test_readiness_reports_database_outage(self):
        with mock.patch('core.health.connection') as connection:
            connection.cursor.side_effect = DatabaseError('down')
            with self.assertLogs('goexpress.monitoring', level='ERROR'):
                response = self.client.get('/health/ready/')

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()['status'], 'unhealthy')


class TestRequestAuditMiddleware(APITestCase):

    def test_writes_are_audited(self):
        driver = make_driver()
        order = make_order(make_customer(), status=OrderStatus.IN_TRANSIT, driver=driver)
        self.client.force_authenticate(driver.user)

        with self.assertLogs('goexpress.audit', level='INFO') as logs:
            self.client.post('/api/tracking/update/', {
                'order_id': str(order.id), 'latitude': 1, 'longitude': 1,
            }, format='json')

        self.assertEqual(len(logs.output), 1)
        self.assertIn('AUDIT [OK]', logs.output[0])
        self.assertIn(f"{driver.pk}:driver", logs.output[0])

    def test_client_errors_are_warnings(self):
        with self.assertLogs('goexpress.audit', level='WARNING') as logs:
            self.client.get('/api/orders/')

        self.assertIn('AUDIT [WARN]', logs.output[0])
        self.assertIn('anonymous', logs.output[0])

    def test_successful_reads_are_not_audited(self):
        self.client.force_authenticate(make_customer().user)
        with self.assertNoLogs('goexpress.audit', level='INFO'):
            self.client.get('/api/orders/')
