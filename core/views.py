"""
Core App Views - Customers, Staff & Dashboard API
"""

from django.core.exceptions import ValidationError
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from logistics.policies import Action, authorize
from . import services
from .exceptions import AccessDenied, InvalidInput, NotFound
from .identity import CallerIdentity
from .models import Customer, Staff, UserRole
from .permissions import IsAdminRole, IsStaffRole
from .serializers import (
    CustomerRegistrationSerializer,
    CustomerSerializer,
    CustomerUpdateSerializer,
    StaffCreateSerializer,
    StaffSerializer,
    StaffUpdateSerializer,
)


class CustomerViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    ViewSet for customers.

    - Create: Public (registration)
    - List: Staff roles
    - Retrieve: Self or staff roles
    - Update: Self or admin
    """

    serializer_class = CustomerSerializer

    def get_permissions(self):
        if self.action == 'create':
            return [permissions.AllowAny()]
        elif self.action == 'list':
            return [IsStaffRole()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        return Customer.objects.select_related('user')

    def _get_customer(self, pk):
        try:
            return self.get_queryset().get(pk=pk)
        except (Customer.DoesNotExist, ValidationError, ValueError):
            raise NotFound(f"Customer {pk} not found", code='CUSTOMER_NOT_FOUND')

    def create(self, request):
        serializer = CustomerRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        customer = services.register_customer(**serializer.validated_data)
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        caller = CallerIdentity.from_request(request)
        customer = self._get_customer(pk)
        if not (caller.is_staff_role or caller.owns(customer.pk)):
            raise AccessDenied()
        return Response(CustomerSerializer(customer).data)

    def update(self, request, pk=None, partial=False):
        caller = CallerIdentity.from_request(request)
        customer = self._get_customer(pk)
        if not (caller.role == UserRole.ADMIN or caller.owns(customer.pk)):
            raise AccessDenied()

        serializer = CustomerUpdateSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        customer = services.update_profile(customer, 'CUSTOMER_EXISTS', **serializer.validated_data)
        return Response(CustomerSerializer(customer).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk, partial=True)


class StaffViewSet(viewsets.GenericViewSet):
    """
    ViewSet for back-office accounts.

    - Create / Update / Delete: Admin only (an admin cannot delete themselves)
    - List: Staff roles
    - Retrieve: Admin any, other staff roles self only
    - dashboard/stats: Admin and manager
    """

    serializer_class = StaffSerializer

    def get_permissions(self):
        if self.action in ['create', 'update', 'partial_update', 'destroy']:
            return [IsAdminRole()]
        return [IsStaffRole()]

    def get_queryset(self):
        return Staff.objects.select_related('user')

    def _get_staff(self, pk):
        try:
            return self.get_queryset().get(pk=pk)
        except (Staff.DoesNotExist, ValidationError, ValueError):
            raise NotFound(f"Staff member {pk} not found", code='STAFF_NOT_FOUND')

    def list(self, request):
        queryset = self.get_queryset()
        role = request.query_params.get('role')
        if role:
            queryset = queryset.filter(user__role=role)

        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(StaffSerializer(page, many=True).data)

    def create(self, request):
        serializer = StaffCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        staff = services.create_staff_member(request.user, **serializer.validated_data)
        return Response(StaffSerializer(staff).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        caller = CallerIdentity.from_request(request)
        staff = self._get_staff(pk)
        if caller.role != UserRole.ADMIN and not caller.owns(staff.pk):
            raise AccessDenied()
        return Response(StaffSerializer(staff).data)

    def update(self, request, pk=None, partial=False):
        staff = self._get_staff(pk)
        serializer = StaffUpdateSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        staff = services.update_profile(staff, 'STAFF_EXISTS', **serializer.validated_data)
        return Response(StaffSerializer(staff).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk, partial=True)

    def destroy(self, request, pk=None):
        staff = self._get_staff(pk)
        if staff.pk == request.user.pk:
            raise InvalidInput("You cannot delete your own account.", code='CANNOT_DELETE_SELF')
        services.delete_staff_member(staff, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path='dashboard/stats')
    def dashboard_stats(self, request):
        """Aggregated order, driver and customer figures."""
        authorize(Action.VIEW_DASHBOARD, CallerIdentity.from_request(request))
        return Response(services.DashboardStatsService.get_statistics())
