"""
FLEET App - Driver API

- List: Staff roles (filters: status, vehicle_type)
- Create: Admin
- Retrieve: The driver themselves or staff roles
- Update: The driver themselves (status only) or admin (full edit)
- available/: Staff roles, active drivers not busy with an order in progress
"""

from django.core.exceptions import ValidationError
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.exceptions import AccessDenied, NotFound
from core.identity import CallerIdentity
from core.models import UserRole
from core.permissions import IsAdminRole, IsStaffRole
from core.services import update_profile
from logistics.policies import Action, authorize
from logistics.services import dispatch
from . import services
from .filters import DriverFilter
from .models import Driver
from .serializers import (
    AvailableDriversQuerySerializer,
    DriverCreateSerializer,
    DriverDetailSerializer,
    DriverSerializer,
    DriverStatusSerializer,
    DriverUpdateSerializer,
)


class DriverViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = DriverSerializer
    filterset_class = DriverFilter

    def get_permissions(self):
        if self.action == 'create':
            return [IsAdminRole()]
        elif self.action in ['list', 'available']:
            return [IsStaffRole()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        return Driver.objects.select_related('user')

    def _get_driver(self, pk):
        try:
            return self.get_queryset().get(pk=pk)
        except (Driver.DoesNotExist, ValidationError, ValueError):
            raise NotFound(f"Driver {pk} not found", code='DRIVER_NOT_FOUND')

    def create(self, request):
        serializer = DriverCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        driver = services.create_driver(**serializer.validated_data)
        return Response(
            DriverSerializer(driver, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )

    def retrieve(self, request, pk=None):
        caller = CallerIdentity.from_request(request)
        driver = self._get_driver(pk)
        if not (caller.is_staff_role or caller.owns(driver.pk)):
            raise AccessDenied()
        return Response(DriverDetailSerializer(driver, context={'request': request}).data)

    def update(self, request, pk=None, partial=False):
        caller = CallerIdentity.from_request(request)
        driver = self._get_driver(pk)

        if caller.role == UserRole.ADMIN:
            serializer = DriverUpdateSerializer(data=request.data, partial=partial)
        elif caller.owns(driver.pk):
            serializer = DriverStatusSerializer(data=request.data)
        else:
            raise AccessDenied()

        serializer.is_valid(raise_exception=True)
        driver = update_profile(driver, 'DRIVER_EXISTS', **serializer.validated_data)
        return Response(DriverSerializer(driver, context={'request': request}).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk, partial=True)

    @action(detail=False, methods=['get'])
    def available(self, request):
        """Drivers that can take a new assignment right now."""
        authorize(Action.LIST_AVAILABLE_DRIVERS, CallerIdentity.from_request(request))

        query = AvailableDriversQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        drivers = list(dispatch.list_available_drivers(query.validated_data.get('vehicle_type')))
        return Response({
            'drivers': DriverSerializer(drivers, many=True, context={'request': request}).data,
            'total_count': len(drivers),
        })
