"""
Logistics App Views - Orders API
"""

from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.exceptions import InvalidInput
from core.identity import CallerIdentity
from .filters import OrderFilter
from .serializers import (
    DriverAssignSerializer,
    OrderCreateSerializer,
    OrderListSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    PendingQuerySerializer,
)
from .services import dispatch


class OrderViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    ViewSet for Order management.

    Every write goes through logistics.services.dispatch; this layer only
    parses input and renders output.
    """

    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = OrderFilter

    @property
    def caller(self) -> CallerIdentity:
        return CallerIdentity.from_request(self.request)

    def get_queryset(self):
        return dispatch.visible_orders(self.caller)

    def get_serializer_class(self):
        if self.action == 'list':
            return OrderListSerializer
        return OrderSerializer

    def retrieve(self, request, pk=None):
        order = dispatch.get_order_for(self.caller, pk)
        return Response(OrderSerializer(order).data)

    def create(self, request):
        """Place a new order. Customers order for themselves by default."""
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        caller = self.caller
        customer_id = data.pop('customer_id', None)
        if customer_id is None:
            if not caller.is_customer:
                raise InvalidInput("'customer_id' is required.", code='MISSING_CUSTOMER')
            customer_id = caller.id

        order = dispatch.create_order(caller, customer_id, **data)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['put', 'patch'], url_path='status')
    def change_status(self, request, pk=None):
        """Move the order along its lifecycle."""
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = dispatch.request_status_change(
            pk,
            serializer.validated_data['status'],
            self.caller,
            notes=serializer.validated_data.get('notes'),
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=['put'], url_path='assign')
    def assign(self, request, pk=None):
        """Dispatch a pending order to an active, free driver."""
        serializer = DriverAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = dispatch.assign_driver(pk, serializer.validated_data['driver_id'], self.caller)
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=['get'])
    def pending(self, request):
        """Open assignments, most urgent first. Drivers only see their own."""
        query = PendingQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        orders = list(dispatch.list_pending_for_driver(
            self.caller,
            driver_id=query.validated_data.get('driver_id'),
        ))
        return Response({
            'orders': OrderListSerializer(orders, many=True).data,
            'total_count': len(orders),
        })
