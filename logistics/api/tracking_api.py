"""
Tracking API Endpoints

- Latest locations for an order
- Single location update from the assigned driver
- Offline batch upload
"""

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.identity import CallerIdentity
from logistics.serializers import (
    BatchLocationUpdateSerializer,
    LocationUpdateSerializer,
    TrackingPingSerializer,
)
from logistics.services import tracking


def _location(ping):
    if ping is None:
        return None
    return {
        'latitude': ping.latitude,
        'longitude': ping.longitude,
        'timestamp': ping.timestamp.isoformat(),
    }


class TrackingHistoryView(APIView):
    """
    GET /api/tracking/<order_id>/

    Most recent pings, newest first, plus the last known location.
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, order_id):
        snapshot = tracking.query_latest(order_id, CallerIdentity.from_request(request))
        order = snapshot['order']

        return Response({
            'order_id': str(order.id),
            'status': order.status,
            'driver_id': str(order.driver_id) if order.driver_id else None,
            'tracking_history': TrackingPingSerializer(snapshot['pings'], many=True).data,
            'last_location': _location(snapshot['last_location']),
        })


class LocationUpdateView(APIView):
    """
    POST /api/tracking/update/

    Request body:
    {
        "order_id": "<uuid>",
        "latitude": 4.0511,
        "longitude": 9.6942
    }
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = LocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        ping = tracking.record_ping(
            data['order_id'],
            CallerIdentity.from_request(request),
            data['latitude'],
            data['longitude'],
            timestamp=data.get('timestamp'),
        )
        return Response(
            {'message': 'Location updated.', 'ping': TrackingPingSerializer(ping).data},
            status=status.HTTP_201_CREATED
        )


class BatchLocationUpdateView(APIView):
    """
    POST /api/tracking/batch-update/

    Request body: {"updates": [{"order_id", "latitude", "longitude", "timestamp"?}, ...]}
    Invalid entries are skipped; the response reports how many were kept.
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = BatchLocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updates = serializer.validated_data['updates']

        created = tracking.record_batch(updates, CallerIdentity.from_request(request))
        return Response({
            'message': 'Batch processed.',
            'processed': len(created),
            'skipped': len(updates) - len(created),
        })
