"""
Logistics App URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import OrderViewSet
from .api.tracking_api import (
    BatchLocationUpdateView, LocationUpdateView, TrackingHistoryView
)

router = DefaultRouter()
router.register(r'orders', OrderViewSet, basename='order')

urlpatterns = [
    # Tracking ledger
    path('tracking/update/', LocationUpdateView.as_view(), name='tracking-update'),
    path('tracking/batch-update/', BatchLocationUpdateView.as_view(), name='tracking-batch-update'),
    path('tracking/<uuid:order_id>/', TrackingHistoryView.as_view(), name='tracking-history'),

    # Router URLs
    path('', include(router.urls)),
]
