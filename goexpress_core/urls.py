"""
GoExpress Main URL Configuration
"""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.health import health_check, readiness_check


# ===========================================
# ADMIN SITE CUSTOMIZATION
# ===========================================
admin.site.site_header = "GoExpress Dispatch"
admin.site.site_title = "GoExpress Admin"
admin.site.index_title = "Operations"


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request):
    """API Root endpoint with available routes."""
    return Response({
        'name': 'GoExpress Dispatch API',
        'version': '1.0.0',
        'endpoints': {
            'auth': {
                'token': '/api/auth/token/',
                'refresh': '/api/auth/token/refresh/',
            },
            'orders': '/api/orders/',
            'pending_orders': '/api/orders/pending/',
            'drivers': '/api/drivers/',
            'available_drivers': '/api/drivers/available/',
            'customers': '/api/customers/',
            'staff': '/api/staff/',
            'dashboard': '/api/staff/dashboard/stats/',
            'tracking': {
                'detail': '/api/tracking/<order_id>/',
                'update': '/api/tracking/update/',
                'batch_update': '/api/tracking/batch-update/',
            },
        }
    })


urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Monitoring
    path('health/', health_check, name='health'),
    path('health/ready/', readiness_check, name='health-ready'),

    # API Root
    path('api/', api_root, name='api-root'),

    # App URLs
    path('api/', include('core.urls')),
    path('api/', include('fleet.urls')),
    path('api/', include('logistics.urls')),

    # OpenAPI schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='api-docs'),
]
