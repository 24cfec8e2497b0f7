"""
GoExpress Monitoring & Health Check Endpoints
=============================================

Provides:
1. /health/ - Basic liveness check (for load balancers/Docker)
2. /health/ready/ - Readiness check (database round trip)
"""

import time
import logging
from django.conf import settings
from django.http import JsonResponse
from django.db import DatabaseError, connection
from django.views.decorators.http import require_GET
from django.views.decorators.csrf import csrf_exempt
from django.utils import timezone

logger = logging.getLogger('goexpress.monitoring')

SERVICE_NAME = 'goexpress-dispatch'


@csrf_exempt
@require_GET
def health_check(request):
    """
    Basic liveness probe.
    Returns 200 if the Django process is alive.
    """
    return JsonResponse({
        'status': 'ok',
        'service': SERVICE_NAME,
        'timestamp': timezone.now().isoformat(),
    })


@csrf_exempt
@require_GET
def readiness_check(request):
    """
    Readiness probe.
    Returns 200 when the database answers, 503 otherwise.
    """
    checks = {}
    all_healthy = True

    try:
        start = time.time()
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        db_time = round((time.time() - start) * 1000, 2)
        checks['database'] = {
            'status': 'healthy',
            'response_time_ms': db_time,
            'vendor': connection.vendor,
        }
    except DatabaseError as e:
        checks['database'] = {
            'status': 'unhealthy',
            'error': str(e) if settings.DEBUG else 'unreachable',
        }
        all_healthy = False
        logger.error(f"Health check - Database unhealthy: {e}")

    return JsonResponse({
        'status': 'healthy' if all_healthy else 'unhealthy',
        'service': SERVICE_NAME,
        'timestamp': timezone.now().isoformat(),
        'checks': checks,
    }, status=200 if all_healthy else 503)
