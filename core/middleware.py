"""
GoExpress Request Audit Middleware
==================================

Writes one audit line per request that changes dispatch state, tries to
authenticate, or fails.
"""

import logging
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger('goexpress.audit')


class RequestAuditMiddleware(MiddlewareMixin):
    """
    Audit logging for API operations.

    Logs:
    - Write operations (POST, PUT, PATCH, DELETE) on audited paths
    - Authentication attempts
    - Failed requests (4xx on the API, any 5xx)
    """

    AUDITED_PATHS = (
        '/api/auth/',
        '/api/orders/',
        '/api/drivers/',
        '/api/customers/',
        '/api/staff/',
        '/api/tracking/',
        '/admin/',
    )

    WRITE_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')

    def _should_log(self, request, response):
        path = request.path

        if path.startswith('/api/auth/'):
            return True

        if request.method in self.WRITE_METHODS and path.startswith(self.AUDITED_PATHS):
            return True

        if response.status_code >= 500:
            return True

        return response.status_code >= 400 and path.startswith('/api/')

    @staticmethod
    def _client_ip(request):
        forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
        return forwarded.split(',')[0].strip() or request.META.get('REMOTE_ADDR', '?')

    def process_response(self, request, response):
        if not self._should_log(request, response):
            return response

        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            user_info = f"{user.pk}:{user.role}"
        else:
            user_info = 'anonymous'

        log_data = {
            'method': request.method,
            'path': request.path,
            'status': response.status_code,
            'user': user_info,
            'ip': self._client_ip(request),
        }

        if response.status_code >= 500:
            logger.error(f"AUDIT [ERROR] {log_data}")
        elif response.status_code >= 400:
            logger.warning(f"AUDIT [WARN] {log_data}")
        else:
            logger.info(f"AUDIT [OK] {log_data}")

        return response
