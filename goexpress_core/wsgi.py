"""
WSGI config for GoExpress dispatch backend.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'goexpress_core.settings')

application = get_wsgi_application()
