"""
Pagination for list endpoints: ?page=N&limit=M
"""

import math

from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageLimitPagination(PageNumberPagination):
    """
    Page-number pagination driven by `page` and `limit` query params.

    Response body:
        {"results": [...], "pagination": {"page", "limit", "total", "pages"}}
    """

    page_query_param = 'page'
    page_size_query_param = 'limit'

    @property
    def max_page_size(self):
        return getattr(settings, 'API_MAX_PAGE_SIZE', 100)

    def get_paginated_response(self, data):
        limit = self.page.paginator.per_page
        total = self.page.paginator.count
        return Response({
            'results': data,
            'pagination': {
                'page': self.page.number,
                'limit': limit,
                'total': total,
                'pages': math.ceil(total / limit) if limit else 0,
            },
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'properties': {
                'results': schema,
                'pagination': {
                    'type': 'object',
                    'properties': {
                        'page': {'type': 'integer'},
                        'limit': {'type': 'integer'},
                        'total': {'type': 'integer'},
                        'pages': {'type': 'integer'},
                    },
                },
            },
        }
