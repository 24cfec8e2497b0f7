"""
Logistics App Filters - order list query parameters
"""

import django_filters

from core.identity import CallerIdentity
from .models import Order, OrderPriority, OrderStatus


class OrderFilter(django_filters.FilterSet):
    """
    ?status=&priority= for everyone, ?customer_id=&driver_id= for staff.

    Non-staff callers are already scoped to their own orders, so the id
    filters are ignored for them.
    """

    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    priority = django_filters.ChoiceFilter(choices=OrderPriority.choices)
    customer_id = django_filters.UUIDFilter(method='filter_for_staff')
    driver_id = django_filters.UUIDFilter(method='filter_for_staff')

    class Meta:
        model = Order
        fields = ['status', 'priority']

    def filter_for_staff(self, queryset, name, value):
        if self.request is None or not CallerIdentity.from_request(self.request).is_staff_role:
            return queryset
        return queryset.filter(**{name: value})
