import django_filters

from .models import Driver, DriverStatus


class DriverFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=DriverStatus.choices)
    vehicle_type = django_filters.CharFilter(lookup_expr='iexact')

    class Meta:
        model = Driver
        fields = ['status', 'vehicle_type']
