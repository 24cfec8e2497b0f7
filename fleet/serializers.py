"""
Fleet App Serializers - Drivers
"""

from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password

from core.models import UserRole
from logistics.models import OPEN_ASSIGNMENT_STATUSES
from logistics.serializers import OrderListSerializer
from .models import Driver, DriverStatus


class DriverSerializer(serializers.ModelSerializer):
    """
    Driver profile flattened with its user fields.

    Email and license number are shown to admins and to the driver only.
    """

    id = serializers.UUIDField(source='pk', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    full_name = serializers.CharField(source='user.full_name', read_only=True)
    phone = serializers.CharField(source='user.phone', read_only=True)

    PRIVATE_FIELDS = ('email', 'license_number')

    class Meta:
        model = Driver
        fields = [
            'id', 'email', 'full_name', 'phone', 'vehicle_type', 'license_number',
            'status', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        if user is not None and user.role != UserRole.ADMIN and user.pk != instance.pk:
            for field in self.PRIVATE_FIELDS:
                data.pop(field, None)
        return data


class DriverDetailSerializer(DriverSerializer):
    """Driver profile with the orders currently on their queue."""

    assigned_orders = serializers.SerializerMethodField()

    class Meta(DriverSerializer.Meta):
        fields = DriverSerializer.Meta.fields + ['assigned_orders']
        read_only_fields = fields

    def get_assigned_orders(self, driver):
        orders = driver.orders.filter(status__in=OPEN_ASSIGNMENT_STATUSES).order_by('created_at')
        return OrderListSerializer(orders, many=True).data


class DriverCreateSerializer(serializers.Serializer):
    """Serializer for creating a driver account (admin only)."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    full_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    vehicle_type = serializers.CharField(max_length=30)
    license_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')


class DriverUpdateSerializer(serializers.Serializer):
    """Full edit, admin only."""

    full_name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    vehicle_type = serializers.CharField(max_length=30, required=False)
    license_number = serializers.CharField(max_length=50, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=DriverStatus.choices, required=False)


class DriverStatusSerializer(serializers.Serializer):
    """A driver may only change their own status."""

    status = serializers.ChoiceField(choices=DriverStatus.choices)


class AvailableDriversQuerySerializer(serializers.Serializer):
    vehicle_type = serializers.CharField(max_length=30, required=False)
