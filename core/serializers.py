"""
Core App Serializers - Users, Customers & Staff
"""

from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password

from .models import STAFF_ROLES, Customer, Staff, StaffStatus

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model (read operations)."""

    class Meta:
        model = User
        fields = ['id', 'email', 'full_name', 'phone', 'role', 'is_active', 'date_joined']
        read_only_fields = fields


class CustomerSerializer(serializers.ModelSerializer):
    """Customer profile flattened with its user fields."""

    id = serializers.UUIDField(source='pk', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    full_name = serializers.CharField(source='user.full_name', read_only=True)
    phone = serializers.CharField(source='user.phone', read_only=True)

    class Meta:
        model = Customer
        fields = ['id', 'email', 'full_name', 'phone', 'address', 'created_at', 'updated_at']
        read_only_fields = fields


class CustomerRegistrationSerializer(serializers.Serializer):
    """Serializer for customer self-registration."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    full_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    address = serializers.CharField(required=False, allow_blank=True, default='')


class CustomerUpdateSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)


class StaffSerializer(serializers.ModelSerializer):
    """Staff profile flattened with its user fields."""

    id = serializers.UUIDField(source='pk', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    full_name = serializers.CharField(source='user.full_name', read_only=True)
    phone = serializers.CharField(source='user.phone', read_only=True)
    role = serializers.CharField(source='user.role', read_only=True)
    created_by = serializers.UUIDField(source='created_by_id', read_only=True, allow_null=True)

    class Meta:
        model = Staff
        fields = [
            'id', 'email', 'full_name', 'phone', 'role', 'department', 'status',
            'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class StaffCreateSerializer(serializers.Serializer):
    """Serializer for creating a back-office account (admin only)."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    full_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    role = serializers.ChoiceField(choices=[(role.value, role.label) for role in STAFF_ROLES])
    department = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class StaffUpdateSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.ChoiceField(
        choices=[(role.value, role.label) for role in STAFF_ROLES],
        required=False
    )
    department = serializers.CharField(max_length=100, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=StaffStatus.choices, required=False)
