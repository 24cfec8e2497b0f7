"""
Core App Permissions - role gates for DRF views
"""

from rest_framework import permissions

from .models import STAFF_ROLES, UserRole


class IsAdminRole(permissions.BasePermission):
    """Permission for admin users only."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == UserRole.ADMIN


class IsStaffRole(permissions.BasePermission):
    """Permission for back-office users (admin, manager, staff)."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in STAFF_ROLES

