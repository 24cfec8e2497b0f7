"""
Caller identity resolved from an authenticated request.
"""

import uuid
from dataclasses import dataclass

from .models import STAFF_ROLES, UserRole


@dataclass(frozen=True)
class CallerIdentity:
    """Who is asking: the user id carried by the token and its role."""

    id: uuid.UUID
    role: str

    @classmethod
    def from_user(cls, user) -> 'CallerIdentity':
        return cls(id=user.pk, role=str(user.role))

    @classmethod
    def from_request(cls, request) -> 'CallerIdentity':
        return cls.from_user(request.user)

    @property
    def is_staff_role(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER

    def owns(self, profile_id) -> bool:
        """True when `profile_id` (a driver or customer id) is the caller's own."""
        return profile_id is not None and str(profile_id) == str(self.id)
