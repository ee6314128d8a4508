"""
Club Management Module

Multi-tenant club membership and invitation lifecycle
- club creation with owner bootstrap
- member invites (single / bulk), confirmation, onboarding
- self-service join requests
"""

from .errors import ClubError
from .models import (
    MemberType,
    MembershipStatus,
    ParticipantRole,
)

__all__ = [
    "ClubError",
    "MemberType",
    "MembershipStatus",
    "ParticipantRole",
]
