"""
Club Management Models

Pydantic model definitions.
Request bodies are deliberately permissive (Optional fields); the membership
service owns required-field and format validation so that the bulk invite can
report a bad entry per member instead of rejecting the whole batch.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================
# Enums
# =============================================

class MemberType(str, Enum):
    """Member type within a club"""
    individual = "individual"             # single adult membership
    family_primary = "family_primary"     # account holder of a family
    family_dependent = "family_dependent" # child / dependent, may have no login


class MembershipStatus(str, Enum):
    """Membership lifecycle status"""
    pending = "pending"       # invited or self-joined, not confirmed
    active = "active"         # confirmed
    inactive = "inactive"     # admin action
    suspended = "suspended"   # admin action
    cancelled = "cancelled"   # admin action on a pending member


class ParticipantRole(str, Enum):
    """Names of rows in the roles table"""
    admin = "admin"
    member = "member"


# =============================================
# Club Models
# =============================================

CLUB_REQUIRED_FIELDS = (
    "name",
    "subdomain",
    "description",
    "contact_email",
    "contact_phone",
    "address",
    "city",
    "state",
    "zip_code",
)


class ClubCreate(BaseModel):
    """Club creation request"""
    name: Optional[str] = None
    subdomain: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None


class ClubUpdate(ClubCreate):
    """Partial club update; unknown keys (owner_id, id, ...) are dropped"""
    model_config = ConfigDict(extra="ignore")

    logo_url: Optional[str] = None
    onboarding_completed: Optional[bool] = None


# =============================================
# Invite Models
# =============================================

class InviteRequest(BaseModel):
    """Single member invite"""
    club_id: Optional[int] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    member_type: Optional[str] = None


class BulkInviteMember(BaseModel):
    """One entry of a bulk invite"""
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    member_type: Optional[str] = None


class BulkInviteRequest(BaseModel):
    club_id: Optional[int] = None
    members: List[BulkInviteMember] = Field(default_factory=list)


class InviteFailure(BaseModel):
    email: str
    error: str


class BulkInviteResult(BaseModel):
    """Bulk invite outcome: every entry lands in exactly one list"""
    successful: List[Dict[str, Any]] = Field(default_factory=list)
    failed: List[InviteFailure] = Field(default_factory=list)


class ConfirmInviteRequest(BaseModel):
    token: Optional[str] = None


class OnboardingRequest(BaseModel):
    """Invite confirmation together with first-time profile setup"""
    invite_token: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None


class JoinClubRequest(BaseModel):
    """Self-service join without an invite"""
    club_id: Optional[int] = None
    member_type: MemberType = MemberType.individual


# =============================================
# Invite record
# =============================================

class InviteRecord(BaseModel):
    """Row of the invites table"""
    id: Optional[int] = None
    token: str
    member_id: int
    club_id: int
    expires_at: datetime
    created_by: Optional[str] = None

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def is_expired(self, now: datetime) -> bool:
        """Expired at the exact expiry instant as well"""
        return now >= self.expires_at
