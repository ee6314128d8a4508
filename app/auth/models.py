"""
Auth Models - Pydantic model definitions
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AuthUser(BaseModel):
    """Authenticated caller resolved from a session token"""
    id: str
    email: str = ""


# =============================================
# Request Models
# =============================================

class SignupData(BaseModel):
    """Profile part of a signup; club fields create a club in the same call"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = None
    club_name: Optional[str] = None
    club_subdomain: Optional[str] = None

    def creates_club(self) -> bool:
        return bool(self.club_name and self.club_subdomain)


class SignupRequest(BaseModel):
    """Signup request"""
    email: Optional[str] = None
    password: Optional[str] = None
    data: SignupData = Field(default_factory=SignupData)


# =============================================
# Response Models
# =============================================

class SignupUser(BaseModel):
    id: str
    email: str
    name: str


class SignupResult(BaseModel):
    """Signup response body"""
    user: SignupUser
    club: Optional[Dict[str, Any]] = None
