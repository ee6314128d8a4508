"""
Auth Module - accounts, sessions and signup
"""
from .models import AuthUser, SignupData, SignupRequest, SignupResult

__all__ = [
    "AuthUser",
    "SignupData",
    "SignupRequest",
    "SignupResult",
]
