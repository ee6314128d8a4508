"""
Club Management Dependencies

Service wiring and authentication dependencies
"""
from typing import Optional

from fastapi import Depends, Request

from database.gateway import PersistenceGateway
from app.auth.identity import IdentityProvider
from app.auth.models import AuthUser
from app.auth.signup import SignupService

from .errors import AuthenticationError
from .service import MembershipService


def get_gateway() -> PersistenceGateway:
    """Supabase-backed persistence gateway"""
    from database.supabase_client import SupabaseGateway
    return SupabaseGateway()


def get_identity() -> IdentityProvider:
    from app.auth.identity import get_identity_provider
    return get_identity_provider()


def get_membership_service(
    gateway: PersistenceGateway = Depends(get_gateway),
    identity: IdentityProvider = Depends(get_identity),
) -> MembershipService:
    return MembershipService(gateway, identity)


def get_signup_service(
    gateway: PersistenceGateway = Depends(get_gateway),
    identity: IdentityProvider = Depends(get_identity),
) -> SignupService:
    return SignupService(gateway, identity)


def get_bearer_token(request: Request) -> Optional[str]:
    """Token from an `Authorization: Bearer <token>` header"""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


async def get_current_user(
    request: Request,
    identity: IdentityProvider = Depends(get_identity),
) -> AuthUser:
    """
    Currently signed-in user

    Resolves the bearer session token through the identity provider.
    A missing or rejected token is an AuthenticationError (401).
    """
    token = get_bearer_token(request)
    if not token:
        raise AuthenticationError("Missing authorization header")
    return await identity.authenticate(token)
