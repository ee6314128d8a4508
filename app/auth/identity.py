"""
Identity Provider Adapter

Thin wrapper over the Supabase auth API. The membership lifecycle only sees
the abstract IdentityProvider, so tests (and a future provider) can swap it.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from httpx import HTTPError
from loguru import logger
from postgrest.exceptions import APIError
from supabase import AuthError, Client, ClientOptions, create_client

from app.club.errors import (
    AccountCreationError,
    AuthenticationError,
    ConflictError,
    DependencyError,
    EmailDispatchError,
)
from .config import get_auth_settings
from .models import AuthUser


class IdentityProvider(ABC):
    """Abstract identity provider interface"""

    @abstractmethod
    async def find_account_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Return {"id", "email"} of an existing account, or None"""
        pass

    @abstractmethod
    async def create_account(
        self,
        email: str,
        metadata: Dict[str, Any],
        email_confirmed: bool = True
    ) -> str:
        """Create an account with no usable password. Returns the account id."""
        pass

    @abstractmethod
    async def delete_account(self, account_id: str) -> None:
        pass

    @abstractmethod
    async def send_magic_link(self, email: str, redirect_url: str, data: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def send_invite_email(self, email: str, redirect_url: str, data: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def authenticate(self, session_token: str) -> AuthUser:
        """Resolve a bearer session token to the account behind it"""
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> AuthUser:
        """Self-service signup with a password"""
        pass


class SupabaseIdentityProvider(IdentityProvider):
    """
    Supabase auth implementation.

    Admin calls run on the shared service-role client. Password signup runs on
    a throwaway anon client so the new session never attaches to the shared one.
    """

    def __init__(self, client: Optional[Client] = None, invite_template: Optional[str] = None):
        if client is None:
            from database.supabase_client import get_supabase_client
            client = get_supabase_client()
        if invite_template is None:
            from app.club.config import get_club_settings
            invite_template = get_club_settings().invite_email_template
        self.client = client
        self.invite_template = invite_template

    async def find_account_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        # auth.users is not exposed over PostgREST; public.users mirrors it 1:1
        try:
            result = self.client.table("users").select("id, email").eq(
                "email", email
            ).limit(1).execute()
        except (APIError, HTTPError) as e:
            logger.error(f"Account lookup failed for {email}: {e}")
            raise DependencyError("Error looking up user account") from e

        if result.data:
            return result.data[0]
        return None

    async def create_account(
        self,
        email: str,
        metadata: Dict[str, Any],
        email_confirmed: bool = True
    ) -> str:
        try:
            response = self.client.auth.admin.create_user({
                "email": email,
                "email_confirm": email_confirmed,
                "user_metadata": metadata,
            })
        except (AuthError, HTTPError) as e:
            logger.error(f"Create user error for {email}: {e}")
            raise AccountCreationError(f"Failed to create user account: {e}") from e

        if not response or not response.user:
            raise AccountCreationError()
        logger.info(f"Provisional account created: {response.user.id}")
        return response.user.id

    async def delete_account(self, account_id: str) -> None:
        try:
            self.client.auth.admin.delete_user(account_id)
        except (AuthError, HTTPError) as e:
            raise DependencyError(f"Failed to delete user account {account_id}: {e}") from e

    async def send_magic_link(self, email: str, redirect_url: str, data: Dict[str, Any]) -> None:
        try:
            self.client.auth.sign_in_with_otp({
                "email": email,
                "options": {
                    "email_redirect_to": redirect_url,
                    "data": data,
                    "should_create_user": False,
                },
            })
        except (AuthError, HTTPError) as e:
            logger.error(f"Magic link dispatch failed for {email}: {e}")
            raise EmailDispatchError() from e

    async def send_invite_email(self, email: str, redirect_url: str, data: Dict[str, Any]) -> None:
        # admin.invite_user_by_email rejects registered addresses, so
        # existing accounts get the club-invite template through the outbox
        try:
            result = self.client.table("emails").insert({
                "to": email,
                "template": self.invite_template,
                "data": {**data, "redirect_url": redirect_url},
            }).execute()
        except (APIError, HTTPError) as e:
            logger.error(f"Invite email dispatch failed for {email}: {e}")
            raise EmailDispatchError() from e

        if not result.data:
            raise EmailDispatchError()

    async def authenticate(self, session_token: str) -> AuthUser:
        try:
            response = self.client.auth.get_user(session_token)
        except (AuthError, HTTPError) as e:
            logger.info(f"Session token rejected: {e}")
            raise AuthenticationError() from e

        if not response or not response.user:
            raise AuthenticationError()
        return AuthUser(id=response.user.id, email=response.user.email or "")

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> AuthUser:
        settings = get_auth_settings()
        anon_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_ANON_KEY,
            options=ClientOptions(persist_session=False, auto_refresh_token=False)
        )
        try:
            response = anon_client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": metadata},
            })
        except (AuthError, HTTPError) as e:
            logger.error(f"Signup failed for {email}: {e}")
            if "already registered" in str(e).lower():
                raise ConflictError(f"User with email {email} already exists") from e
            raise AccountCreationError(f"Failed to create user account: {e}") from e

        if not response or not response.user:
            raise AccountCreationError()
        return AuthUser(id=response.user.id, email=response.user.email or email)


_identity_provider: Optional[IdentityProvider] = None


def get_identity_provider() -> IdentityProvider:
    """Process-wide identity provider (lazy)"""
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = SupabaseIdentityProvider()
    return _identity_provider
