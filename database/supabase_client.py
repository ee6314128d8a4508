"""
Supabase database client
"""
from typing import Any, Dict, List, Optional

from httpx import HTTPError
from loguru import logger
from postgrest.exceptions import APIError
from supabase import Client, create_client

from app.auth.config import get_auth_settings
from app.club.errors import ConflictError, PersistenceError
from database.gateway import PersistenceGateway, Row

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"

# Singleton client
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Return the shared Supabase client (singleton)

    Created lazily on first use with the service role key and reused for the
    life of the process. Holds no per-request user state.
    """
    global _supabase_client
    if _supabase_client is None:
        settings = get_auth_settings()
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY
        )
    return _supabase_client


class SupabaseGateway(PersistenceGateway):
    """Supabase (PostgREST) implementation of the persistence gateway"""

    def __init__(self, client: Optional[Client] = None):
        self.client: Client = client or get_supabase_client()

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                logger.warning(f"Unique constraint hit while {action}: {e.message}")
                raise ConflictError(f"Duplicate record while {action}") from e
            logger.error(f"DB error while {action}: {e.code} {e.message}")
            raise PersistenceError(f"Error {action}") from e
        except HTTPError as e:
            logger.error(f"DB connection error while {action}: {e}")
            raise PersistenceError(f"Error {action}") from e

    def _first(self, query, action: str) -> Optional[Row]:
        result = self._execute(query.limit(1), action)
        if result.data:
            return result.data[0]
        return None

    def _inserted(self, table: str, data: Row, action: str) -> Row:
        result = self._execute(self.client.table(table).insert(data), action)
        if not result.data:
            raise PersistenceError(f"Error {action}")
        return result.data[0]

    # ==================== Point lookups ====================

    async def get_club(self, club_id: int) -> Optional[Row]:
        return self._first(
            self.client.table("clubs").select("*").eq("id", club_id),
            "fetching club"
        )

    async def get_club_by_subdomain(self, subdomain: str) -> Optional[Row]:
        return self._first(
            self.client.table("clubs").select("*").eq("subdomain", subdomain),
            "checking subdomain availability"
        )

    async def get_user(self, user_id: str) -> Optional[Row]:
        return self._first(
            self.client.table("users").select("*").eq("id", user_id),
            "fetching user data"
        )

    async def get_user_by_email(self, email: str) -> Optional[Row]:
        return self._first(
            self.client.table("users").select("*").eq("email", email),
            "looking up user by email"
        )

    async def get_member(self, member_id: int) -> Optional[Row]:
        return self._first(
            self.client.table("members").select("*").eq("id", member_id),
            "fetching member"
        )

    async def find_member_by_email(self, club_id: int, email: str) -> Optional[Row]:
        return self._first(
            self.client.table("members").select("*").eq(
                "club_id", club_id
            ).eq("email", email),
            "checking membership"
        )

    async def find_member_by_user(self, club_id: int, user_id: str) -> Optional[Row]:
        return self._first(
            self.client.table("members").select("*").eq(
                "club_id", club_id
            ).eq("user_id", user_id),
            "checking membership"
        )

    async def get_invite_by_token(self, token: str) -> Optional[Row]:
        return self._first(
            self.client.table("invites").select("*").eq("token", token),
            "fetching invite"
        )

    async def get_role_by_name(self, name: str) -> Optional[Row]:
        return self._first(
            self.client.table("roles").select("*").eq("name", name),
            "fetching role"
        )

    # ==================== Filtered lists ====================

    async def list_members(self, club_id: int) -> List[Row]:
        result = self._execute(
            self.client.table("members").select("*").eq("club_id", club_id),
            "fetching club members"
        )
        return result.data or []

    async def list_clubs_for_user(self, user_id: str) -> List[Row]:
        result = self._execute(
            self.client.table("clubs").select(
                "*, members!inner(user_id)"
            ).eq("members.user_id", user_id),
            "fetching clubs"
        )
        clubs = []
        for club in result.data or []:
            club = dict(club)
            club.pop("members", None)
            clubs.append(club)
        return clubs

    # ==================== Inserts ====================

    async def insert_club(self, data: Row) -> Row:
        return self._inserted("clubs", data, "creating club")

    async def insert_member(self, data: Row) -> Row:
        return self._inserted("members", data, "creating membership")

    async def insert_invite(self, data: Row) -> Row:
        return self._inserted("invites", data, "generating invite")

    async def queue_email(self, to: str, template: str, data: Row) -> Row:
        return self._inserted(
            "emails",
            {"to": to, "template": template, "data": data},
            "queueing email"
        )

    async def upsert(self, table: str, data: Row, on_conflict: str) -> Row:
        result = self._execute(
            self.client.table(table).upsert(data, on_conflict=on_conflict),
            f"saving {table}"
        )
        if not result.data:
            raise PersistenceError(f"Error saving {table}")
        return result.data[0]

    # ==================== Updates ====================

    async def update_club(self, club_id: int, data: Row) -> Optional[Row]:
        result = self._execute(
            self.client.table("clubs").update(data).eq("id", club_id),
            "updating club"
        )
        return result.data[0] if result.data else None

    async def update_user(self, user_id: str, data: Row) -> Optional[Row]:
        result = self._execute(
            self.client.table("users").update(data).eq("id", user_id),
            "updating user role"
        )
        return result.data[0] if result.data else None

    async def activate_member(
        self,
        member_id: int,
        user_id: str,
        data: Optional[Row] = None
    ) -> Optional[Row]:
        payload: Dict[str, Any] = dict(data or {})
        payload.update({
            "user_id": user_id,
            "membership_status": "active",
        })
        result = self._execute(
            self.client.table("members").update(payload).eq(
                "id", member_id
            ).eq("membership_status", "pending"),
            "confirming membership"
        )
        return result.data[0] if result.data else None

    # ==================== Deletes ====================

    async def delete_club(self, club_id: int) -> None:
        self._execute(self.client.table("clubs").delete().eq("id", club_id), "deleting club")

    async def delete_user(self, user_id: str) -> None:
        self._execute(self.client.table("users").delete().eq("id", user_id), "deleting user record")

    async def delete_member(self, member_id: int) -> None:
        self._execute(self.client.table("members").delete().eq("id", member_id), "deleting member")

    async def delete_invite(self, invite_id: int) -> None:
        self._execute(self.client.table("invites").delete().eq("id", invite_id), "deleting invite")
