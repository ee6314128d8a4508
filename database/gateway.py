"""
Persistence Gateway interface

Row-level access to the club tables (clubs, users, members, invites, roles)
plus the emails outbox. No multi-statement atomicity is promised; callers
order their writes and compensate manually.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

Row = Dict[str, Any]


class PersistenceGateway(ABC):
    """Abstract persistence gateway"""

    # ==================== Point lookups ====================

    @abstractmethod
    async def get_club(self, club_id: int) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_club_by_subdomain(self, subdomain: str) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_member(self, member_id: int) -> Optional[Row]:
        pass

    @abstractmethod
    async def find_member_by_email(self, club_id: int, email: str) -> Optional[Row]:
        pass

    @abstractmethod
    async def find_member_by_user(self, club_id: int, user_id: str) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_invite_by_token(self, token: str) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_role_by_name(self, name: str) -> Optional[Row]:
        pass

    # ==================== Filtered lists ====================

    @abstractmethod
    async def list_members(self, club_id: int) -> List[Row]:
        pass

    @abstractmethod
    async def list_clubs_for_user(self, user_id: str) -> List[Row]:
        """Clubs in which the user has a member row (any status)"""
        pass

    # ==================== Inserts ====================

    @abstractmethod
    async def insert_club(self, data: Row) -> Row:
        pass

    @abstractmethod
    async def insert_member(self, data: Row) -> Row:
        pass

    @abstractmethod
    async def insert_invite(self, data: Row) -> Row:
        pass

    @abstractmethod
    async def queue_email(self, to: str, template: str, data: Row) -> Row:
        """Insert a row into the emails outbox"""
        pass

    @abstractmethod
    async def upsert(self, table: str, data: Row, on_conflict: str) -> Row:
        """Insert or update keyed on a natural composite key, e.g. "event_id,member_id" """
        pass

    # ==================== Updates ====================

    @abstractmethod
    async def update_club(self, club_id: int, data: Row) -> Optional[Row]:
        pass

    @abstractmethod
    async def update_user(self, user_id: str, data: Row) -> Optional[Row]:
        pass

    @abstractmethod
    async def activate_member(
        self,
        member_id: int,
        user_id: str,
        data: Optional[Row] = None
    ) -> Optional[Row]:
        """
        Single conditional update: status -> active, user attached, extra
        profile fields written, only where the member is still pending.

        Returns the updated row, or None if the member is no longer pending
        (or no longer exists).
        """
        pass

    # ==================== Deletes ====================

    @abstractmethod
    async def delete_club(self, club_id: int) -> None:
        pass

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        pass

    @abstractmethod
    async def delete_member(self, member_id: int) -> None:
        pass

    @abstractmethod
    async def delete_invite(self, invite_id: int) -> None:
        pass
