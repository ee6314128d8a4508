"""
Access Control Gate

Per-operation authorization, evaluated before any mutation:
- club update, invite, bulk invite  -> owner only
- club read, member roster          -> owner or active member
Checks only read; a failed check never leaves side effects behind.
"""
from typing import Any, Dict, Optional

from database.gateway import PersistenceGateway

from .errors import ForbiddenError, NotFoundError
from .models import MembershipStatus


class AccessGate:
    """Owner / active-member checks against the persistence gateway"""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    @staticmethod
    def is_owner(club: Dict[str, Any], user_id: str) -> bool:
        return bool(user_id) and club.get("owner_id") == user_id

    async def is_active_member(self, club: Dict[str, Any], user_id: str) -> bool:
        if not user_id:
            return False
        member = await self.gateway.find_member_by_user(club["id"], user_id)
        return bool(member) and member.get("membership_status") == MembershipStatus.active.value

    async def get_club(self, club_id: int) -> Dict[str, Any]:
        club = await self.gateway.get_club(club_id)
        if not club:
            raise NotFoundError("Club not found")
        return club

    async def require_owner(
        self,
        club_id: int,
        user_id: str,
        message: Optional[str] = None
    ) -> Dict[str, Any]:
        """Return the club if the user owns it"""
        club = await self.get_club(club_id)
        if not self.is_owner(club, user_id):
            raise ForbiddenError(message or "Only the club owner can perform this action")
        return club

    async def require_reader(self, club: Dict[str, Any], user_id: str) -> Dict[str, Any]:
        """Return the club if the user owns it or is an active member"""
        if self.is_owner(club, user_id):
            return club
        if await self.is_active_member(club, user_id):
            return club
        raise ForbiddenError("You do not have access to this club")
