"""
Access Gate Tests
"""
import pytest

from app.club.access import AccessGate
from app.club.errors import ForbiddenError, NotFoundError
from tests.fakes import make_user


@pytest.mark.asyncio
class TestAccessGate:
    """Owner / active member checks"""

    async def test_owner_passes_owner_check(self, gateway, owner, club):
        gate = AccessGate(gateway)
        assert (await gate.require_owner(club["id"], owner.id))["id"] == club["id"]

    async def test_unknown_club(self, gateway, owner):
        with pytest.raises(NotFoundError):
            await AccessGate(gateway).require_owner(999, owner.id)

    async def test_non_owner_forbidden(self, gateway, identity, club):
        stranger = make_user(gateway, identity, "stranger@x.com", "stranger-1")
        with pytest.raises(ForbiddenError):
            await AccessGate(gateway).require_owner(club["id"], stranger.id)

    async def test_active_member_can_read(self, gateway, identity, club):
        reader = make_user(gateway, identity, "reader@x.com", "reader-1")
        await gateway.insert_member({
            "club_id": club["id"],
            "user_id": reader.id,
            "email": reader.email,
            "membership_status": "active",
        })
        gate = AccessGate(gateway)
        assert await gate.is_active_member(club, reader.id)
        assert (await gate.require_reader(club, reader.id))["id"] == club["id"]

    async def test_pending_member_cannot_read(self, gateway, identity, club):
        pending = make_user(gateway, identity, "pending@x.com", "pending-1")
        await gateway.insert_member({
            "club_id": club["id"],
            "user_id": pending.id,
            "email": pending.email,
            "membership_status": "pending",
        })
        with pytest.raises(ForbiddenError):
            await AccessGate(gateway).require_reader(club, pending.id)

    async def test_check_has_no_side_effects(self, gateway, identity, club):
        stranger = make_user(gateway, identity, "stranger@x.com", "stranger-1")
        before = {name: list(rows) for name, rows in gateway.tables.items()}
        with pytest.raises(ForbiddenError):
            await AccessGate(gateway).require_owner(club["id"], stranger.id)
        assert gateway.tables == before
