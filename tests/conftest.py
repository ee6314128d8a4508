"""
Pytest configuration and fixtures for the clubhouse tests
"""

import pytest
import pytest_asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.auth.models import AuthUser
from app.club.config import ClubSettings
from app.club.service import MembershipService
from tests.fakes import CLUB_FIELDS, FRONTEND_URL, FakeIdentityProvider, InMemoryGateway


class Clock:
    """Settable clock handed to the service"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return Clock(datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def identity(gateway):
    return FakeIdentityProvider(gateway)


@pytest.fixture
def service(gateway, identity, clock):
    return MembershipService(
        gateway,
        identity,
        settings=ClubSettings(),
        frontend_url=FRONTEND_URL,
        clock=clock,
    )


@pytest.fixture
def owner(gateway, identity) -> AuthUser:
    """Signed-up user with a profile row, no club yet"""
    user = identity.add_account("owner@club.com", "owner-1")
    gateway.add_user(user.id, user.email, "Olive", "Owner", phone="(555) 000-0001")
    return user


@pytest.fixture
def club_fields():
    return dict(CLUB_FIELDS)


@pytest_asyncio.fixture
async def club(service, owner, club_fields):
    return await service.create_club(owner, club_fields)
