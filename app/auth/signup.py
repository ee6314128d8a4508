"""
Self-service signup

Creates the account, its users row and, when club details are supplied, the
club with its owner as the first active member. Any failing step removes the
resources created before it.
"""
from datetime import datetime, timezone
from typing import Optional

from loguru import logger

from database.gateway import PersistenceGateway
from app.club.errors import ConflictError, PersistenceError
from app.club.models import MembershipStatus, MemberType, ParticipantRole
from app.club.saga import Saga
from app.club.validators import require_fields, validate_email, validate_phone

from .identity import IdentityProvider
from .models import SignupData, SignupResult, SignupUser


class SignupService:
    """Password signup with optional club creation"""

    def __init__(self, gateway: PersistenceGateway, identity: IdentityProvider):
        self.gateway = gateway
        self.identity = identity

    async def signup(
        self,
        email: Optional[str],
        password: Optional[str],
        data: Optional[SignupData] = None,
    ) -> SignupResult:
        data = data or SignupData()
        require_fields({"email": email, "password": password}, ("email", "password"))
        email = validate_email(email)
        if data.phone:
            validate_phone(data.phone)

        creates_club = data.creates_club()
        if creates_club:
            require_fields(data.model_dump(), ("first_name", "last_name"))

        if await self.gateway.get_user_by_email(email):
            raise ConflictError(f"User with email {email} already exists")

        subdomain = None
        if creates_club:
            subdomain = data.club_subdomain.strip().lower()
            if await self.gateway.get_club_by_subdomain(subdomain):
                raise ConflictError("Club subdomain already taken")

        role = ParticipantRole.admin if creates_club else ParticipantRole.member
        role_row = await self.gateway.get_role_by_name(role.value)
        if not role_row:
            raise PersistenceError(f"Role '{role.value}' is not configured")

        first_name = (data.first_name or "").strip()
        last_name = (data.last_name or "").strip()
        full_name = f"{first_name} {last_name}".strip()
        now = datetime.now(timezone.utc).isoformat()

        logger.info(f"Signup started for {email} (club: {subdomain or '-'})")
        async with Saga(f"signup {email}") as saga:
            account = await self.identity.sign_up(email, password, {
                **data.model_dump(exclude_none=True),
                "full_name": full_name,
                "role": role.value,
            })
            saga.add_compensation(f"delete account {account.id}", self.identity.delete_account, account.id)

            # an auth trigger may already have mirrored the account
            await self.gateway.upsert("users", {
                "id": account.id,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "phone": data.phone,
                "role_id": role_row["id"],
                "is_active": True,
                "created_at": now,
                "updated_at": now,
            }, on_conflict="id")
            saga.add_compensation(f"delete user row {account.id}", self.gateway.delete_user, account.id)

            club = None
            if creates_club:
                try:
                    club = await self.gateway.insert_club({
                        "name": data.club_name.strip(),
                        "subdomain": subdomain,
                        "owner_id": account.id,
                        "onboarding_completed": False,
                        "created_at": now,
                        "updated_at": now,
                    })
                except ConflictError as e:
                    raise ConflictError("Club subdomain already taken") from e
                saga.add_compensation(f"delete club {club['id']}", self.gateway.delete_club, club["id"])

                member = await self.gateway.insert_member({
                    "club_id": club["id"],
                    "user_id": account.id,
                    "email": email,
                    "first_name": first_name,
                    "last_name": last_name,
                    "phone": data.phone,
                    "date_of_birth": data.birth_date,
                    "member_type": MemberType.individual.value,
                    "membership_status": MembershipStatus.active.value,
                    "membership_start_date": now[:10],
                    "created_at": now,
                    "updated_at": now,
                })
                saga.add_compensation(f"delete member {member['id']}", self.gateway.delete_member, member["id"])

                if not await self.gateway.update_user(account.id, {"club_id": club["id"], "updated_at": now}):
                    raise PersistenceError("Failed to link user to club")

        logger.info(f"Signup completed for {email}: {account.id}")
        return SignupResult(
            user=SignupUser(id=account.id, email=email, name=full_name),
            club=club,
        )
