"""
Membership Service

Club membership and invitation lifecycle:
- create club (club + owner member + owner promotion, rolled back as a unit)
- single / bulk invite (provisional account, pending member, invite token, email)
- confirm invite, onboarding (invite confirmation + profile), self-service join
- club listing, lookup, update and member roster

Every multi-step mutation runs inside a Saga so that a failure at step N undoes
steps N-1..1 in reverse order.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from loguru import logger

from database.gateway import PersistenceGateway, Row
from app.auth.identity import IdentityProvider
from app.auth.models import AuthUser

from .access import AccessGate
from .config import ClubSettings, get_club_settings
from .errors import (
    AlreadyActiveError,
    AlreadyMemberError,
    ClubError,
    ConflictError,
    EmailMismatchError,
    ExpiredError,
    MembershipClosedError,
    MissingFieldError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .models import (
    CLUB_REQUIRED_FIELDS,
    BulkInviteResult,
    InviteFailure,
    InviteRecord,
    MembershipStatus,
    MemberType,
    ParticipantRole,
)
from .saga import Saga
from .validators import (
    normalize_email,
    require_fields,
    validate_email,
    validate_member_type,
    validate_phone,
)

INVITE_FIELDS = ("email", "first_name", "last_name", "member_type")

# Written onto the member row by onboarding
PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "phone",
    "emergency_contact_name",
    "emergency_contact_phone",
)

# Club columns the owner may change; owner_id / id never
UPDATABLE_CLUB_FIELDS = CLUB_REQUIRED_FIELDS + ("logo_url", "onboarding_completed")

INVALID_TOKEN_MESSAGE = "Invalid or expired invite token"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MembershipService:
    """Club membership lifecycle on top of a persistence gateway and an identity provider"""

    def __init__(
        self,
        gateway: PersistenceGateway,
        identity: IdentityProvider,
        settings: Optional[ClubSettings] = None,
        frontend_url: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.gateway = gateway
        self.identity = identity
        self.gate = AccessGate(gateway)
        self.settings = settings or get_club_settings()
        if frontend_url is None:
            from app.auth.config import get_auth_settings
            frontend_url = get_auth_settings().FRONTEND_URL
        self.frontend_url = frontend_url.rstrip("/")
        self._clock = clock

    # =============================================
    # Helpers
    # =============================================

    def now(self) -> datetime:
        return self._clock()

    def _timestamp(self) -> str:
        return self.now().isoformat()

    def invite_url(self, token: str) -> str:
        return f"{self.frontend_url}{self.settings.invite_path}/{token}"

    async def _role_id(self, role: ParticipantRole) -> Any:
        row = await self.gateway.get_role_by_name(role.value)
        if not row:
            raise PersistenceError(f"Role '{role.value}' is not configured")
        return row["id"]

    async def _require_profile(self, user_id: str) -> Row:
        profile = await self.gateway.get_user(user_id)
        if not profile:
            raise NotFoundError("User profile not found")
        return profile

    @staticmethod
    def _with_ownership(club: Row, user_id: str) -> Row:
        return {**club, "is_owner": AccessGate.is_owner(club, user_id)}

    # =============================================
    # Club
    # =============================================

    async def create_club(self, owner: AuthUser, fields: Dict[str, Any]) -> Row:
        """
        Create a club owned by the caller.

        Steps: club row -> owner member (active) -> owner promoted to admin.
        A failure at any step removes what the earlier steps created.
        """
        require_fields(fields, CLUB_REQUIRED_FIELDS)
        contact_email = validate_email(fields["contact_email"])
        contact_phone = validate_phone(fields["contact_phone"])
        subdomain = fields["subdomain"].strip().lower()

        if await self.gateway.get_club_by_subdomain(subdomain):
            raise ConflictError("Subdomain already taken")

        profile = await self._require_profile(owner.id)
        admin_role_id = await self._role_id(ParticipantRole.admin)
        now = self._timestamp()

        logger.info(f"Creating club '{subdomain}' for {owner.id}")
        async with Saga("create_club") as saga:
            try:
                club = await self.gateway.insert_club({
                    "name": fields["name"].strip(),
                    "subdomain": subdomain,
                    "description": fields["description"],
                    "contact_email": contact_email,
                    "contact_phone": contact_phone,
                    "address": fields["address"],
                    "city": fields["city"],
                    "state": fields["state"],
                    "zip_code": fields["zip_code"],
                    "owner_id": owner.id,
                    "onboarding_completed": False,
                    "created_at": now,
                    "updated_at": now,
                })
            except ConflictError as e:
                # lost a race with another creator
                raise ConflictError("Subdomain already taken") from e
            saga.add_compensation(f"delete club {club['id']}", self.gateway.delete_club, club["id"])

            try:
                member = await self.gateway.insert_member({
                    "club_id": club["id"],
                    "user_id": owner.id,
                    "first_name": profile.get("first_name"),
                    "last_name": profile.get("last_name"),
                    "email": normalize_email(profile.get("email") or owner.email),
                    "phone": profile.get("phone"),
                    "member_type": MemberType.individual.value,
                    "membership_status": MembershipStatus.active.value,
                    "membership_start_date": self.now().date().isoformat(),
                    "created_at": now,
                    "updated_at": now,
                })
            except PersistenceError as e:
                raise PersistenceError("Failed to create member record") from e
            saga.add_compensation(f"delete member {member['id']}", self.gateway.delete_member, member["id"])

            updated = await self.gateway.update_user(owner.id, {
                "role_id": admin_role_id,
                "club_id": club["id"],
                "updated_at": now,
            })
            if not updated:
                raise PersistenceError("Failed to update user role")

        logger.info(f"Club created: {club['id']} ({subdomain})")
        return self._with_ownership(club, owner.id)

    async def list_my_clubs(self, actor: AuthUser) -> List[Row]:
        """Clubs the caller holds a member row in"""
        clubs = await self.gateway.list_clubs_for_user(actor.id)
        clubs = [self._with_ownership(club, actor.id) for club in clubs]
        return sorted(clubs, key=lambda c: (c.get("name") or "").lower())

    async def get_club_by_subdomain(self, actor: AuthUser, subdomain: str) -> Row:
        club = await self.gateway.get_club_by_subdomain((subdomain or "").strip().lower())
        if not club:
            raise NotFoundError("Club not found")
        await self.gate.require_reader(club, actor.id)
        return self._with_ownership(club, actor.id)

    async def update_club(self, actor: AuthUser, club_id: int, fields: Dict[str, Any]) -> Row:
        club = await self.gate.require_owner(
            club_id, actor.id, "Only club owner can update club details"
        )

        changes = {
            key: value for key, value in fields.items()
            if key in UPDATABLE_CLUB_FIELDS and value is not None
        }
        if not changes:
            raise ValidationError("No updatable fields supplied")

        for key in CLUB_REQUIRED_FIELDS:
            if key in changes:
                require_fields(changes, (key,))
        if "contact_email" in changes:
            changes["contact_email"] = validate_email(changes["contact_email"])
        if "contact_phone" in changes:
            validate_phone(changes["contact_phone"])
        if changes.get("onboarding_completed") is False and club.get("onboarding_completed"):
            raise ValidationError("Onboarding cannot be reopened")
        if "subdomain" in changes:
            changes["subdomain"] = changes["subdomain"].strip().lower()
            if changes["subdomain"] != club.get("subdomain"):
                if await self.gateway.get_club_by_subdomain(changes["subdomain"]):
                    raise ConflictError("Subdomain already taken")

        changes["updated_at"] = self._timestamp()
        try:
            updated = await self.gateway.update_club(club_id, changes)
        except ConflictError as e:
            raise ConflictError("Subdomain already taken") from e
        if not updated:
            raise NotFoundError("Club not found")

        logger.info(f"Club {club_id} updated: {sorted(k for k in changes if k != 'updated_at')}")
        return self._with_ownership(updated, actor.id)

    async def list_club_members(self, actor: AuthUser, club_id: int) -> List[Row]:
        """Roster ordered by last name, then first name"""
        club = await self.gate.get_club(club_id)
        await self.gate.require_reader(club, actor.id)
        members = await self.gateway.list_members(club_id)
        return sorted(
            members,
            key=lambda m: ((m.get("last_name") or "").lower(), (m.get("first_name") or "").lower())
        )

    # =============================================
    # Invites
    # =============================================

    async def invite_member(
        self,
        actor: AuthUser,
        club_id: Optional[int],
        email: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        member_type: Optional[str],
    ) -> Row:
        """Invite one person; returns the pending member row"""
        require_fields(
            {
                "club_id": club_id,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "member_type": member_type,
            },
            ("club_id",) + INVITE_FIELDS,
        )
        normalized = validate_email(email)
        kind = validate_member_type(member_type)
        club = await self.gate.require_owner(club_id, actor.id, "Only the club owner can send invites")

        return await self._invite_one(actor, club, normalized, first_name.strip(), last_name.strip(), kind)

    async def bulk_invite(
        self,
        actor: AuthUser,
        club_id: Optional[int],
        members: Iterable[Dict[str, Any]],
    ) -> BulkInviteResult:
        """
        Invite several people. The access check runs once; each entry then
        succeeds or fails on its own and a failed entry never undoes another.
        """
        if club_id is None:
            raise MissingFieldError("club_id")
        entries = list(members or [])
        if not entries:
            raise ValidationError("Members array is required and must not be empty")

        club = await self.gate.require_owner(club_id, actor.id, "Only the club owner can send invites")
        result = BulkInviteResult()

        for entry in entries:
            label = (entry.get("email") or "").strip() or "unknown"
            try:
                require_fields(entry, INVITE_FIELDS)
                normalized = validate_email(entry["email"])
                kind = validate_member_type(entry["member_type"])
                member = await self._invite_one(
                    actor,
                    club,
                    normalized,
                    entry["first_name"].strip(),
                    entry["last_name"].strip(),
                    kind,
                )
            except ClubError as e:
                logger.warning(f"Bulk invite entry {label} failed: {e.message}")
                result.failed.append(InviteFailure(email=label, error=e.message))
                continue
            except Exception as e:
                logger.exception(f"Bulk invite entry {label} raised unexpectedly: {e}")
                result.failed.append(InviteFailure(email=label, error="Internal error processing member"))
                continue
            result.successful.append(member)

        logger.info(
            f"Bulk invite for club {club_id}: "
            f"{len(result.successful)} sent, {len(result.failed)} failed"
        )
        return result

    async def _invite_one(
        self,
        actor: AuthUser,
        club: Row,
        email: str,
        first_name: str,
        last_name: str,
        member_type: MemberType,
    ) -> Row:
        club_id = club["id"]
        existing = await self.gateway.find_member_by_email(club_id, email)
        if existing:
            raise AlreadyMemberError(existing.get("membership_status") or MembershipStatus.pending.value)

        now = self._timestamp()
        async with Saga(f"invite {email} to club {club_id}") as saga:
            account = await self.identity.find_account_by_email(email)
            created_account = account is None

            if created_account:
                member_role_id = await self._role_id(ParticipantRole.member)
                account_id = await self.identity.create_account(
                    email,
                    {
                        "first_name": first_name,
                        "last_name": last_name,
                        "full_name": f"{first_name} {last_name}",
                        "role": ParticipantRole.member.value,
                    },
                    email_confirmed=True,
                )
                saga.add_compensation(
                    f"delete provisional account {account_id}",
                    self.identity.delete_account,
                    account_id,
                )
                # an auth trigger may already have mirrored the account
                await self.gateway.upsert("users", {
                    "id": account_id,
                    "email": email,
                    "first_name": first_name,
                    "last_name": last_name,
                    "role_id": member_role_id,
                    "is_active": True,
                    "created_at": now,
                    "updated_at": now,
                }, on_conflict="id")
                saga.add_compensation(
                    f"delete provisional user row {account_id}",
                    self.gateway.delete_user,
                    account_id,
                )
            else:
                account_id = account["id"]

            try:
                member = await self.gateway.insert_member({
                    "club_id": club_id,
                    "user_id": account_id,
                    "email": email,
                    "first_name": first_name,
                    "last_name": last_name,
                    "member_type": member_type.value,
                    "membership_status": MembershipStatus.pending.value,
                    "membership_start_date": self.now().date().isoformat(),
                    "created_at": now,
                    "updated_at": now,
                })
            except ConflictError as e:
                raise AlreadyMemberError(MembershipStatus.pending.value) from e
            saga.add_compensation(f"delete member {member['id']}", self.gateway.delete_member, member["id"])

            token = str(uuid4())
            invite = await self.gateway.insert_invite({
                "token": token,
                "member_id": member["id"],
                "club_id": club_id,
                "expires_at": (self.now() + timedelta(days=self.settings.invite_expiry_days)).isoformat(),
                "created_by": actor.id,
                "created_at": now,
            })
            saga.add_compensation(f"delete invite {invite['id']}", self.gateway.delete_invite, invite["id"])

            payload = {
                "club_name": club.get("name"),
                "first_name": first_name,
                "invite_token": token,
            }
            if created_account:
                await self.identity.send_magic_link(email, self.invite_url(token), payload)
            else:
                await self.identity.send_invite_email(email, self.invite_url(token), payload)

        logger.info(
            f"Invited {email} to club {club_id} as member {member['id']} "
            f"({'new' if created_account else 'existing'} account)"
        )
        return member

    # =============================================
    # Confirmation / onboarding / join
    # =============================================

    async def _resolve_invite(
        self,
        actor: AuthUser,
        token: Optional[str],
        field: str = "token",
    ) -> Tuple[InviteRecord, Row]:
        """Invite + member behind a token, in check order: exists, email, expiry, status"""
        if not token or not token.strip():
            raise MissingFieldError(field)

        row = await self.gateway.get_invite_by_token(token.strip())
        if not row:
            raise NotFoundError(INVALID_TOKEN_MESSAGE)
        invite = InviteRecord.model_validate(row)

        member = await self.gateway.get_member(invite.member_id)
        if not member:
            raise NotFoundError(INVALID_TOKEN_MESSAGE)

        if normalize_email(member.get("email") or "") != normalize_email(actor.email or ""):
            logger.warning(f"Invite {invite.id} presented by {actor.id} with a different email")
            raise EmailMismatchError()
        if invite.is_expired(self.now()):
            raise ExpiredError()
        status = member.get("membership_status")
        if status == MembershipStatus.active.value:
            raise AlreadyActiveError()
        if status != MembershipStatus.pending.value:
            logger.warning(f"Invite {invite.id} presented for {status} member {member['id']}")
            raise MembershipClosedError(status)
        return invite, member

    async def _activate(self, actor: AuthUser, member: Row, fields: Optional[Row] = None) -> Row:
        data = dict(fields or {})
        data["updated_at"] = self._timestamp()
        activated = await self.gateway.activate_member(member["id"], actor.id, data)
        if not activated:
            # another request moved it out of pending between the read and the update
            raise AlreadyActiveError()
        return activated

    async def _discard_invite(self, invite: InviteRecord) -> None:
        try:
            await self.gateway.delete_invite(invite.id)
        except ClubError as e:
            logger.warning(f"Consumed invite {invite.id} not deleted: {e.message}")

    async def confirm_invite(self, actor: AuthUser, token: Optional[str]) -> Row:
        """Activate the invited member for the caller; returns the active member"""
        invite, member = await self._resolve_invite(actor, token)
        activated = await self._activate(actor, member)
        await self._discard_invite(invite)

        logger.info(f"Member {member['id']} confirmed by {actor.id}")
        return activated

    async def onboard_and_confirm(
        self,
        actor: AuthUser,
        token: Optional[str],
        profile: Dict[str, Any],
    ) -> Row:
        """Invite confirmation with first-time profile setup"""
        require_fields({"invite_token": token, **profile}, ("invite_token", "first_name", "last_name"))
        for key in ("phone", "emergency_contact_phone"):
            if profile.get(key):
                validate_phone(profile[key])

        invite, member = await self._resolve_invite(actor, token, field="invite_token")
        fields = {key: profile[key] for key in PROFILE_FIELDS if profile.get(key) is not None}
        activated = await self._activate(actor, member, fields)
        await self._discard_invite(invite)
        await self._queue_welcome(activated)

        logger.info(f"Member {member['id']} onboarded by {actor.id}")
        return activated

    async def _queue_welcome(self, member: Row) -> None:
        email = member.get("email")
        if not email:
            return
        try:
            await self.gateway.queue_email(email, self.settings.welcome_email_template, {
                "first_name": member.get("first_name"),
                "club_id": member.get("club_id"),
            })
        except ClubError as e:
            logger.warning(f"Welcome email for member {member.get('id')} not queued: {e.message}")

    async def join_club(
        self,
        actor: AuthUser,
        club_id: Optional[int],
        member_type: Any = MemberType.individual,
    ) -> Row:
        """Self-service join: a pending member copied from the caller's profile"""
        if club_id is None:
            raise MissingFieldError("club_id")
        kind = validate_member_type(member_type)
        club = await self.gate.get_club(club_id)

        existing = await self.gateway.find_member_by_user(club["id"], actor.id)
        profile = await self._require_profile(actor.id)
        email = normalize_email(profile.get("email") or actor.email or "")
        if not existing and email:
            existing = await self.gateway.find_member_by_email(club["id"], email)
        if existing:
            status = existing.get("membership_status") or MembershipStatus.pending.value
            raise AlreadyMemberError(status, f"You are already a {status} member of this club")

        now = self._timestamp()
        try:
            member = await self.gateway.insert_member({
                "club_id": club["id"],
                "user_id": actor.id,
                "email": email,
                "first_name": profile.get("first_name"),
                "last_name": profile.get("last_name"),
                "phone": profile.get("phone"),
                "member_type": kind.value,
                "membership_status": MembershipStatus.pending.value,
                "membership_start_date": self.now().date().isoformat(),
                "created_at": now,
                "updated_at": now,
            })
        except ConflictError as e:
            raise AlreadyMemberError(
                MembershipStatus.pending.value, "You are already a member of this club"
            ) from e

        logger.info(f"User {actor.id} requested to join club {club['id']} (member {member['id']})")
        return member
