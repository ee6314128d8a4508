"""
Supabase adapter tests (mocked client)
"""
import pytest
from unittest.mock import MagicMock

import httpx
from postgrest.exceptions import APIError

from app.auth.identity import SupabaseIdentityProvider
from app.club.errors import (
    AccountCreationError,
    AuthenticationError,
    ConflictError,
    EmailDispatchError,
    PersistenceError,
)
from database.supabase_client import SupabaseGateway


def api_error(code: str) -> APIError:
    return APIError({"message": "boom", "code": code, "hint": None, "details": None})


@pytest.mark.asyncio
class TestSupabaseGateway:
    """PostgREST error translation"""

    async def test_point_lookup(self):
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value
        query.limit.return_value.execute.return_value = MagicMock(data=[{"id": 7}])

        club = await SupabaseGateway(client).get_club(7)

        assert club == {"id": 7}
        client.table.assert_called_with("clubs")

    async def test_lookup_miss(self):
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value
        query.limit.return_value.execute.return_value = MagicMock(data=[])

        assert await SupabaseGateway(client).get_club(7) is None

    async def test_unique_violation_is_conflict(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.side_effect = api_error("23505")

        with pytest.raises(ConflictError):
            await SupabaseGateway(client).insert_member({"club_id": 1, "email": "a@b.com"})

    async def test_other_db_error_is_persistence_error(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.side_effect = api_error("42501")

        with pytest.raises(PersistenceError) as exc_info:
            await SupabaseGateway(client).insert_invite({"token": "t"})
        assert exc_info.value.message == "Error generating invite"

    async def test_connection_error_is_persistence_error(self):
        client = MagicMock()
        client.table.return_value.delete.return_value.eq.return_value.execute.side_effect = (
            httpx.ConnectError("refused")
        )

        with pytest.raises(PersistenceError):
            await SupabaseGateway(client).delete_invite(3)

    async def test_activate_member_is_conditional(self):
        client = MagicMock()
        update = client.table.return_value.update
        by_id = update.return_value.eq
        conditional = by_id.return_value.eq
        conditional.return_value.execute.return_value = MagicMock(data=[])

        result = await SupabaseGateway(client).activate_member(5, "user-1", {"first_name": "Jo"})

        assert result is None
        update.assert_called_with({
            "first_name": "Jo",
            "user_id": "user-1",
            "membership_status": "active",
        })
        by_id.assert_called_with("id", 5)
        conditional.assert_called_with("membership_status", "pending")

    async def test_clubs_for_user_drop_join_column(self):
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value
        query.execute.return_value = MagicMock(data=[
            {"id": 1, "name": "Riverside", "members": [{"user_id": "u1"}]},
        ])

        clubs = await SupabaseGateway(client).list_clubs_for_user("u1")
        assert clubs == [{"id": 1, "name": "Riverside"}]


@pytest.mark.asyncio
class TestSupabaseIdentityProvider:
    """Auth API error translation"""

    async def test_authenticate(self):
        client = MagicMock()
        client.auth.get_user.return_value = MagicMock(user=MagicMock(id="u1", email="a@b.com"))

        user = await SupabaseIdentityProvider(client).authenticate("jwt")

        assert user.id == "u1"
        assert user.email == "a@b.com"
        client.auth.get_user.assert_called_with("jwt")

    async def test_authenticate_without_user(self):
        client = MagicMock()
        client.auth.get_user.return_value = MagicMock(user=None)

        with pytest.raises(AuthenticationError):
            await SupabaseIdentityProvider(client).authenticate("jwt")

    async def test_create_account(self):
        client = MagicMock()
        client.auth.admin.create_user.return_value = MagicMock(user=MagicMock(id="new-1"))

        account_id = await SupabaseIdentityProvider(client).create_account(
            "a@b.com", {"first_name": "A"}
        )

        assert account_id == "new-1"
        client.auth.admin.create_user.assert_called_with({
            "email": "a@b.com",
            "email_confirm": True,
            "user_metadata": {"first_name": "A"},
        })

    async def test_create_account_failure(self):
        client = MagicMock()
        client.auth.admin.create_user.side_effect = httpx.ConnectError("refused")

        with pytest.raises(AccountCreationError):
            await SupabaseIdentityProvider(client).create_account("a@b.com", {})

    async def test_magic_link_does_not_create_users(self):
        client = MagicMock()

        await SupabaseIdentityProvider(client).send_magic_link(
            "a@b.com", "https://app/join/t", {"invite_token": "t"}
        )

        sent = client.auth.sign_in_with_otp.call_args[0][0]
        assert sent["email"] == "a@b.com"
        assert sent["options"]["email_redirect_to"] == "https://app/join/t"
        assert sent["options"]["should_create_user"] is False

    async def test_invite_email_for_registered_account_uses_outbox(self):
        client = MagicMock()
        insert = client.table.return_value.insert
        insert.return_value.execute.return_value = MagicMock(data=[{"id": 1}])

        await SupabaseIdentityProvider(client, invite_template="club-invite").send_invite_email(
            "a@b.com", "https://app/join/t", {"club_name": "Riverside", "invite_token": "t"}
        )

        client.table.assert_called_with("emails")
        insert.assert_called_with({
            "to": "a@b.com",
            "template": "club-invite",
            "data": {
                "club_name": "Riverside",
                "invite_token": "t",
                "redirect_url": "https://app/join/t",
            },
        })
        client.auth.admin.invite_user_by_email.assert_not_called()

    async def test_invite_template_defaults_to_club_settings(self):
        assert SupabaseIdentityProvider(MagicMock()).invite_template == "club-invite"

    async def test_invite_email_failure(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.side_effect = httpx.ConnectError("refused")

        with pytest.raises(EmailDispatchError):
            await SupabaseIdentityProvider(client).send_invite_email("a@b.com", "https://app", {})

    async def test_invite_email_rejected_by_database(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.side_effect = api_error("42501")

        with pytest.raises(EmailDispatchError):
            await SupabaseIdentityProvider(client).send_invite_email("a@b.com", "https://app", {})

    async def test_find_account(self):
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value
        query.limit.return_value.execute.return_value = MagicMock(data=[{"id": "u1", "email": "a@b.com"}])

        assert await SupabaseIdentityProvider(client).find_account_by_email("a@b.com") == {
            "id": "u1",
            "email": "a@b.com",
        }
