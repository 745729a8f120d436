"""Tests for the user profile, search and backfill handlers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from markermap.api import users
from markermap.core.exceptions import ContractError, NotFoundError, ValidationError
from markermap.models.payloads import UserProfileBody


class TestGetProfile:
    def test_found(self, store: MagicMock) -> None:
        """Test returning a stored profile."""
        store.get_user.return_value = {"user_id": "u1", "email": "a@b.com"}
        assert users.get_profile("u1", store).body == {
            "user": {"user_id": "u1", "email": "a@b.com"}
        }

    def test_not_found(self, store: MagicMock) -> None:
        """Test 404 for an unknown user."""
        with pytest.raises(NotFoundError, match="User not found"):
            users.get_profile("u1", store)

    def test_requires_user(self, store: MagicMock) -> None:
        """Test rejection without a user id."""
        with pytest.raises(ValidationError, match="User ID is required"):
            users.get_profile(None, store)


class TestSaveProfile:
    def test_upserts_row(self, store: MagicMock) -> None:
        """Test that the profile row is upserted."""
        store.upsert_users.return_value = [{"user_id": "u1"}]
        body = {"userId": "u1", "email": "a@b.com", "displayName": "Ada"}

        response = users.save_profile(body, store)

        assert response.body == {"success": True, "user": [{"user_id": "u1"}]}
        store.upsert_users.assert_called_once_with(
            [
                {
                    "user_id": "u1",
                    "email": "a@b.com",
                    "display_name": "Ada",
                    "profile_picture_url": None,
                }
            ]
        )

    @pytest.mark.parametrize("body", [{}, {"userId": "u1"}, {"email": "a@b.com"}])
    def test_requires_id_and_email(self, store: MagicMock, body: dict[str, str]) -> None:
        """Test rejection when the user id or email is missing."""
        with pytest.raises(ValidationError, match="User ID and email are required"):
            users.save_profile(body, store)

    def test_body_checked_against_schema(self, store: MagicMock) -> None:
        """Test that the request body is validated against ``UserProfileBody``."""
        body = {"userId": "u1", "email": "a@b.com"}
        with patch.object(users, "validate_payload", side_effect=ContractError("bad")) as check:
            with pytest.raises(ContractError):
                users.save_profile(body, store)
        check.assert_called_once_with(body, UserProfileBody, route="users/profile")
        store.upsert_users.assert_not_called()


class TestSearchUsers:
    def test_excludes_related_users(self, store: MagicMock) -> None:
        """Test that users with any friendship are left out of search results."""
        store.search_users.return_value = [
            {"user_id": "bob"},
            {"user_id": "carol"},
            {"user_id": "dave"},
        ]
        store.list_friendships.return_value = [
            {"id": "fr1", "user_id": "alice", "friend_id": "bob", "status": "accepted"},
            {"id": "fr2", "user_id": "carol", "friend_id": "alice", "status": "pending"},
        ]

        response = users.search_users("a", "alice", store)

        assert response.body == {"users": [{"user_id": "dave"}]}
        store.search_users.assert_called_once_with("a", exclude_user_id="alice")

    @pytest.mark.parametrize(("query", "user_id"), [(None, "u1"), ("ada", None), ("", "")])
    def test_requires_query_and_user(
        self, store: MagicMock, query: str | None, user_id: str | None
    ) -> None:
        """Test rejection when the query or user id is missing."""
        with pytest.raises(ValidationError, match="Query and user ID are required"):
            users.search_users(query, user_id, store)


class TestBackfillUsers:
    def test_creates_profiles_for_owners(self, store: MagicMock) -> None:
        """Test placeholder profiles for every data owner."""
        store.distinct_owner_ids.return_value = {"owner-b", "owner-a"}

        response = users.backfill_users(store)

        assert response.body["success"] is True
        assert response.body["usersCreated"] == 2
        assert response.body["message"].startswith("Created 2 user profiles.")
        (rows,) = store.upsert_users.call_args.args
        assert [row["user_id"] for row in rows] == ["owner-a", "owner-b"]
        assert rows[0]["email"] == "owner-a@temp.com"
        assert rows[0]["display_name"] == "User owner-a"

    def test_no_owners(self, store: MagicMock) -> None:
        """Test that backfill with no owners writes nothing."""
        assert users.backfill_users(store).body["usersCreated"] == 0
        store.upsert_users.assert_not_called()
