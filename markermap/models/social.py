"""User profiles, friendships and folder shares.

These mirror the ``users``, ``friendships`` and ``folder_shares`` tables.
Routes mostly pass rows through unchanged; the models exist where the
server builds or derives a record itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_PLACEHOLDER_NAME_LENGTH = 8


@dataclass(frozen=True, slots=True)
class UserProfile:
    """A row of the ``users`` table.

    Attributes:
        user_id: Identity-provider subject id.
        email: Account email (empty for placeholders).
        display_name: Name shown to friends.
        profile_picture_url: Avatar URL, if any.
    """

    user_id: str
    email: str = ""
    display_name: str | None = None
    profile_picture_url: str | None = None

    @classmethod
    def placeholder(cls, user_id: str) -> UserProfile:
        """Stand-in profile for a user id with no ``users`` row."""
        return cls(user_id=user_id, display_name=user_id[:_PLACEHOLDER_NAME_LENGTH])

    @classmethod
    def backfill(cls, user_id: str) -> UserProfile:
        """Provisional profile created for accounts that predate the ``users`` table.

        Real email and name replace these once the user signs in again.
        """
        return cls(
            user_id=user_id,
            email=f"{user_id}@temp.com",
            display_name=f"User {user_id[:_PLACEHOLDER_NAME_LENGTH]}",
        )

    @classmethod
    def from_google_userinfo(cls, info: dict[str, Any]) -> UserProfile:
        """Derive the local user record from an OpenID Connect userinfo payload.

        Raises:
            ValueError: If the payload has no ``sub`` claim.
        """
        subject = str(info.get("sub") or "")
        if not subject:
            msg = "userinfo payload has no 'sub' claim"
            raise ValueError(msg)
        return cls(
            user_id=subject,
            email=str(info.get("email") or ""),
            display_name=info.get("name") or None,
            profile_picture_url=info.get("picture") or None,
        )

    def to_row(self) -> dict[str, object]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "display_name": self.display_name,
            "profile_picture_url": self.profile_picture_url,
        }

    def to_dict(self) -> dict[str, object]:
        """Client shape of a signed-in user."""
        return {
            "uid": self.user_id,
            "email": self.email or None,
            "displayName": self.display_name,
            "photoURL": self.profile_picture_url,
        }


@dataclass(frozen=True, slots=True)
class Friendship:
    """A directed friend request and its status.

    ``user_id`` sent the request to ``friend_id``.
    """

    id: str
    user_id: str
    friend_id: str
    status: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Friendship:
        return cls(
            id=str(row.get("id", "")),
            user_id=str(row["user_id"]),
            friend_id=str(row["friend_id"]),
            status=str(row.get("status", "")),
        )

    def other_party(self, user_id: str) -> str:
        """Return the id of the user on the other side of the friendship."""
        return self.friend_id if self.user_id == user_id else self.user_id

    def is_incoming_for(self, user_id: str) -> bool:
        """Whether *user_id* received (rather than sent) this request."""
        return self.friend_id == user_id


@dataclass(frozen=True, slots=True)
class FolderShare:
    """A folder shared by its owner with another user."""

    id: str
    folder_id: str
    owner_id: str
    shared_with_id: str
    permission: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> FolderShare:
        return cls(
            id=str(row.get("id", "")),
            folder_id=str(row["folder_id"]),
            owner_id=str(row["owner_id"]),
            shared_with_id=str(row["shared_with_id"]),
            permission=str(row.get("permission", "")),
        )

    def involves(self, user_id: str) -> bool:
        """Whether *user_id* is the owner or the recipient of this share."""
        return user_id in (self.owner_id, self.shared_with_id)
