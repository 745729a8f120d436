"""Persistence adapter over Supabase (PostgREST).

``MarkerMapStore`` wraps a ``supabase.Client`` and exposes one method per
table operation the routes need. It speaks in table rows (plain dicts);
conversion to and from ``Folder``/``Marker`` happens at the call sites.

Every PostgREST or transport failure is re-raised as ``StoreError`` carrying
the server's message. There are no multi-table transactions: callers that
write folders and then markers must surface a partial failure themselves.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

import httpx
from postgrest.exceptions import APIError
from supabase import create_client

from markermap.core.constants import (
    FOLDER_SHARES_TABLE,
    FOLDERS_TABLE,
    FRIENDSHIP_ACCEPTED,
    FRIENDSHIPS_TABLE,
    MARKERS_TABLE,
    PREFERENCES_TABLE,
    PROTECTED_FOLDER_NAME,
    SHARED_BY_ME,
    SHARED_WITH_ME,
    USERS_TABLE,
)
from markermap.core.exceptions import TransientError, ValidationError
from markermap.utils.helpers import to_iso, utc_now

if TYPE_CHECKING:
    from supabase import Client

logger = logging.getLogger(__name__)

Row = dict[str, Any]

# PostgREST filter syntax characters that cannot appear in a search term.
_FILTER_META_RE = re.compile(r"[,()\\*%]")
# Characters that would let an id escape its slot in an ``or`` filter.
_ID_META_RE = re.compile(r"[,()\"\\\s]")


class StoreError(TransientError):
    """A persistence call failed.

    Attributes:
        table: Table the failing call targeted.
    """

    default_stage = "store"
    default_code = "STORE_ERROR"
    default_status = 500

    def __init__(self, message: str, *, table: str = "", **kwargs: object) -> None:
        self.table = table
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


def create_store(url: str, key: str) -> MarkerMapStore:
    """Create a store bound to a Supabase project."""
    return MarkerMapStore(create_client(url, key))


def sanitize_search_term(term: str) -> str:
    """Strip characters that would break a PostgREST ``or`` filter."""
    return _FILTER_META_RE.sub("", term).strip()


def _filter_value(value: str) -> str:
    """Return *value* for interpolation into an ``or`` filter.

    Raises:
        ValidationError: If *value* is empty or contains filter syntax.
    """
    if not value or _ID_META_RE.search(value):
        raise ValidationError(f"Invalid identifier: {value!r}", stage="store", code="INVALID_ID")
    return value


class MarkerMapStore:
    """Table-level operations for folders, markers and social data."""

    def __init__(self, client: Client) -> None:
        self._client = client

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _execute(self, query: Any, *, table: str, action: str) -> list[Row]:
        try:
            response = query.execute()
        except APIError as exc:
            logger.error(
                "Store call failed | table=%s | action=%s | code=%s | message=%s",
                table,
                action,
                exc.code,
                exc.message,
            )
            raise StoreError(exc.message or f"{action} failed", table=table) from exc
        except httpx.HTTPError as exc:
            logger.error(
                "Store transport failure | table=%s | action=%s | error=%s",
                table,
                action,
                exc,
            )
            raise StoreError(f"Database unavailable: {exc}", table=table) from exc
        data = response.data if response is not None else None
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return list(data)

    def _first(self, query: Any, *, table: str, action: str) -> Row | None:
        rows = self._execute(query.limit(1), table=table, action=action)
        return rows[0] if rows else None

    def _table(self, name: str) -> Any:
        return self._client.table(name)

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    def upsert_folders(self, rows: Sequence[Row]) -> list[Row]:
        if not rows:
            return []
        return self._execute(
            self._table(FOLDERS_TABLE).upsert(list(rows), on_conflict="id"),
            table=FOLDERS_TABLE,
            action="upsert",
        )

    def list_folders(self, user_id: str) -> list[Row]:
        return self._execute(
            self._table(FOLDERS_TABLE).select("*").eq("user_id", user_id).order("order"),
            table=FOLDERS_TABLE,
            action="list",
        )

    def get_folders(self, folder_ids: Iterable[str]) -> list[Row]:
        ids = list(dict.fromkeys(folder_ids))
        if not ids:
            return []
        return self._execute(
            self._table(FOLDERS_TABLE).select("*").in_("id", ids),
            table=FOLDERS_TABLE,
            action="get",
        )

    def get_folder_owner(self, folder_id: str) -> str | None:
        row = self._first(
            self._table(FOLDERS_TABLE).select("user_id").eq("id", folder_id),
            table=FOLDERS_TABLE,
            action="get_owner",
        )
        return row.get("user_id") if row else None

    def delete_folder(self, user_id: str, folder_id: str) -> None:
        self._execute(
            self._table(FOLDERS_TABLE).delete().eq("id", folder_id).eq("user_id", user_id),
            table=FOLDERS_TABLE,
            action="delete",
        )

    def delete_all_folders(self, user_id: str) -> None:
        """Delete every folder of *user_id* except the one named ``Default``."""
        self._execute(
            self._table(FOLDERS_TABLE)
            .delete()
            .eq("user_id", user_id)
            .neq("name", PROTECTED_FOLDER_NAME),
            table=FOLDERS_TABLE,
            action="delete_all",
        )

    # ------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------

    def upsert_markers(self, rows: Sequence[Row]) -> list[Row]:
        if not rows:
            return []
        return self._execute(
            self._table(MARKERS_TABLE).upsert(list(rows), on_conflict="id"),
            table=MARKERS_TABLE,
            action="upsert",
        )

    def list_markers(self, user_id: str) -> list[Row]:
        return self._execute(
            self._table(MARKERS_TABLE).select("*").eq("user_id", user_id).order("created_at"),
            table=MARKERS_TABLE,
            action="list",
        )

    def delete_all_markers(self, user_id: str) -> None:
        self._execute(
            self._table(MARKERS_TABLE).delete().eq("user_id", user_id),
            table=MARKERS_TABLE,
            action="delete_all",
        )

    def distinct_owner_ids(self) -> set[str]:
        """User ids that own at least one folder or marker."""
        owners: set[str] = set()
        for table in (FOLDERS_TABLE, MARKERS_TABLE):
            rows = self._execute(
                self._table(table).select("user_id").not_.is_("user_id", "null"),
                table=table,
                action="owners",
            )
            owners.update(str(row["user_id"]) for row in rows if row.get("user_id"))
        return owners

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> Row | None:
        return self._first(
            self._table(USERS_TABLE).select("*").eq("user_id", user_id),
            table=USERS_TABLE,
            action="get",
        )

    def get_users(self, user_ids: Iterable[str]) -> list[Row]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return []
        return self._execute(
            self._table(USERS_TABLE).select("*").in_("user_id", ids),
            table=USERS_TABLE,
            action="get_many",
        )

    def upsert_users(self, rows: Sequence[Row]) -> list[Row]:
        if not rows:
            return []
        return self._execute(
            self._table(USERS_TABLE).upsert(list(rows), on_conflict="user_id"),
            table=USERS_TABLE,
            action="upsert",
        )

    def search_users(self, query: str, *, exclude_user_id: str, limit: int = 10) -> list[Row]:
        """Users whose email or display name contains *query* (case-insensitive)."""
        term = sanitize_search_term(query)
        if not term:
            return []
        return self._execute(
            self._table(USERS_TABLE)
            .select("*")
            .or_(f"email.ilike.%{term}%,display_name.ilike.%{term}%")
            .neq("user_id", exclude_user_id)
            .limit(limit),
            table=USERS_TABLE,
            action="search",
        )

    # ------------------------------------------------------------------
    # Friendships
    # ------------------------------------------------------------------

    def list_friendships(self, user_id: str) -> list[Row]:
        """Friendships where *user_id* is either side."""
        user_id = _filter_value(user_id)
        return self._execute(
            self._table(FRIENDSHIPS_TABLE)
            .select("*")
            .or_(f"user_id.eq.{user_id},friend_id.eq.{user_id}"),
            table=FRIENDSHIPS_TABLE,
            action="list",
        )

    def find_friendship(self, user_id: str, friend_id: str) -> Row | None:
        """The friendship between two users, in either direction."""
        user_id, friend_id = _filter_value(user_id), _filter_value(friend_id)
        return self._first(
            self._table(FRIENDSHIPS_TABLE)
            .select("*")
            .or_(
                f"and(user_id.eq.{user_id},friend_id.eq.{friend_id}),"
                f"and(user_id.eq.{friend_id},friend_id.eq.{user_id})"
            ),
            table=FRIENDSHIPS_TABLE,
            action="find",
        )

    def insert_friendship(self, user_id: str, friend_id: str, status: str) -> list[Row]:
        return self._execute(
            self._table(FRIENDSHIPS_TABLE).insert(
                {"user_id": user_id, "friend_id": friend_id, "status": status}
            ),
            table=FRIENDSHIPS_TABLE,
            action="insert",
        )

    def accept_friendship(self, requester_id: str, addressee_id: str) -> list[Row]:
        """Mark the request *requester_id* sent to *addressee_id* as accepted."""
        return self._execute(
            self._table(FRIENDSHIPS_TABLE)
            .update({"status": FRIENDSHIP_ACCEPTED})
            .eq("user_id", requester_id)
            .eq("friend_id", addressee_id),
            table=FRIENDSHIPS_TABLE,
            action="accept",
        )

    def update_friendship_status(self, friendship_id: str, status: str) -> list[Row]:
        return self._execute(
            self._table(FRIENDSHIPS_TABLE).update({"status": status}).eq("id", friendship_id),
            table=FRIENDSHIPS_TABLE,
            action="update_status",
        )

    def delete_friendship(self, friendship_id: str) -> None:
        self._execute(
            self._table(FRIENDSHIPS_TABLE).delete().eq("id", friendship_id),
            table=FRIENDSHIPS_TABLE,
            action="delete",
        )

    # ------------------------------------------------------------------
    # Folder shares
    # ------------------------------------------------------------------

    def list_shares(self, user_id: str, kind: str | None = None) -> list[Row]:
        """Shares received (``shared-with-me``), granted (``shared-by-me``) or both."""
        query = self._table(FOLDER_SHARES_TABLE).select("*")
        if kind == SHARED_WITH_ME:
            query = query.eq("shared_with_id", user_id)
        elif kind == SHARED_BY_ME:
            query = query.eq("owner_id", user_id)
        else:
            user_id = _filter_value(user_id)
            query = query.or_(f"shared_with_id.eq.{user_id},owner_id.eq.{user_id}")
        return self._execute(query, table=FOLDER_SHARES_TABLE, action="list")

    def get_share(self, share_id: str) -> Row | None:
        return self._first(
            self._table(FOLDER_SHARES_TABLE).select("*").eq("id", share_id),
            table=FOLDER_SHARES_TABLE,
            action="get",
        )

    def find_share(self, folder_id: str, shared_with_id: str) -> Row | None:
        return self._first(
            self._table(FOLDER_SHARES_TABLE)
            .select("*")
            .eq("folder_id", folder_id)
            .eq("shared_with_id", shared_with_id),
            table=FOLDER_SHARES_TABLE,
            action="find",
        )

    def insert_share(
        self, folder_id: str, owner_id: str, shared_with_id: str, permission: str
    ) -> list[Row]:
        return self._execute(
            self._table(FOLDER_SHARES_TABLE).insert(
                {
                    "folder_id": folder_id,
                    "owner_id": owner_id,
                    "shared_with_id": shared_with_id,
                    "permission": permission,
                }
            ),
            table=FOLDER_SHARES_TABLE,
            action="insert",
        )

    def update_share_permission(self, share_id: str, permission: str) -> list[Row]:
        return self._execute(
            self._table(FOLDER_SHARES_TABLE).update({"permission": permission}).eq("id", share_id),
            table=FOLDER_SHARES_TABLE,
            action="update",
        )

    def delete_share(self, share_id: str) -> None:
        self._execute(
            self._table(FOLDER_SHARES_TABLE).delete().eq("id", share_id),
            table=FOLDER_SHARES_TABLE,
            action="delete",
        )

    def share_owner_ids(self, folder_ids: Iterable[str]) -> set[str]:
        """Owner ids of the shares covering *folder_ids*."""
        ids = list(dict.fromkeys(folder_ids))
        if not ids:
            return set()
        rows = self._execute(
            self._table(FOLDER_SHARES_TABLE).select("owner_id").in_("folder_id", ids),
            table=FOLDER_SHARES_TABLE,
            action="owners",
        )
        return {str(row["owner_id"]) for row in rows if row.get("owner_id")}

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_favorite_colors(self, user_id: str) -> list[str]:
        row = self._first(
            self._table(PREFERENCES_TABLE).select("*").eq("user_id", user_id),
            table=PREFERENCES_TABLE,
            action="get",
        )
        if not row:
            return []
        return list(row.get("favorite_colors") or [])

    def save_favorite_colors(
        self, user_id: str, colors: Sequence[str], *, updated_at: str | None = None
    ) -> None:
        """Update the user's preferences row, inserting it when none exists."""
        updated_at = updated_at or to_iso(utc_now())
        updated = self._execute(
            self._table(PREFERENCES_TABLE)
            .update({"favorite_colors": list(colors), "updated_at": updated_at})
            .eq("user_id", user_id),
            table=PREFERENCES_TABLE,
            action="update",
        )
        if updated:
            return
        logger.info("No preferences row for user=%s, inserting", user_id)
        self._execute(
            self._table(PREFERENCES_TABLE).insert(
                {"user_id": user_id, "favorite_colors": list(colors)}
            ),
            table=PREFERENCES_TABLE,
            action="insert",
        )
