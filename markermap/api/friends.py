"""``/api/friends``: friend requests and friendship status."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from markermap.api.responses import ApiResponse
from markermap.core.constants import FRIENDSHIP_PENDING, FRIENDSHIP_STATUSES
from markermap.core.exceptions import ValidationError
from markermap.core.ingress import require_fields
from markermap.models.payloads import FriendActionBody, FriendStatusBody, validate_payload
from markermap.models.social import Friendship, UserProfile
from markermap.services.store import StoreError

if TYPE_CHECKING:
    from markermap.services.store import MarkerMapStore

logger = logging.getLogger(__name__)

SEND_REQUEST = "send_request"
ACCEPT_REQUEST = "accept_request"


def list_friends(user_id: str | None, status: str | None, store: MarkerMapStore) -> ApiResponse:
    """Friendships of *user_id*, optionally filtered by status (``all`` = no filter).

    Each row carries the other party as ``friend`` and ``isIncoming`` when
    *user_id* received the request.
    """
    if not user_id:
        raise ValidationError("User ID is required")

    rows = store.list_friendships(user_id)
    if status and status != "all":
        rows = [row for row in rows if row.get("status") == status]

    friendships = [(row, Friendship.from_row(row)) for row in rows]
    friend_ids = {f.other_party(user_id) for _, f in friendships}
    try:
        users = {str(u["user_id"]): u for u in store.get_users(friend_ids)}
    except StoreError as exc:
        # Details are cosmetic; placeholders stand in.
        logger.warning("Friend details unavailable | user=%s | error=%s", user_id, exc.message)
        users = {}

    friends = []
    for row, friendship in friendships:
        friend_id = friendship.other_party(user_id)
        friends.append(
            {
                **row,
                "friend": users.get(friend_id) or UserProfile.placeholder(friend_id).to_row(),
                "isIncoming": friendship.is_incoming_for(user_id),
            }
        )
    logger.info("Fetched friends | user=%s | status=%s | count=%d", user_id, status, len(friends))
    return ApiResponse({"friends": friends})


def friend_action(body: dict[str, Any], store: MarkerMapStore) -> ApiResponse:
    """``send_request`` creates a pending friendship; ``accept_request`` accepts one."""
    require_fields(body, "userId", "friendId", message="User ID and Friend ID are required")
    validate_payload(body, FriendActionBody, route="friends")
    user_id = str(body["userId"])
    friend_id = str(body["friendId"])
    action = body.get("action")

    if action == SEND_REQUEST:
        if user_id == friend_id:
            raise ValidationError("Cannot send a friend request to yourself")
        if store.find_friendship(user_id, friend_id):
            raise ValidationError("Friendship already exists")
        data = store.insert_friendship(user_id, friend_id, FRIENDSHIP_PENDING)
        logger.info("Friend request sent | from=%s | to=%s", user_id, friend_id)
        return ApiResponse({"success": True, "data": data})

    if action == ACCEPT_REQUEST:
        store.accept_friendship(requester_id=friend_id, addressee_id=user_id)
        logger.info("Friend request accepted | from=%s | by=%s", friend_id, user_id)
        return ApiResponse({"success": True})

    raise ValidationError("Invalid action")


def update_status(body: dict[str, Any], store: MarkerMapStore) -> ApiResponse:
    require_fields(body, "friendshipId", "status", message="Friendship ID and status are required")
    validate_payload(body, FriendStatusBody, route="friends")
    status = str(body["status"])
    if status not in FRIENDSHIP_STATUSES:
        raise ValidationError("Invalid status")

    friendship_id = str(body["friendshipId"])
    store.update_friendship_status(friendship_id, status)
    logger.info("Friendship status updated | friendship=%s | status=%s", friendship_id, status)
    return ApiResponse({"success": True})


def remove_friend(friendship_id: str | None, store: MarkerMapStore) -> ApiResponse:
    if not friendship_id:
        raise ValidationError("Friendship ID is required")
    store.delete_friendship(friendship_id)
    logger.info("Friendship removed | friendship=%s", friendship_id)
    return ApiResponse({"success": True})
