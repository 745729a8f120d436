"""Typed payload schemas for JSON request bodies.

Every JSON route receives a plain dict.  These ``TypedDict`` definitions
make the contracts explicit for type checking, and ``validate_payload``
catches missing or mistyped keys at runtime.

Usage::

    from markermap.models.payloads import SyncFoldersBody, validate_payload

    validate_payload(body, SyncFoldersBody, route="sync/folders")
"""

# Annotations stay eager: TypedDict only honours NotRequired on evaluated types.
from typing import Any, NotRequired, TypedDict, get_type_hints

from markermap.core.exceptions import ContractError

# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


class SyncFoldersBody(TypedDict):
    """``POST /api/sync/folders``."""

    folders: list[dict[str, Any]]
    userId: str


class SyncMarkersBody(TypedDict):
    """``POST /api/sync/markers``."""

    markers: list[dict[str, Any]]
    userId: str


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------


class FriendActionBody(TypedDict):
    """``POST /api/friends``."""

    userId: str
    friendId: str
    action: NotRequired[str]


class FriendStatusBody(TypedDict):
    """``PATCH /api/friends``."""

    friendshipId: str
    status: str
    userId: NotRequired[str]


class ShareFolderBody(TypedDict):
    """``POST /api/folders/share``."""

    folderId: str
    userId: str
    sharedWithId: str
    permission: str


class UserProfileBody(TypedDict):
    """``POST /api/users/profile``."""

    userId: str
    email: str
    displayName: NotRequired[str | None]
    profilePictureUrl: NotRequired[str | None]


class PreferencesBody(TypedDict):
    """``POST /api/preferences``."""

    userId: str
    favoriteColors: list[str]


# ---------------------------------------------------------------------------
# Media / auth
# ---------------------------------------------------------------------------


class DeleteImagesBody(TypedDict):
    """``DELETE /api/images/delete``."""

    imageUrls: list[str]


class TokenExchangeBody(TypedDict):
    """``POST /api/auth/token``."""

    code: str


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_CONTAINER_TYPES: dict[str, type] = {"list": list, "dict": dict}


def validate_payload(
    payload: dict[str, Any],
    schema: type,
    *,
    route: str = "",
) -> None:
    """Validate that *payload* carries every required key of *schema*.

    Only presence is checked for scalar keys. Keys annotated as ``list`` or
    ``dict`` must hold a value of that container type when present.

    Raises:
        ContractError: If required keys are missing or a container key
            has the wrong type.
    """
    required: frozenset[str] = getattr(schema, "__required_keys__", frozenset())
    missing = sorted(k for k in required if k not in payload)
    if missing:
        msg = f"Payload for {route or schema.__name__} missing required key(s): {', '.join(missing)}"
        raise ContractError(msg, stage="ingress", code="MISSING_PAYLOAD_KEYS")

    hints = get_type_hints(schema)
    for key, hint in hints.items():
        if key not in payload:
            continue
        origin = getattr(hint, "__origin__", None)
        expected = _CONTAINER_TYPES.get(getattr(origin, "__name__", ""))
        if expected is not None and not isinstance(payload[key], expected):
            msg = (
                f"Payload key {key!r} for {route or schema.__name__} must be a "
                f"{expected.__name__}, got {type(payload[key]).__name__}"
            )
            raise ContractError(msg, stage="ingress", code="INVALID_PAYLOAD_TYPE")
