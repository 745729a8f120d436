"""Shared constants: single source of truth.

Centralises default colors, table names, vendor ExtendedData keys and
media-host naming used across the parser, the store and the routes.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Entity defaults
# ---------------------------------------------------------------------------

DEFAULT_COLOR: str = "#ffffff"
"""Fallback ``#RRGGBB`` color for unresolved KML styles."""

DEFAULT_FOLDER_ICON: str = "folder"

ROOT_FOLDER_NAME: str = "Imported Markers"
"""Name of the implicit root folder when the KML Document has no name."""

UNTITLED_FOLDER_NAME: str = "Untitled Folder"
UNTITLED_MARKER_TITLE: str = "Untitled"

PROTECTED_FOLDER_NAME: str = "Default"
"""Folder kept when a user's folders are bulk-deleted."""

# ---------------------------------------------------------------------------
# Vendor ExtendedData keys (Map Marker app exports)
# ---------------------------------------------------------------------------

VENDOR_CUSTOM_FIELDS_KEY: str = "com_exlyo_mapmarker_customfields"
VENDOR_IMAGES_KEY: str = "com_exlyo_mapmarker_images_with_ext"

# ---------------------------------------------------------------------------
# Persistence tables
# ---------------------------------------------------------------------------

FOLDERS_TABLE: str = "folders"
MARKERS_TABLE: str = "markers"
USERS_TABLE: str = "users"
FRIENDSHIPS_TABLE: str = "friendships"
FOLDER_SHARES_TABLE: str = "folder_shares"
PREFERENCES_TABLE: str = "preferences"

# ---------------------------------------------------------------------------
# Relationship states
# ---------------------------------------------------------------------------

FRIENDSHIP_PENDING: str = "pending"
FRIENDSHIP_ACCEPTED: str = "accepted"
FRIENDSHIP_BLOCKED: str = "blocked"
FRIENDSHIP_STATUSES: frozenset[str] = frozenset(
    {FRIENDSHIP_PENDING, FRIENDSHIP_ACCEPTED, FRIENDSHIP_BLOCKED}
)

SHARE_PERMISSIONS: frozenset[str] = frozenset({"view", "edit"})

SHARED_WITH_ME: str = "shared-with-me"
SHARED_BY_ME: str = "shared-by-me"

# ---------------------------------------------------------------------------
# Update-dates coordinate matching
# ---------------------------------------------------------------------------

COORDINATE_TOLERANCE: float = 0.000001
"""Max per-axis difference (degrees) for two markers to be the same point."""

# ---------------------------------------------------------------------------
# Google OAuth endpoints
# ---------------------------------------------------------------------------

GOOGLE_AUTH_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL: str = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/userinfo.email",
)
