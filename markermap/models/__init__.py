"""Data models and schemas.

Defines the data structures used throughout the app:
- Folder, Marker: map entities produced by the KML parser and synced
- UserProfile, Friendship, FolderShare: social records
- Request payload TypedDicts and ``validate_payload``
"""

from markermap.models.entities import Folder, Marker
from markermap.models.social import FolderShare, Friendship, UserProfile

__all__ = [
    "Folder",
    "FolderShare",
    "Friendship",
    "Marker",
    "UserProfile",
]
