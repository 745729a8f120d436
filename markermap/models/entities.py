"""Data model for folders and markers.

A ``Folder`` groups markers into a tree via ``parent_id``; a ``Marker`` is a
single annotated point on the map. Both are produced by the KML parser and
round-trip through two wire shapes:

- the client JSON shape (camelCase keys, ISO 8601 timestamps) via
  ``to_dict()`` / ``from_dict()``
- the database row shape (snake_case columns) via ``to_row()`` / ``from_row()``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from markermap.core.constants import DEFAULT_COLOR, DEFAULT_FOLDER_ICON
from markermap.utils.helpers import coerce_timestamp, to_iso, utc_now


@dataclass(frozen=True, slots=True)
class Folder:
    """A folder of markers.

    Attributes:
        id: Unique id within the owner's folder set.
        name: Display name.
        color: ``#RRGGBB`` display color.
        icon: Icon name shown in the sidebar.
        visible: Whether the folder's markers are drawn.
        parent_id: Parent folder id; ``None`` for root folders.
        order: Sort position among siblings.
        created_at: Creation time.
        updated_at: Last modification time.
        user_id: Owner id; ``None`` for data not yet synced.
    """

    id: str
    name: str
    color: str = DEFAULT_COLOR
    icon: str = DEFAULT_FOLDER_ICON
    visible: bool = True
    parent_id: str | None = None
    order: int = 0
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    user_id: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialise to the client JSON shape."""
        data: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "icon": self.icon,
            "visible": self.visible,
            "order": self.order,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }
        if self.parent_id is not None:
            data["parentId"] = self.parent_id
        if self.user_id is not None:
            data["userId"] = self.user_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Folder:
        """Deserialise from the client JSON shape.

        Missing fields are defaulted rather than raising.

        Raises:
            ValueError: If ``id`` is missing or empty.
        """
        folder_id = str(data.get("id") or "")
        if not folder_id:
            msg = "Folder payload is missing 'id'"
            raise ValueError(msg)
        parent_id = data.get("parentId")
        user_id = data.get("userId")
        return cls(
            id=folder_id,
            name=str(data.get("name", "")),
            color=str(data.get("color") or DEFAULT_COLOR),
            icon=str(data.get("icon") or DEFAULT_FOLDER_ICON),
            visible=bool(data.get("visible", True)),
            parent_id=str(parent_id) if parent_id else None,
            order=int(data.get("order") or 0),
            created_at=coerce_timestamp(data.get("createdAt")),
            updated_at=coerce_timestamp(data.get("updatedAt")),
            user_id=str(user_id) if user_id else None,
        )

    def to_row(self) -> dict[str, object]:
        """Serialise to a ``folders`` table row."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "icon": self.icon,
            "visible": self.visible,
            "parent_id": self.parent_id,
            "order": self.order,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "user_id": self.user_id,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Folder:
        """Deserialise from a ``folders`` table row."""
        return cls(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            color=str(row.get("color") or DEFAULT_COLOR),
            icon=str(row.get("icon") or DEFAULT_FOLDER_ICON),
            visible=bool(row.get("visible", True)),
            parent_id=row.get("parent_id") or None,
            order=int(row.get("order") or 0),
            created_at=coerce_timestamp(row.get("created_at")),
            updated_at=coerce_timestamp(row.get("updated_at")),
            user_id=row.get("user_id") or None,
        )


@dataclass(frozen=True, slots=True)
class Marker:
    """A single annotated point on the map.

    Attributes:
        id: Unique marker id.
        folder_id: Id of the folder the marker belongs to.
        title: Display title.
        latitude: WGS 84 latitude in decimal degrees.
        longitude: WGS 84 longitude in decimal degrees.
        color: ``#RRGGBB`` pin color.
        description: Plain-text description.
        address: Reverse-geocoded address (filled in by the client).
        images: Image references: filenames straight out of the parser,
            hosted URLs once an import has uploaded them.
        custom_fields: Free-form ``name -> value`` metadata.
        tags: Tag names attached to the marker.
        created_at: Creation time (``TimeStamp/when`` for imports).
        updated_at: Last modification time.
        user_id: Owner id; ``None`` for data not yet synced.
    """

    id: str
    folder_id: str
    title: str
    latitude: float
    longitude: float
    color: str = DEFAULT_COLOR
    description: str = ""
    address: str = ""
    images: list[str] = field(default_factory=list)
    custom_fields: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    user_id: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialise to the client JSON shape."""
        data: dict[str, object] = {
            "id": self.id,
            "folderId": self.folder_id,
            "title": self.title,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "color": self.color,
            "address": self.address,
            "images": list(self.images),
            "customFields": dict(self.custom_fields),
            "tags": list(self.tags),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }
        if self.user_id is not None:
            data["userId"] = self.user_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Marker:
        """Deserialise from the client JSON shape.

        Raises:
            ValueError: If ``id``/``folderId`` are missing or the
                coordinates are not numbers.
        """
        marker_id = str(data.get("id") or "")
        folder_id = str(data.get("folderId") or "")
        if not marker_id or not folder_id:
            msg = "Marker payload is missing 'id' or 'folderId'"
            raise ValueError(msg)
        try:
            latitude = float(data["latitude"])
            longitude = float(data["longitude"])
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Marker {marker_id!r} has invalid coordinates"
            raise ValueError(msg) from exc
        user_id = data.get("userId")
        return cls(
            id=marker_id,
            folder_id=folder_id,
            title=str(data.get("title", "")),
            latitude=latitude,
            longitude=longitude,
            color=str(data.get("color") or DEFAULT_COLOR),
            description=str(data.get("description") or ""),
            address=str(data.get("address") or ""),
            images=[str(i) for i in data.get("images") or []],
            custom_fields=dict(data.get("customFields") or {}),
            tags=[str(t) for t in data.get("tags") or []],
            created_at=coerce_timestamp(data.get("createdAt")),
            updated_at=coerce_timestamp(data.get("updatedAt")),
            user_id=str(user_id) if user_id else None,
        )

    def to_row(self) -> dict[str, object]:
        """Serialise to a ``markers`` table row."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "folder_id": self.folder_id,
            "color": self.color,
            "custom_fields": dict(self.custom_fields),
            "images": list(self.images),
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "user_id": self.user_id,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Marker:
        """Deserialise from a ``markers`` table row."""
        return cls(
            id=str(row["id"]),
            folder_id=str(row.get("folder_id") or ""),
            title=str(row.get("title") or ""),
            latitude=float(row.get("latitude") or 0.0),
            longitude=float(row.get("longitude") or 0.0),
            color=str(row.get("color") or DEFAULT_COLOR),
            description=str(row.get("description") or ""),
            images=list(row.get("images") or []),
            custom_fields=dict(row.get("custom_fields") or {}),
            created_at=coerce_timestamp(row.get("created_at")),
            updated_at=coerce_timestamp(row.get("updated_at")),
            user_id=row.get("user_id") or None,
        )
