"""Re-import id reconciliation.

A persisted import must never collide with data from earlier imports of
the same file, so every parsed folder and marker is moved to a fresh id
space before it is written. Folder references (``Folder.parent_id`` and
``Marker.folder_id``) are rewritten through an old -> new table; references
to ids outside the parsed set are kept as they are.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from markermap.models.entities import Folder, Marker
from markermap.utils.ids import generate_id

logger = logging.getLogger("markermap.kml")


@dataclass(frozen=True, slots=True)
class ReconciledImport:
    """Folders and markers re-keyed for persistence.

    Attributes:
        folders: Folders with new ids, remapped parents and the owner set.
        markers: Markers with new ids, remapped folders and the owner set.
        folder_id_map: Parser-assigned folder id -> persisted folder id.
    """

    folders: list[Folder] = field(default_factory=list)
    markers: list[Marker] = field(default_factory=list)
    folder_id_map: dict[str, str] = field(default_factory=dict)


def resolve_image_urls(filenames: Iterable[str], image_urls: Mapping[str, str]) -> list[str]:
    """Map image filenames to hosted URLs, dropping those never uploaded."""
    return [image_urls[name] for name in filenames if name in image_urls]


def reconcile_ids(
    folders: Iterable[Folder],
    markers: Iterable[Marker],
    *,
    user_id: str,
    image_urls: Mapping[str, str] | None = None,
) -> ReconciledImport:
    """Assign new ids to a parsed import and stamp the owner.

    Args:
        folders: Folders as produced by the parser.
        markers: Markers as produced by the parser.
        user_id: Owner written to every entity.
        image_urls: Optional ``filename -> URL`` map. When given, each
            marker's filename list is replaced by the matching URLs.

    Returns:
        A ``ReconciledImport`` whose tree structure matches the input.
    """
    folders = list(folders)
    folder_id_map = {folder.id: generate_id() for folder in folders}

    new_folders = [
        replace(
            folder,
            id=folder_id_map[folder.id],
            parent_id=(
                folder_id_map.get(folder.parent_id, folder.parent_id)
                if folder.parent_id
                else folder.parent_id
            ),
            user_id=user_id,
        )
        for folder in folders
    ]

    new_markers: list[Marker] = []
    for marker in markers:
        images = (
            resolve_image_urls(marker.images, image_urls)
            if image_urls is not None
            else list(marker.images)
        )
        new_markers.append(
            replace(
                marker,
                id=generate_id(),
                folder_id=folder_id_map.get(marker.folder_id, marker.folder_id),
                images=images,
                user_id=user_id,
            )
        )

    logger.debug(
        "Reconciled import ids | user=%s | folders=%d | markers=%d",
        user_id,
        len(new_folders),
        len(new_markers),
    )
    return ReconciledImport(
        folders=new_folders,
        markers=new_markers,
        folder_id_map=folder_id_map,
    )
