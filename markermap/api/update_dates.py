"""``/api/update-dates``: restore marker creation dates from a KML export.

Stored markers are matched to parsed placemarks by position; a stored
marker takes the ``created_at`` of the first parsed marker within
``COORDINATE_TOLERANCE`` degrees on both axes.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from markermap.api.responses import ApiResponse
from markermap.core.constants import COORDINATE_TOLERANCE
from markermap.core.exceptions import ValidationError
from markermap.kml import parse_kml
from markermap.models.entities import Marker
from markermap.utils.helpers import utc_now

if TYPE_CHECKING:
    from collections.abc import Sequence

    from markermap.core.ingress import UploadedFile
    from markermap.services.store import MarkerMapStore

logger = logging.getLogger(__name__)


def find_match(marker: Marker, candidates: Sequence[Marker]) -> Marker | None:
    """First candidate at the same position as *marker*, within tolerance."""
    for candidate in candidates:
        if (
            abs(marker.latitude - candidate.latitude) < COORDINATE_TOLERANCE
            and abs(marker.longitude - candidate.longitude) < COORDINATE_TOLERANCE
        ):
            return candidate
    return None


def update_dates(
    kml_file: UploadedFile | None, user_id: str | None, store: MarkerMapStore
) -> ApiResponse:
    if kml_file is None:
        raise ValidationError("No KML file provided.")
    if not user_id:
        raise ValidationError("User ID is required.")

    parsed = parse_kml(kml_file.content)
    existing = [Marker.from_row(row) for row in store.list_markers(user_id)]
    logger.info(
        "Updating dates | user=%s | parsed=%d | stored=%d",
        user_id,
        len(parsed.markers),
        len(existing),
    )

    now = utc_now()
    updated: list[Marker] = []
    for marker in existing:
        match = find_match(marker, parsed.markers)
        if match is None:
            continue
        updated.append(replace(marker, created_at=match.created_at, updated_at=now))

    if updated:
        store.upsert_markers([marker.to_row() for marker in updated])

    not_found = len(parsed.markers) - len(updated)
    logger.info("Dates updated | user=%s | updated=%d | not_found=%d", user_id, len(updated), not_found)
    return ApiResponse(
        {
            "success": True,
            "updated": len(updated),
            "notFound": not_found,
            "total": len(parsed.markers),
        }
    )
