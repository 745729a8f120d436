"""``/api/preferences``: per-user favorite colors."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from markermap.api.responses import ApiResponse
from markermap.core.exceptions import ServiceNotConfiguredError, ValidationError
from markermap.core.ingress import SUPABASE_NOT_CONFIGURED, require_fields
from markermap.models.payloads import PreferencesBody, validate_payload

if TYPE_CHECKING:
    from markermap.services.store import MarkerMapStore

logger = logging.getLogger(__name__)


def get_preferences(user_id: str | None, store: MarkerMapStore | None) -> ApiResponse:
    if store is None:
        logger.warning("Supabase not configured, returning empty preferences")
        return ApiResponse({"favoriteColors": []})
    if not user_id:
        raise ValidationError("User ID is required")
    return ApiResponse({"favoriteColors": store.get_favorite_colors(user_id)})


def save_preferences(body: dict[str, Any], store: MarkerMapStore | None) -> ApiResponse:
    if store is None:
        raise ServiceNotConfiguredError(SUPABASE_NOT_CONFIGURED)
    require_fields(body, "userId", message="User ID is required")
    payload = {"favoriteColors": [], **body}
    validate_payload(payload, PreferencesBody, route="preferences")

    user_id = str(payload["userId"])
    colors = [str(color) for color in payload["favoriteColors"]]
    store.save_favorite_colors(user_id, colors)
    logger.info("Preferences saved | user=%s | colors=%d", user_id, len(colors))
    return ApiResponse({"success": True})
