"""``/api/auth/*``: Google sign-in.

``POST /api/auth/token`` exchanges an authorization code server-side so
the client secret never reaches the browser. ``GET /api/auth/url`` returns
the consent URL and ``GET /api/auth/me`` resolves a bearer token to the
local user record, creating or refreshing it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from markermap.api.responses import ApiResponse
from markermap.core.exceptions import MarkerMapError, ValidationError
from markermap.models.payloads import TokenExchangeBody, validate_payload
from markermap.models.social import UserProfile
from markermap.services import identity

if TYPE_CHECKING:
    import httpx

    from markermap.core.config import MarkerMapConfig
    from markermap.services.store import MarkerMapStore

logger = logging.getLogger(__name__)


def _require_oauth(config: MarkerMapConfig) -> None:
    if not config.google_configured:
        logger.error("Missing Google OAuth settings")
        raise MarkerMapError(
            "Server configuration error: Missing OAuth credentials",
            stage="config",
            code="OAUTH_NOT_CONFIGURED",
        )


def exchange_token(
    body: dict[str, Any],
    config: MarkerMapConfig,
    *,
    client: httpx.Client | None = None,
) -> ApiResponse:
    """Return the provider's token response for ``body["code"]`` unchanged."""
    code = body.get("code")
    if not code:
        raise ValidationError("Authorization code is missing")
    validate_payload(body, TokenExchangeBody, route="auth/token")
    _require_oauth(config)
    return ApiResponse(identity.exchange_code(str(code), config, client=client))


def auth_url(config: MarkerMapConfig, *, state: str = "") -> ApiResponse:
    _require_oauth(config)
    return ApiResponse({"url": identity.build_auth_url(config, state=state)})


def current_user(
    authorization: str | None,
    config: MarkerMapConfig,
    store: MarkerMapStore | None,
    *,
    client: httpx.Client | None = None,
) -> ApiResponse:
    """Resolve ``Authorization: Bearer <token>`` to a user profile.

    The profile is upserted into ``users`` when persistence is configured.
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise ValidationError("Bearer token is required")

    info = identity.fetch_user_info(token.strip(), timeout=config.http_timeout_s, client=client)
    try:
        profile = UserProfile.from_google_userinfo(info)
    except ValueError as exc:
        raise identity.IdentityError(str(exc), code="USERINFO_INVALID", status_code=502) from exc

    if store is not None:
        store.upsert_users([profile.to_row()])
    logger.info("Resolved signed-in user | user=%s | persisted=%s", profile.user_id, store is not None)
    return ApiResponse({"user": profile.to_dict()})
