"""Google OAuth 2.0 collaborator.

Builds the consent URL, exchanges an authorization code for tokens, and
fetches the OpenID userinfo profile. All calls go through ``httpx`` with
the configured timeout; an ``httpx.Client`` can be injected for tests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx

from markermap.core.constants import (
    GOOGLE_AUTH_URL,
    GOOGLE_SCOPES,
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
)
from markermap.core.exceptions import MarkerMapError

if TYPE_CHECKING:
    from markermap.core.config import MarkerMapConfig

logger = logging.getLogger(__name__)


class IdentityError(MarkerMapError):
    """The identity provider rejected a call or could not be reached.

    ``status_code`` mirrors the provider's HTTP status when it answered.
    """

    default_stage = "identity"
    default_code = "IDENTITY_ERROR"
    default_status = 500


def build_auth_url(config: MarkerMapConfig, *, state: str = "") -> str:
    """Return the Google consent-screen URL for the authorization-code flow."""
    params = {
        "client_id": config.google_client_id,
        "redirect_uri": config.google_redirect_uri,
        "response_type": "code",
        "scope": " ".join(GOOGLE_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def exchange_code(
    code: str,
    config: MarkerMapConfig,
    *,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    """Exchange an authorization code for the provider's token response.

    Returns:
        The token JSON (``access_token``, ``expires_in``, ...) unchanged.

    Raises:
        IdentityError: With the provider's status and ``error_description``
            when the exchange is rejected, or 500 on transport failure.
    """
    form = {
        "code": code,
        "client_id": config.google_client_id,
        "client_secret": config.google_client_secret,
        "redirect_uri": config.google_redirect_uri,
        "grant_type": "authorization_code",
    }
    response = _send(
        "POST",
        GOOGLE_TOKEN_URL,
        client=client,
        timeout=config.http_timeout_s,
        data=form,
        failure="Internal server error during token exchange",
    )
    data = _json_object(response)
    if not response.is_success:
        logger.error(
            "Token exchange rejected | status=%d | error=%s",
            response.status_code,
            data.get("error", ""),
        )
        raise IdentityError(
            str(data.get("error_description") or "Failed to get access token"),
            code="TOKEN_EXCHANGE_FAILED",
            status_code=response.status_code,
        )
    logger.info("Token exchange succeeded")
    return data


def fetch_user_info(
    access_token: str,
    *,
    timeout: float = 30.0,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    """Fetch the OpenID userinfo profile for *access_token*.

    Raises:
        IdentityError: If the token is rejected or the call fails.
    """
    response = _send(
        "GET",
        GOOGLE_USERINFO_URL,
        client=client,
        timeout=timeout,
        headers={"Authorization": f"Bearer {access_token}"},
        failure="Internal server error during user info lookup",
    )
    data = _json_object(response)
    if not response.is_success:
        logger.warning("Userinfo request rejected | status=%d", response.status_code)
        raise IdentityError(
            str(data.get("error_description") or "Failed to fetch user info"),
            code="USERINFO_FAILED",
            status_code=response.status_code,
        )
    return data


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _send(
    method: str,
    url: str,
    *,
    client: httpx.Client | None,
    timeout: float,
    failure: str,
    **kwargs: Any,
) -> httpx.Response:
    try:
        if client is not None:
            return client.request(method, url, **kwargs)
        with httpx.Client(timeout=timeout) as owned:
            return owned.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        logger.error("Identity provider unreachable | url=%s | error=%s", url, exc)
        raise IdentityError(failure, retryable=True) from exc


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
