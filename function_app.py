"""Azure Functions entry point: MarkerMap API.

This module registers all HTTP routes using the Python v2 programming model.

All business logic lives in the markermap package. This file is purely
the wiring layer between ``func.HttpRequest`` and the route handlers in
``markermap.api``: it decodes query strings, JSON bodies and multipart
files, picks the handler for the HTTP method, and serialises the result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import azure.functions as func

from markermap.api import auth, friends, images, imports, preferences, shares, sync, update_dates, users
from markermap.api.responses import ApiResponse, error_response
from markermap.core.config import MarkerMapConfig
from markermap.core.exceptions import MarkerMapError
from markermap.core.ingress import (
    UploadedFile,
    get_media_store,
    get_optional_store,
    get_store,
    parse_json_body,
)

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

logger = logging.getLogger("markermap.function_app")

Handler = Callable[[MarkerMapConfig], ApiResponse]


# ---------------------------------------------------------------------------
# Request/response plumbing
# ---------------------------------------------------------------------------


def _respond(route: str, handler: Handler) -> func.HttpResponse:
    """Run *handler* and convert its result (or error) into JSON."""
    try:
        config = MarkerMapConfig.from_env()
        result = handler(config)
    except MarkerMapError as exc:
        log = logger.warning if exc.status_code < 500 else logger.error
        log("Request failed | route=%s | error=%s", route, exc.to_error_dict())
        result = error_response(exc)
    except Exception:
        logger.exception("Unhandled error | route=%s", route)
        result = ApiResponse({"error": "Internal server error"}, status_code=500)
    return func.HttpResponse(
        result.to_json(),
        status_code=result.status_code,
        mimetype="application/json",
    )


def _method_not_allowed(req: func.HttpRequest) -> MarkerMapError:
    return MarkerMapError(
        f"Method {req.method} not allowed",
        stage="ingress",
        code="METHOD_NOT_ALLOWED",
        status_code=405,
    )


def _json(req: func.HttpRequest) -> dict[str, object]:
    return parse_json_body(req.get_body())


def _file(req: func.HttpRequest, field: str) -> UploadedFile | None:
    storage = req.files.get(field)
    if storage is None:
        return None
    return UploadedFile.from_storage(storage)


def _files(req: func.HttpRequest, field: str) -> list[UploadedFile]:
    return [UploadedFile.from_storage(storage) for storage in req.files.getlist(field)]


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


@app.function_name("import_kml")
@app.route(route="import", methods=["POST"])
def import_kml(req: func.HttpRequest) -> func.HttpResponse:
    """Multipart ``kmlFile``, ``imageFiles`` (repeated) and ``userId``."""

    def handle(config: MarkerMapConfig) -> ApiResponse:
        store = get_store(config)
        media = get_media_store(config) if config.cloudinary_configured else None
        return imports.import_kml(
            _file(req, "kmlFile"),
            _files(req, "imageFiles"),
            req.form.get("userId"),
            store=store,
            media=media,
            config=config,
        )

    return _respond("import", handle)


@app.function_name("update_dates")
@app.route(route="update-dates", methods=["POST"])
def update_marker_dates(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        store = get_store(config)
        return update_dates.update_dates(_file(req, "kmlFile"), req.form.get("userId"), store)

    return _respond("update-dates", handle)


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


@app.function_name("upload_image")
@app.route(route="upload", methods=["POST"])
def upload_image(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        return images.upload_image(_file(req, "file"), get_media_store(config), config)

    return _respond("upload", handle)


@app.function_name("delete_images")
@app.route(route="images/delete", methods=["DELETE"])
def delete_images(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        return images.delete_images(_json(req), get_media_store(config))

    return _respond("images/delete", handle)


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


@app.function_name("sync_folders")
@app.route(route="sync/folders", methods=["GET", "POST", "DELETE"])
def sync_folders(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        store = get_store(config)
        if req.method == "GET":
            return sync.list_folders(req.params.get("userId"), store)
        if req.method == "POST":
            return sync.save_folders(_json(req), store)
        if req.method == "DELETE":
            return sync.delete_folders(req.params.get("userId"), req.params.get("folderId"), store)
        raise _method_not_allowed(req)

    return _respond("sync/folders", handle)


@app.function_name("sync_markers")
@app.route(route="sync/markers", methods=["GET", "POST", "DELETE"])
def sync_markers(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        if req.method == "GET":
            return sync.list_markers(req.params.get("userId"), get_optional_store(config))
        if req.method == "POST":
            return sync.save_markers(_json(req), get_optional_store(config))
        if req.method == "DELETE":
            return sync.delete_markers(req.params.get("userId"), get_store(config))
        raise _method_not_allowed(req)

    return _respond("sync/markers", handle)


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------


@app.function_name("folder_shares")
@app.route(route="folders/share", methods=["GET", "POST", "DELETE"])
def folder_shares(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        store = get_store(config, admin=True)
        if req.method == "GET":
            return shares.list_shares(req.params.get("userId"), req.params.get("type"), store)
        if req.method == "POST":
            return shares.share_folder(_json(req), store)
        if req.method == "DELETE":
            return shares.unshare_folder(
                req.params.get("shareId"), req.params.get("userId"), store
            )
        raise _method_not_allowed(req)

    return _respond("folders/share", handle)


@app.function_name("friends")
@app.route(route="friends", methods=["GET", "POST", "PATCH", "DELETE"])
def friends_route(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        store = get_store(config, admin=True)
        if req.method == "GET":
            return friends.list_friends(req.params.get("userId"), req.params.get("status"), store)
        if req.method == "POST":
            return friends.friend_action(_json(req), store)
        if req.method == "PATCH":
            return friends.update_status(_json(req), store)
        if req.method == "DELETE":
            return friends.remove_friend(req.params.get("id"), store)
        raise _method_not_allowed(req)

    return _respond("friends", handle)


@app.function_name("user_profile")
@app.route(route="users/profile", methods=["GET", "POST"])
def user_profile(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        store = get_store(config, admin=True)
        if req.method == "GET":
            return users.get_profile(req.params.get("userId"), store)
        if req.method == "POST":
            return users.save_profile(_json(req), store)
        raise _method_not_allowed(req)

    return _respond("users/profile", handle)


@app.function_name("user_search")
@app.route(route="users/search", methods=["GET"])
def user_search(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        return users.search_users(
            req.params.get("q"), req.params.get("userId"), get_store(config, admin=True)
        )

    return _respond("users/search", handle)


@app.function_name("user_backfill")
@app.route(route="users/backfill", methods=["POST"])
def user_backfill(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        return users.backfill_users(get_store(config, admin=True))

    return _respond("users/backfill", handle)


@app.function_name("preferences")
@app.route(route="preferences", methods=["GET", "POST"])
def preferences_route(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        store = get_optional_store(config)
        if req.method == "GET":
            return preferences.get_preferences(req.params.get("userId"), store)
        if req.method == "POST":
            return preferences.save_preferences(_json(req), store)
        raise _method_not_allowed(req)

    return _respond("preferences", handle)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@app.function_name("auth_token")
@app.route(route="auth/token", methods=["POST"])
def auth_token(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        return auth.exchange_token(_json(req), config)

    return _respond("auth/token", handle)


@app.function_name("auth_url")
@app.route(route="auth/url", methods=["GET"])
def auth_url(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        return auth.auth_url(config, state=req.params.get("state", ""))

    return _respond("auth/url", handle)


@app.function_name("auth_me")
@app.route(route="auth/me", methods=["GET"])
def auth_me(req: func.HttpRequest) -> func.HttpResponse:
    def handle(config: MarkerMapConfig) -> ApiResponse:
        return auth.current_user(
            req.headers.get("Authorization"), config, get_optional_store(config)
        )

    return _respond("auth/me", handle)
