"""HTTP route handlers.

Handlers are plain functions: they take already-decoded request data plus
their collaborators, return an ``ApiResponse`` and raise ``MarkerMapError``
subclasses for error responses. ``function_app`` owns the Azure Functions
bindings.

- imports: ``/api/import``
- update_dates: ``/api/update-dates``
- images: ``/api/upload``, ``/api/images/delete``
- sync: ``/api/sync/folders``, ``/api/sync/markers``
- shares: ``/api/folders/share``
- friends: ``/api/friends``
- users: ``/api/users/profile``, ``/api/users/search``, ``/api/users/backfill``
- preferences: ``/api/preferences``
- auth: ``/api/auth/token``, ``/api/auth/url``, ``/api/auth/me``
"""

from markermap.api.responses import ApiResponse, error_response

__all__ = ["ApiResponse", "error_response"]
