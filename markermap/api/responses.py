"""Transport-neutral route results.

Handlers return an ``ApiResponse`` and raise ``MarkerMapError`` subclasses;
``function_app`` turns both into ``func.HttpResponse`` objects.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from markermap.core.exceptions import MarkerMapError


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """A JSON body and its HTTP status."""

    body: dict[str, Any] = field(default_factory=dict)
    status_code: int = 200

    def to_json(self) -> str:
        return json.dumps(self.body, default=_json_default)


def error_response(exc: MarkerMapError) -> ApiResponse:
    """``{"error": message}`` with the exception's status."""
    return ApiResponse({"error": exc.message}, status_code=exc.status_code)


def _json_default(value: object) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, set | frozenset):
        return sorted(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)
