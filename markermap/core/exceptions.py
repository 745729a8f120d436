"""Unified exception taxonomy.

Every domain exception inherits from ``MarkerMapError`` and carries the
structured context needed to turn it into an HTTP error response:
a stage, a machine-readable code, a retry hint and an HTTP status.

Taxonomy categories
-------------------
- ``ValidationError``: bad request input, never retryable (400).
- ``ContractError``: malformed request payload shape (400).
- ``PermissionDeniedError``: caller does not own the resource (403).
- ``NotFoundError``: referenced resource does not exist (404).
- ``TransientError``: temporary failures (network, throttle), retryable.
- ``PermanentError``: unrecoverable failures, not retryable.
- ``ServiceNotConfiguredError``: a cloud collaborator has no credentials (503).

Every exception exposes ``to_error_dict()`` for logging and ``status_code``
for the HTTP wiring layer.
"""

from __future__ import annotations


class MarkerMapError(Exception):
    """Base exception for all MarkerMap domain errors.

    Attributes:
        message: Human-readable error description (returned to the client).
        stage: Area where the error occurred (e.g. ``"parse_kml"``, ``"store"``).
        code: Machine-readable error code (e.g. ``"KML_PARSE_FAILED"``).
        retryable: Whether the caller may retry the operation.
        status_code: HTTP status used when the error reaches a route.
    """

    default_stage: str = ""
    default_code: str = ""
    default_status: int = 500

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.status_code = status_code if status_code is not None else self.default_status
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, PermissionDeniedError):
            return "permission"
        if isinstance(self, NotFoundError):
            return "not_found"
        if isinstance(self, ServiceNotConfiguredError):
            return "configuration"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "status_code": self.status_code,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(MarkerMapError):
    """Request input failed validation. Never retryable."""

    default_code = "VALIDATION_FAILED"
    default_status = 400

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(MarkerMapError):
    """Request payload does not match the route contract. Never retryable."""

    default_code = "CONTRACT_VIOLATION"
    default_status = 400

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermissionDeniedError(MarkerMapError):
    """Caller is not allowed to act on the resource."""

    default_code = "PERMISSION_DENIED"
    default_status = 403


class NotFoundError(MarkerMapError):
    """Referenced resource does not exist."""

    default_code = "NOT_FOUND"
    default_status = 404


class TransientError(MarkerMapError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(MarkerMapError):
    """Unrecoverable failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ServiceNotConfiguredError(MarkerMapError):
    """A cloud collaborator is missing its credentials."""

    default_stage = "config"
    default_code = "SERVICE_NOT_CONFIGURED"
    default_status = 503
