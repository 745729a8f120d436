"""Application configuration loaded from environment variables.

Azure Functions app settings (or ``local.settings.json`` for local dev)
are the source of truth. Credentials default to empty strings so the app
can start without every cloud collaborator; routes that need a missing
collaborator answer 503 instead.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from markermap.core.exceptions import MarkerMapError

_PRODUCTION_MAX_UPLOAD_MB = 4.5
_DEVELOPMENT_MAX_UPLOAD_MB = 100.0
_MAX_UPLOAD_WORKERS = 32


class ConfigValidationError(MarkerMapError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class MarkerMapConfig:
    """Immutable application configuration.

    Attributes:
        supabase_url: Supabase project URL.
        supabase_anon_key: Public (anon) API key, used by sync routes.
        supabase_service_key: Service-role key for admin routes
            (friends, shares, users). Falls back to the anon key.
        cloudinary_cloud_name: Cloudinary cloud name.
        cloudinary_api_key: Cloudinary API key.
        cloudinary_api_secret: Cloudinary API secret.
        cloudinary_upload_preset: Upload preset applied to every upload.
        cloudinary_folder: Media-host folder holding marker images.
        google_client_id: OAuth client id.
        google_client_secret: OAuth client secret.
        google_redirect_uri: OAuth redirect URI registered with Google.
        environment: ``"development"`` or ``"production"``.
        max_upload_mb: Largest single image accepted by ``/api/upload``.
        import_upload_workers: Max concurrent image uploads per import.
        http_timeout_s: Timeout for outbound HTTP calls.
    """

    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_key: str = ""
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_upload_preset: str = "markermap-uploads"
    cloudinary_folder: str = "markermap-images"
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    environment: str = "production"
    max_upload_mb: float = _PRODUCTION_MAX_UPLOAD_MB
    import_upload_workers: int = 4
    http_timeout_s: float = 30.0

    @classmethod
    def from_env(cls) -> MarkerMapConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range
                or a required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``IMPORT_UPLOAD_WORKERS=abc``).
        """
        environment = os.getenv("MARKERMAP_ENV", "production").strip().lower()
        default_upload_mb = (
            _DEVELOPMENT_MAX_UPLOAD_MB if environment == "development" else _PRODUCTION_MAX_UPLOAD_MB
        )
        anon_key = os.getenv("SUPABASE_ANON_KEY", "")
        config = cls(
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_anon_key=anon_key,
            supabase_service_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", "") or anon_key,
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME", ""),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY", ""),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET", ""),
            cloudinary_upload_preset=os.getenv("CLOUDINARY_UPLOAD_PRESET", "markermap-uploads"),
            cloudinary_folder=os.getenv("CLOUDINARY_FOLDER", "markermap-images"),
            google_client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
            google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET", ""),
            google_redirect_uri=os.getenv("GOOGLE_REDIRECT_URI", ""),
            environment=environment,
            max_upload_mb=float(os.getenv("MAX_UPLOAD_MB", str(default_upload_mb))),
            import_upload_workers=int(os.getenv("IMPORT_UPLOAD_WORKERS", "4")),
            http_timeout_s=float(os.getenv("HTTP_TIMEOUT_S", "30")),
        )
        _validate(config)
        return config

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)

    @property
    def supabase_configured(self) -> bool:
        """Whether the persistence collaborator has a URL and key."""
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def cloudinary_configured(self) -> bool:
        """Whether the media collaborator has full credentials."""
        return bool(
            self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret
        )

    @property
    def google_configured(self) -> bool:
        """Whether the identity collaborator can exchange codes."""
        return bool(self.google_client_id and self.google_client_secret and self.google_redirect_uri)


def _validate(config: MarkerMapConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.max_upload_mb <= 0:
        raise ConfigValidationError(
            "MAX_UPLOAD_MB",
            config.max_upload_mb,
            "must be > 0 (megabytes)",
        )

    if not 1 <= config.import_upload_workers <= _MAX_UPLOAD_WORKERS:
        raise ConfigValidationError(
            "IMPORT_UPLOAD_WORKERS",
            config.import_upload_workers,
            f"must be between 1 and {_MAX_UPLOAD_WORKERS}",
        )

    if config.http_timeout_s <= 0:
        raise ConfigValidationError(
            "HTTP_TIMEOUT_S",
            config.http_timeout_s,
            "must be > 0 (seconds)",
        )

    if not config.cloudinary_folder:
        raise ConfigValidationError(
            "CLOUDINARY_FOLDER",
            config.cloudinary_folder,
            "must not be empty",
        )
