"""Shared pytest fixtures for the MarkerMap test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from markermap.core.config import MarkerMapConfig
from markermap.core.ingress import UploadedFile
from markermap.services.media import MediaStore, MediaStoreError
from markermap.services.store import MarkerMapStore

# ---------------------------------------------------------------------------
# Path fixtures
# ---------------------------------------------------------------------------

TESTS_DIR = Path(__file__).parent
DATA_DIR = TESTS_DIR / "data"

_CONFIG_ENV_VARS = (
    "MARKERMAP_ENV",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
    "CLOUDINARY_UPLOAD_PRESET",
    "CLOUDINARY_FOLDER",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_REDIRECT_URI",
    "MAX_UPLOAD_MB",
    "IMPORT_UPLOAD_WORKERS",
    "HTTP_TIMEOUT_S",
)


@pytest.fixture()
def data_dir() -> Path:
    """Return the path to the test data directory."""
    return DATA_DIR


# ---------------------------------------------------------------------------
# Sample KML fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def nested_folders_kml(data_dir: Path) -> bytes:
    """Document placemark, nested folders, scoped style override, bad placemarks."""
    return (data_dir / "nested_folders.kml").read_bytes()


@pytest.fixture()
def vendor_kml(data_dir: Path) -> bytes:
    """Map Marker vendor ExtendedData, one placemark with malformed JSON."""
    return (data_dir / "vendor_extended_data.kml").read_bytes()


@pytest.fixture()
def not_xml_kml(data_dir: Path) -> bytes:
    return (data_dir / "malformed_not_xml.kml").read_bytes()


@pytest.fixture()
def missing_document_kml(data_dir: Path) -> bytes:
    return (data_dir / "missing_document.kml").read_bytes()


@pytest.fixture()
def no_namespace_kml(data_dir: Path) -> bytes:
    return (data_dir / "no_namespace.kml").read_bytes()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every MarkerMap setting from the environment."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture()
def config() -> MarkerMapConfig:
    """A fully configured production config with fake credentials."""
    return MarkerMapConfig(
        supabase_url="https://project.supabase.co",
        supabase_anon_key="anon-key",
        supabase_service_key="service-key",
        cloudinary_cloud_name="demo",
        cloudinary_api_key="cloud-key",
        cloudinary_api_secret="cloud-secret",
        google_client_id="client-id",
        google_client_secret="client-secret",
        google_redirect_uri="https://app.example.com/auth/callback",
        import_upload_workers=2,
    )


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


@pytest.fixture()
def store() -> MagicMock:
    """A ``MarkerMapStore`` mock; every method returns an empty result by default."""
    mock = MagicMock(spec=MarkerMapStore)
    for name in (
        "list_folders",
        "list_markers",
        "get_folders",
        "get_users",
        "search_users",
        "list_friendships",
        "list_shares",
        "upsert_folders",
        "upsert_markers",
        "upsert_users",
        "insert_friendship",
        "insert_share",
        "get_favorite_colors",
    ):
        getattr(mock, name).return_value = []
    mock.get_user.return_value = None
    mock.get_share.return_value = None
    mock.find_share.return_value = None
    mock.find_friendship.return_value = None
    mock.get_folder_owner.return_value = None
    mock.share_owner_ids.return_value = set()
    mock.distinct_owner_ids.return_value = set()
    return mock


class FakeMediaStore(MediaStore):
    """In-memory ``MediaStore``.

    ``existing`` maps public ids to URLs already hosted; filenames in
    ``fail_on`` make ``upload`` raise ``MediaStoreError``.
    """

    base_url = "https://res.cloudinary.com/demo/image/upload/v1"

    def __init__(
        self,
        folder: str = "markermap-images",
        *,
        existing: dict[str, str] | None = None,
        fail_on: set[str] | None = None,
    ) -> None:
        super().__init__(folder)
        self.existing = dict(existing or {})
        self.fail_on = set(fail_on or ())
        self.uploads: list[tuple[str, str | None]] = []
        self.deleted: list[str] = []
        self.delete_results: dict[str, str] = {}

    def upload(self, content: bytes, *, filename: str, public_id: str | None = None) -> str:
        if filename in self.fail_on:
            raise MediaStoreError(f"Failed to upload {filename}")
        self.uploads.append((filename, public_id))
        name = public_id or filename.split(".", 1)[0]
        return f"{self.base_url}/{self.folder}/{name}.jpg"

    def find(self, public_id: str) -> str | None:
        return self.existing.get(public_id)

    def delete(self, public_id: str) -> str:
        self.deleted.append(public_id)
        return self.delete_results.get(public_id, "ok")


@pytest.fixture()
def media() -> FakeMediaStore:
    return FakeMediaStore()


def make_upload(filename: str, content: bytes = b"data", content_type: str = "") -> UploadedFile:
    return UploadedFile(filename=filename, content=content, content_type=content_type)


@pytest.fixture()
def media_factory() -> type[FakeMediaStore]:
    """The ``FakeMediaStore`` class, for tests that need custom behaviour."""
    return FakeMediaStore


@pytest.fixture()
def upload_factory():  # noqa: ANN201
    """Build ``UploadedFile`` objects: ``upload_factory("IMG_1.jpg", b"...")``."""
    return make_upload
