"""``/api/import``: KML + photos import.

Pipeline for one request:

1. Parse the KML into folders and markers (filenames as image references).
2. Upload the attached photos concurrently, at most
   ``import_upload_workers`` at a time. A photo whose public id already
   exists on the media host is reused instead of uploaded again. A failed
   photo is counted and skipped; it never fails the import.
3. Move the parsed tree into a fresh id space owned by the caller and swap
   filenames for hosted URLs (photos that failed simply disappear).
4. Persist folders, then markers. There is no rollback: if markers fail
   after folders were written, the caller gets a single 500.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import TYPE_CHECKING

from markermap.api.responses import ApiResponse
from markermap.core.exceptions import PermanentError, ValidationError
from markermap.kml import parse_kml, reconcile_ids
from markermap.services.media import MediaStoreError
from markermap.services.store import StoreError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from markermap.core.config import MarkerMapConfig
    from markermap.core.ingress import UploadedFile
    from markermap.services.media import MediaStore
    from markermap.services.store import MarkerMapStore

logger = logging.getLogger(__name__)


class ImportPersistError(PermanentError):
    """Folders or markers of an import could not be written."""

    default_stage = "import"
    default_code = "IMPORT_PERSIST_FAILED"


@dataclass(frozen=True, slots=True)
class UploadStats:
    """Outcome counts of the photo upload phase."""

    total: int = 0
    uploaded: int = 0

    @property
    def failed(self) -> int:
        return self.total - self.uploaded

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "uploaded": self.uploaded, "failed": self.failed}


# ---------------------------------------------------------------------------
# Photo upload phase
# ---------------------------------------------------------------------------


def upload_one(file: UploadedFile, media: MediaStore) -> str:
    """Return the hosted URL for *file*, uploading only if it is not there yet.

    Raises:
        MediaStoreError: If the upload fails.
    """
    existing = media.find(media.public_id_for(file.stem))
    if existing:
        logger.info("Skipping upload, already hosted | file=%s", file.filename)
        return existing
    return media.upload(file.content, filename=file.filename, public_id=file.stem)


def upload_images(
    files: Sequence[UploadedFile],
    media: MediaStore | None,
    *,
    max_workers: int,
) -> tuple[dict[str, str], UploadStats]:
    """Upload *files* with bounded concurrency.

    Any error raised for one file is logged and counted; it never stops the
    other uploads.

    Returns:
        ``filename -> URL`` for every file that ended up hosted (files that
        failed are absent; so are all files when *media* is ``None``) and the
        upload counts.
    """
    if not files:
        return {}, UploadStats()
    if media is None:
        logger.warning("Media host not configured, skipping %d image(s)", len(files))
        return {}, UploadStats(total=len(files))

    urls: dict[str, str] = {}
    uploaded = 0
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {pool.submit(upload_one, file, media): file for file in files}
        for future in as_completed(futures):
            file = futures[future]
            try:
                urls[file.filename] = future.result()
            except MediaStoreError as exc:
                logger.warning("Image upload failed | file=%s | error=%s", file.filename, exc.message)
            except Exception:
                logger.warning("Image upload failed | file=%s", file.filename, exc_info=True)
            else:
                uploaded += 1
    return urls, UploadStats(total=len(files), uploaded=uploaded)


# ---------------------------------------------------------------------------
# Route handler
# ---------------------------------------------------------------------------


def import_kml(
    kml_file: UploadedFile | None,
    image_files: Sequence[UploadedFile],
    user_id: str | None,
    *,
    store: MarkerMapStore,
    media: MediaStore | None,
    config: MarkerMapConfig,
) -> ApiResponse:
    """Run the import pipeline and return the persisted folders and markers.

    Raises:
        ValidationError: If the KML file or user id is missing.
        KmlParseError: If the KML is structurally invalid.
        ImportPersistError: If writing folders or markers fails.
    """
    if kml_file is None:
        raise ValidationError("No KML file provided.")
    if not user_id:
        raise ValidationError("User ID is required.")

    logger.info(
        "Import started | user=%s | kml=%s | images=%d",
        user_id,
        kml_file.filename,
        len(image_files),
    )
    parsed = parse_kml(kml_file.content)

    image_urls, stats = upload_images(
        image_files, media, max_workers=config.import_upload_workers
    )
    logger.info(
        "Image uploads complete | uploaded=%d | failed=%d", stats.uploaded, stats.failed
    )

    reconciled = reconcile_ids(
        parsed.folders, parsed.markers, user_id=user_id, image_urls=image_urls
    )

    try:
        store.upsert_folders([folder.to_row() for folder in reconciled.folders])
        store.upsert_markers([marker.to_row() for marker in reconciled.markers])
    except StoreError as exc:
        logger.error("Import persistence failed | user=%s | error=%s", user_id, exc.message)
        raise ImportPersistError(
            "Images uploaded but failed to save markers to database"
        ) from exc

    logger.info(
        "Import complete | user=%s | folders=%d | markers=%d",
        user_id,
        len(reconciled.folders),
        len(reconciled.markers),
    )
    return ApiResponse(
        {
            "success": True,
            "folders": [folder.to_dict() for folder in reconciled.folders],
            "markers": [marker.to_dict() for marker in reconciled.markers],
            "imageUploadStats": stats.to_dict(),
        }
    )
