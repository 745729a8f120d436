"""Media host adapter.

``MediaStore`` is the contract the routes use: upload bytes and get a
public URL back, look up an existing asset by public id, and delete one.
``CloudinaryMediaStore`` implements it over the Cloudinary SDK.

Public ids are ``<folder>/<filename stem>``, so uploading the same file
name twice targets the same asset.
"""

from __future__ import annotations

import abc
import io
import logging
import re
from urllib.parse import urlparse

import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import NotFound

from markermap.core.exceptions import TransientError

logger = logging.getLogger(__name__)

_VERSION_SEGMENT_RE = re.compile(r"^v\d+$")


class MediaStoreError(TransientError):
    """A media host call failed."""

    default_stage = "media"
    default_code = "MEDIA_ERROR"
    default_status = 500


def public_id_from_url(url: str) -> str | None:
    """Extract the media-host public id from a delivery URL.

    ``https://res.cloudinary.com/demo/image/upload/v1712/markermap-images/IMG_1.jpg``
    becomes ``markermap-images/IMG_1``. The version segment is optional.

    Returns:
        The public id, or ``None`` if *url* has no ``/upload/`` segment.
    """
    path = urlparse(url).path if "://" in url else url
    segments = [s for s in path.split("/") if s]
    if "upload" not in segments:
        return None
    tail = segments[segments.index("upload") + 1 :]
    if tail and _VERSION_SEGMENT_RE.match(tail[0]):
        tail = tail[1:]
    if not tail:
        return None
    stem, _, _ = tail[-1].rpartition(".")
    tail[-1] = stem or tail[-1]
    return "/".join(tail)


class MediaStore(abc.ABC):
    """Contract for the image host used by upload, delete and import routes."""

    def __init__(self, folder: str) -> None:
        self._folder = folder

    @property
    def folder(self) -> str:
        """Folder every upload lands in."""
        return self._folder

    def public_id_for(self, stem: str) -> str:
        return f"{self._folder}/{stem}"

    @abc.abstractmethod
    def upload(self, content: bytes, *, filename: str, public_id: str | None = None) -> str:
        """Upload *content* and return its public HTTPS URL.

        Args:
            content: Image bytes.
            filename: Original filename, for logging.
            public_id: Asset name within ``folder``; the host picks one
                when omitted.

        Raises:
            MediaStoreError: If the upload fails.
        """

    @abc.abstractmethod
    def find(self, public_id: str) -> str | None:
        """Return the URL of an existing asset, or ``None`` if absent."""

    @abc.abstractmethod
    def delete(self, public_id: str) -> str:
        """Delete an asset and return the host's result (``"ok"`` on success).

        Raises:
            MediaStoreError: If the host call itself fails.
        """


class CloudinaryMediaStore(MediaStore):
    """``MediaStore`` backed by Cloudinary."""

    def __init__(
        self,
        *,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        upload_preset: str,
        folder: str,
    ) -> None:
        super().__init__(folder)
        self._upload_preset = upload_preset
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    def upload(self, content: bytes, *, filename: str, public_id: str | None = None) -> str:
        options: dict[str, object] = {
            "upload_preset": self._upload_preset,
            "folder": self._folder,
            "resource_type": "image",
        }
        if public_id:
            options["public_id"] = public_id
        try:
            result = cloudinary.uploader.upload(io.BytesIO(content), **options)
        except CloudinaryError as exc:
            logger.error("Upload failed | file=%s | error=%s", filename, exc)
            raise MediaStoreError(f"Failed to upload {filename}: {exc}") from exc

        url = result.get("secure_url")
        if not url:
            msg = f"Upload of {filename} returned no URL"
            raise MediaStoreError(msg)
        logger.info("Uploaded image | file=%s | url=%s", filename, url)
        return str(url)

    def find(self, public_id: str) -> str | None:
        try:
            resource = cloudinary.api.resource(public_id)
        except NotFound:
            return None
        except CloudinaryError as exc:
            # Lookup failures only cost a re-upload.
            logger.warning("Existence check failed | public_id=%s | error=%s", public_id, exc)
            return None
        url = resource.get("secure_url")
        return str(url) if url else None

    def delete(self, public_id: str) -> str:
        try:
            result = cloudinary.uploader.destroy(public_id)
        except CloudinaryError as exc:
            logger.error("Delete failed | public_id=%s | error=%s", public_id, exc)
            raise MediaStoreError(str(exc)) from exc
        outcome = str(result.get("result", "")) if result else ""
        logger.info("Deleted image | public_id=%s | result=%s", public_id, outcome)
        return outcome
