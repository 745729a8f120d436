"""``/api/upload`` and ``/api/images/delete``: single-image upload and bulk delete."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from markermap.api.responses import ApiResponse
from markermap.core.exceptions import ValidationError
from markermap.models.payloads import DeleteImagesBody, validate_payload
from markermap.services.media import MediaStoreError, public_id_from_url

if TYPE_CHECKING:
    from markermap.core.config import MarkerMapConfig
    from markermap.core.ingress import UploadedFile
    from markermap.services.media import MediaStore

logger = logging.getLogger(__name__)

_BYTES_PER_MB = 1024 * 1024


class PayloadTooLargeError(ValidationError):
    """An uploaded file exceeds the configured size limit."""

    default_code = "PAYLOAD_TOO_LARGE"
    default_status = 413


def upload_image(
    file: UploadedFile | None, media: MediaStore, config: MarkerMapConfig
) -> ApiResponse:
    """Upload one image to the media folder and return its URL.

    Raises:
        ValidationError: If no file was sent.
        PayloadTooLargeError: If the file exceeds ``max_upload_bytes``.
        MediaStoreError: If the media host rejects the upload.
    """
    if file is None:
        raise ValidationError("No file uploaded.")
    if file.size > config.max_upload_bytes:
        raise PayloadTooLargeError(
            f"File is too large ({file.size / _BYTES_PER_MB:.2f}MB). "
            f"Maximum size is {config.max_upload_mb:g}MB."
        )

    url = media.upload(file.content, filename=file.filename)
    return ApiResponse({"imageUrl": url})


def delete_images(body: dict[str, Any], media: MediaStore) -> ApiResponse:
    """Delete hosted images by URL; each URL fails or succeeds on its own."""
    image_urls = body.get("imageUrls")
    if image_urls is None or not isinstance(image_urls, list):
        raise ValidationError("No image URLs provided.")
    validate_payload(body, DeleteImagesBody, route="images/delete")

    logger.info("Deleting images | count=%d", len(image_urls))
    results: list[dict[str, str]] = []
    errors: list[dict[str, str]] = []

    for url in image_urls:
        url = str(url)
        public_id = public_id_from_url(url)
        if public_id is None:
            logger.warning("Invalid media URL format: %s", url)
            errors.append({"url": url, "error": "Invalid URL format"})
            continue
        try:
            outcome = media.delete(public_id)
        except MediaStoreError as exc:
            errors.append({"url": url, "error": exc.message})
            continue
        if outcome == "ok":
            results.append({"url": url, "publicId": public_id, "status": "deleted"})
        else:
            logger.warning("Image not deleted | public_id=%s | result=%s", public_id, outcome)
            errors.append({"url": url, "publicId": public_id, "error": outcome})

    logger.info("Deletion complete | deleted=%d | errors=%d", len(results), len(errors))
    return ApiResponse(
        {
            "success": True,
            "deleted": len(results),
            "errors": len(errors),
            "results": results,
            "errorDetails": errors,
        }
    )
