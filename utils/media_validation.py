"""Validation helpers for uploaded image content."""

from fastapi import UploadFile

from utils.config import DEFAULT_MAX_UPLOAD_BYTES
from utils.errors import ImageValidationError

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
}


def validate_image_type(image_file: UploadFile) -> None:
    """Reject uploads whose content type is not JPEG, PNG or GIF."""
    content_type = (image_file.content_type or "").lower().split(";", 1)[0].strip()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ImageValidationError(
            "Invalid file type. Only JPEG, PNG and GIF files are allowed"
        )


async def read_image_bytes(
    image_file: UploadFile | None, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
) -> bytes:
    """Read validated image bytes, enforcing the type allow-list and size ceiling.

    At most `max_bytes + 1` bytes are read, which is enough to detect an
    oversized upload without buffering all of it.
    """
    if image_file is None:
        raise ImageValidationError("No image file provided")
    validate_image_type(image_file)

    data = await image_file.read(max_bytes + 1)
    if not data:
        raise ImageValidationError("Uploaded image file is empty.")
    if len(data) > max_bytes:
        raise ImageValidationError(
            f"File size too large. Maximum size is {max_bytes // (1024 * 1024)}MB"
        )
    return data
