from fastapi import Request, UploadFile, HTTPException
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from dal.image_dal import UNSET, ImageDAL
from models.image_record import ImageRecord
from services.file_store import FileStore
from utils.errors import ImageNotFoundError, ImageValidationError
from utils.media_validation import read_image_bytes

LOGGER = logging.getLogger(__name__)


def _image_dal(request: Request) -> ImageDAL:
    return ImageDAL(request.app.state.db_initializer)


async def list_images(request: Request) -> List[Dict[str, Any]]:
    """Return every image in display order."""
    records = await _image_dal(request).list_images()
    return [record.to_json() for record in records]


async def upload_image(
    request: Request,
    file: Optional[UploadFile],
    title: Optional[str],
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate and store an uploaded image, then append its record to the carousel.

    Args:
        request: FastAPI Request object (used to access app.state for shared resources).
        file: Uploaded image; must be JPEG, PNG or GIF and within the size ceiling.
        title: Required display title.
        description: Optional description.

    Returns:
        The created record as JSON.

    Raises:
        HTTPException(400) if the file or title is rejected.
    """
    settings = request.app.state.settings
    file_store: FileStore = request.app.state.file_store
    image_dal = _image_dal(request)

    try:
        data = await read_image_bytes(file, max_bytes=settings.max_upload_bytes)
        if not title or not title.strip():
            raise ImageValidationError("Title is required")
    except ImageValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    image_url = await file_store.save(file.filename, data)
    record = ImageRecord(
        id=None,
        title=title,
        description=description,
        image_url=image_url,
    )
    try:
        created = await image_dal.create_image(record)
    except Exception:
        # Record insert failed; drop the file so it does not linger as an orphan.
        await file_store.remove(record.filename)
        raise

    LOGGER.info("Uploaded %s as image %s", image_url, created.id)
    return created.to_json()


async def update_sequences(
    request: Request, pairs: Sequence[Tuple[int, int]]
) -> List[Dict[str, Any]]:
    """Apply a full client-computed reordering and return the re-sorted list."""
    try:
        records = await _image_dal(request).reassign_sequences(pairs)
    except ImageValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [record.to_json() for record in records]


async def update_image(
    request: Request,
    image_id: int,
    title: Optional[str] = None,
    description: Any = UNSET,
    sequence: Optional[int] = None,
) -> Dict[str, Any]:
    """Edit an image's title, description or display position.

    A `description` of None clears it; leave it as `UNSET` to keep it.

    Raises:
        HTTPException(404) if the image does not exist.
        HTTPException(400) if the title is blank or the sequence is out of range.
    """
    try:
        record = await _image_dal(request).update_image(
            image_id, title=title, description=description, sequence=sequence
        )
    except ImageNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Image not found") from exc
    except ImageValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return record.to_json()


async def delete_image(request: Request, image_id: int) -> Dict[str, str]:
    """Delete an image record, close its sequence gap and remove its file.

    The file is removed after the record commits and only on a best-effort
    basis; leftovers are collected by the startup orphan sweep.
    """
    file_store: FileStore = request.app.state.file_store
    try:
        record = await _image_dal(request).delete_image(image_id)
    except ImageNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Image not found") from exc

    await file_store.remove(record.filename)
    return {"message": "Image deleted successfully"}
