"""FastAPI routes for the image carousel."""

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.image_controller import (
    delete_image,
    list_images,
    update_image,
    update_sequences,
    upload_image,
)
from dal.image_dal import UNSET

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["images"])


class SequenceItem(BaseModel):
    id: int
    sequence: int


class SequencesPayload(BaseModel):
    sequences: List[SequenceItem]


class ImagePatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    sequence: Optional[int] = None


@router.get("")
async def list_images_route(request: Request):
    """Return all images sorted by sequence."""
    try:
        return await list_images(request)
    except HTTPException:
        raise
    except Exception as exc:
        LOGGER.exception("Failed to list images")
        raise HTTPException(status_code=500, detail="Failed to fetch images.") from exc


@router.post("", status_code=201)
async def upload_image_route(
    request: Request,
    image: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
):
    """Upload an image file with its title and description."""
    try:
        return await upload_image(request, image, title, description)
    except HTTPException:
        raise
    except Exception as exc:
        LOGGER.exception("Failed to upload image")
        raise HTTPException(status_code=500, detail="Failed to upload image.") from exc


@router.put("/sequence")
async def update_sequences_route(
    request: Request, payload: Union[List[SequenceItem], SequencesPayload]
):
    """Reorder the whole carousel.

    Accepts either a bare array of `{id, sequence}` or `{"sequences": [...]}`.
    """
    items = payload.sequences if isinstance(payload, SequencesPayload) else payload
    try:
        return await update_sequences(request, [(item.id, item.sequence) for item in items])
    except HTTPException:
        raise
    except Exception as exc:
        LOGGER.exception("Failed to update image sequence")
        raise HTTPException(status_code=500, detail="Failed to update image sequence.") from exc


@router.patch("/{image_id}")
async def update_image_route(request: Request, image_id: int, payload: ImagePatch):
    """Edit title, description or sequence of one image."""
    try:
        return await update_image(
            request,
            image_id,
            title=payload.title,
            description=payload.description if "description" in payload.model_fields_set else UNSET,
            sequence=payload.sequence,
        )
    except HTTPException:
        raise
    except Exception as exc:
        LOGGER.exception("Failed to update image %s", image_id)
        raise HTTPException(status_code=500, detail="Failed to update image.") from exc


@router.delete("/{image_id}")
async def delete_image_route(request: Request, image_id: int):
    """Delete one image and its file."""
    try:
        return await delete_image(request, image_id)
    except HTTPException:
        raise
    except Exception as exc:
        LOGGER.exception("Failed to delete image %s", image_id)
        raise HTTPException(status_code=500, detail="Failed to delete image.") from exc
