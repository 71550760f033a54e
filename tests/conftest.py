"""Shared fixtures for the image carousel tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from dal.image_dal import ImageDAL
from main import create_app
from models.image_record import ImageRecord
from utils.config import Settings
from utils.database_init import AsyncDatabaseInitializer

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


def png_bytes(size: int = 64) -> bytes:
    """Return `size` bytes that start with a PNG signature."""
    return PNG_HEADER + b"\x00" * max(size - len(PNG_HEADER), 0)


@pytest.fixture
def settings(tmp_path):
    """Settings pointing the database and uploads at a temporary directory."""
    return Settings(
        database_dir=tmp_path / "db",
        upload_dir=tmp_path / "uploads",
        log_level="WARNING",
    )


@pytest.fixture
def client(settings):
    """TestClient with the lifespan (database init, orphan sweep) running."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def initializer(tmp_path):
    return AsyncDatabaseInitializer(tmp_path / "db")


@pytest.fixture
def image_dal(initializer):
    return ImageDAL(initializer)


def seed_images(image_dal: ImageDAL, count: int):
    """Insert `count` records titled img0..imgN-1 and return them."""

    async def _seed():
        return [
            await image_dal.create_image(
                ImageRecord(id=None, title=f"img{i}", image_url=f"/uploads/{i}-img.png")
            )
            for i in range(count)
        ]

    return asyncio.run(_seed())


def upload(client: TestClient, title: str = "Sunset", data: bytes = None, content_type: str = "image/png", name: str = "sunset.png"):
    """POST a multipart upload and return the response."""
    return client.post(
        "/api/images",
        files={"image": (name, data if data is not None else png_bytes(), content_type)},
        data={"title": title, "description": f"{title} description"},
    )
