"""Disk storage for uploaded carousel images.

Files live flat under the configured upload directory and are served back at
`/uploads/<filename>`. Names are prefixed with the upload time in
milliseconds so two uploads of `cat.png` never collide.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable

import aiofiles
import aiofiles.os

from utils.errors import StorageError

LOGGER = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


class FileStore:
    """Write, remove and sweep image files under one directory."""

    def __init__(self, upload_dir: Path | str) -> None:
        self.upload_dir = Path(upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def make_filename(original_name: str | None) -> str:
        """Return `<epoch-millis>-<basename>` for an uploaded file name.

        Directory components are dropped so a crafted name cannot escape the
        upload directory.
        """
        base = Path(original_name or "").name.strip() or "image"
        return f"{int(time.time() * 1000)}-{base}"

    @staticmethod
    def url_for(filename: str) -> str:
        return f"{URL_PREFIX}/{filename}"

    async def save(self, original_name: str | None, data: bytes) -> str:
        """Write `data` to a new file and return its public URL path.

        Raises:
            StorageError: If the file cannot be written.
        """
        filename = self.make_filename(original_name)
        path = self.upload_dir / filename
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as exc:
            raise StorageError(f"Failed to write upload {filename}") from exc
        return self.url_for(filename)

    async def remove(self, filename: str) -> bool:
        """Best-effort removal of a stored file.

        Returns:
            True if a file was deleted. A missing file or an OS error is
            logged and reported as False; the caller's operation still succeeds
            and `sweep_orphans` collects anything left behind.
        """
        path = self.upload_dir / Path(filename).name
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            LOGGER.warning("Upload %s was already gone", path)
            return False
        except OSError as exc:
            LOGGER.warning("Could not remove upload %s: %s", path, exc)
            return False
        return True

    async def sweep_orphans(self, referenced: Iterable[str]) -> int:
        """Delete files in the upload directory that no record points to.

        Args:
            referenced: Filenames still used by stored records.

        Returns:
            The number of files removed.
        """
        keep = set(referenced)
        removed = 0
        for name in await aiofiles.os.listdir(self.upload_dir):
            if name in keep or name.startswith("."):
                continue
            if not await aiofiles.os.path.isfile(self.upload_dir / name):
                continue
            if await self.remove(name):
                removed += 1
        if removed:
            LOGGER.info("Removed %d orphaned uploads from %s", removed, self.upload_dir)
        return removed
