from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ImageRecord:
    """In-memory representation of a row in the IMAGE table.

    Attributes:
        id: Primary key (None for new records).
        title: Display title, never blank.
        description: Optional free-text description.
        image_url: Public URL path of the stored file, e.g. `/uploads/<name>`.
        sequence: Zero-based display position within the carousel.
        upload_date: ISO-8601 UTC timestamp set when the row was inserted.
    """

    id: Optional[int]
    title: str
    image_url: str
    description: Optional[str] = None
    sequence: Optional[int] = None
    upload_date: Optional[str] = None

    @property
    def filename(self) -> str:
        """Name of the stored file, taken from the last segment of `image_url`."""
        return self.image_url.rsplit("/", 1)[-1]

    def to_json(self) -> Dict[str, Any]:
        """Return the camelCase JSON shape served by the API."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "imageUrl": self.image_url,
            "sequence": self.sequence,
            "uploadDate": self.upload_date,
        }
