"""Domain errors raised by the record store, sequencer and upload checks.

Controllers translate these into HTTP responses; nothing below the API
layer imports FastAPI.
"""


class ImageNotFoundError(KeyError):
    """Raised when an image id does not match any stored record."""

    def __init__(self, image_id: int) -> None:
        super().__init__(image_id)
        self.image_id = image_id

    def __str__(self) -> str:
        return f"Image {self.image_id} not found"


class ImageValidationError(ValueError):
    """Raised for rejected input: bad uploads, blank titles, invalid sequences."""


class StorageError(RuntimeError):
    """Raised when the database or upload directory cannot be written."""
