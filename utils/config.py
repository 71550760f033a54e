"""Runtime settings loaded from environment variables.

A `.env` file next to the working directory is honoured via python-dotenv.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_UPLOAD_DIR = BASE_DIR / "uploads"
DEFAULT_CORS_ORIGIN = "http://localhost:3000"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    """Application configuration.

    Attributes:
        database_dir: Directory that holds the SQLite file (`app.db`).
        upload_dir: Directory where uploaded image files are written.
        cors_origin: Origin allowed to call the API from a browser.
        max_upload_bytes: Largest accepted upload, in bytes.
        log_level: Name of the root logging level.
        port: Port used when the module is run directly.
    """

    database_dir: Path
    upload_dir: Path = DEFAULT_UPLOAD_DIR
    cors_origin: str = DEFAULT_CORS_ORIGIN
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    log_level: str = "INFO"
    port: int = 5000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment.

        Raises:
            RuntimeError: If DATABASE_DIR is unset or MAX_UPLOAD_BYTES is not an integer.
        """
        load_dotenv()

        env_dir = os.getenv("DATABASE_DIR")
        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        raw_limit = os.getenv("MAX_UPLOAD_BYTES")
        try:
            max_upload_bytes = int(raw_limit) if raw_limit else DEFAULT_MAX_UPLOAD_BYTES
        except ValueError as exc:
            raise RuntimeError(f"MAX_UPLOAD_BYTES={raw_limit!r} is not an integer") from exc

        upload_dir = os.getenv("UPLOAD_DIR")
        return cls(
            database_dir=Path(env_dir).expanduser(),
            upload_dir=Path(upload_dir).expanduser() if upload_dir else DEFAULT_UPLOAD_DIR,
            cors_origin=os.getenv("CORS_ORIGIN") or DEFAULT_CORS_ORIGIN,
            max_upload_bytes=max_upload_bytes,
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
            port=int(os.getenv("PORT") or 5000),
        )
