import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from utils.errors import StorageError

LOGGER = logging.getLogger(__name__)


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite database that backs the image carousel.

    - The database file is located at: <db_dir>/app.db
    - A RuntimeError is raised if `db_dir` is not a directory and cannot be created.
    - On the first call to `ensure_database()` for a given instance the
      IMAGE table and its sequence index are created if missing. Existing
      rows are kept.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    - Writers share one `asyncio.Lock`, so every `transaction()` on this
      instance runs one at a time.
    """

    def __init__(self, db_dir: Path | str) -> None:
        db_dir = Path(db_dir).expanduser()

        # If the path exists but is not a directory, that's a configuration error.
        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"Database directory {db_dir} points to a file, not a directory. "
                f"Please set DATABASE_DIR to a directory path."
            )

        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {db_dir}"
            ) from exc

        self.db_dir = db_dir
        self.db_path = self.db_dir / "app.db"

        self._initialized = False
        self._write_lock = asyncio.Lock()

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite database at `self.db_path` has the IMAGE schema.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL;")
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS IMAGE (
                            id INTEGER PRIMARY KEY AUTOINCREMENT,
                            title TEXT NOT NULL,
                            description TEXT,
                            image_url TEXT NOT NULL,
                            sequence INTEGER NOT NULL DEFAULT 0,
                            upload_date TEXT NOT NULL
                        )
                        """
                    )
                    # Not UNIQUE: range shifts pass through transient duplicates mid-statement.
                    await db.execute(
                        "CREATE INDEX IF NOT EXISTS idx_image_sequence ON IMAGE(sequence)"
                    )
                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection` for reads.

        The schema is created on first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Yield a connection inside one serialized `BEGIN IMMEDIATE` transaction.

        All statements run on the yielded connection commit together when the
        block exits normally and are rolled back if it raises. SQLite errors
        are re-raised as `StorageError`; other exceptions propagate unchanged
        after the rollback.
        """
        async with self._write_lock:
            async with self.connection() as conn:
                try:
                    await conn.execute("BEGIN IMMEDIATE")
                except aiosqlite.Error as exc:
                    raise StorageError("Could not start a database transaction") from exc
                try:
                    yield conn
                    await conn.commit()
                except aiosqlite.Error as exc:
                    await conn.rollback()
                    LOGGER.error("Rolled back image transaction: %s", exc)
                    raise StorageError("Database write failed") from exc
                except BaseException:
                    await conn.rollback()
                    raise
