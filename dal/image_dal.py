"""Async Data Access Layer for IMAGE table.

Provides ImageDAL class with async CRUD and resequencing operations
compatible with `utils.database_init.AsyncDatabaseInitializer`. Every
operation that changes more than one row runs inside a single
`transaction()` so the dense `sequence` range is never left half-updated.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple

import aiosqlite

from models.image_record import ImageRecord
from services import sequencer
from services.sequencer import SequenceShift
from utils.database_init import AsyncDatabaseInitializer
from utils.errors import ImageNotFoundError, ImageValidationError

LOGGER = logging.getLogger(__name__)

# SQLite INTEGER is a signed 64-bit value; ids outside it cannot match a row.
_MIN_ID, _MAX_ID = -(2**63), 2**63 - 1

# Marks a keyword argument the caller did not send, as distinct from None.
UNSET = object()


class ImageDAL:
    """Data access layer for IMAGE records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing async `connection()` and `transaction()` context managers that
    yield an `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "title",
        "description",
        "image_url",
        "sequence",
        "upload_date",
    )
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_image(self, record: ImageRecord) -> ImageRecord:
        """Insert a new IMAGE row at the end of the carousel.

        Args:
            record: ImageRecord with `id=None`; its `sequence` is ignored.

        Returns:
            The stored record, including its id, sequence and upload date.
        """
        _require_title(record.title)
        upload_date = record.upload_date or datetime.now(timezone.utc).isoformat()

        async with self._db.transaction() as conn:
            sequence = sequencer.append(await self._count(conn))
            cur = await conn.execute(
                f"INSERT INTO IMAGE ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    record.title.strip(),
                    record.description,
                    record.image_url,
                    sequence,
                    upload_date,
                ),
            )
            image_id = cur.lastrowid
            created = await self._fetch(conn, image_id)

        LOGGER.info("Stored image %s at sequence %s", image_id, sequence)
        return created

    async def get_image_by_id(self, image_id: int) -> Optional[ImageRecord]:
        """Return ImageRecord for `image_id`, or None if not found."""
        async with self._db.connection() as conn:
            return await self._fetch(conn, image_id)

    async def list_images(self) -> List[ImageRecord]:
        """List all IMAGE rows in ascending display order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM IMAGE ORDER BY sequence ASC, id ASC"
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def update_image(
        self,
        image_id: int,
        *,
        title: Optional[str] = None,
        description: Any = UNSET,
        sequence: Optional[int] = None,
    ) -> ImageRecord:
        """Update metadata and, optionally, the display position of one image.

        A changed `sequence` moves the image: the records between its old and
        new positions shift by one so the range stays dense. `description`
        left as `UNSET` is kept; passing None clears it.

        Raises:
            ImageNotFoundError: If no row has `image_id`.
            ImageValidationError: If `title` is blank or `sequence` is out of range.
        """
        if title is not None:
            _require_title(title)

        async with self._db.transaction() as conn:
            record = await self._fetch(conn, image_id)
            if record is None:
                raise ImageNotFoundError(image_id)

            updates = {}
            if title is not None:
                updates["title"] = title.strip()
            if description is not UNSET:
                updates["description"] = description
            fields = [f"{col} = ?" for col in updates]
            if fields:
                params = list(updates.values())
                params.append(image_id)
                await conn.execute(
                    f"UPDATE IMAGE SET {', '.join(fields)} WHERE id = ?", tuple(params)
                )

            if sequence is not None:
                shift = sequencer.plan_move(record.sequence, sequence, await self._count(conn))
                if shift is not None:
                    await self._apply_shift(conn, shift, exclude_id=image_id)
                    await conn.execute(
                        "UPDATE IMAGE SET sequence = ? WHERE id = ?", (sequence, image_id)
                    )
                    LOGGER.info(
                        "Moved image %s from sequence %s to %s", image_id, record.sequence, sequence
                    )

            return await self._fetch(conn, image_id)

    async def reassign_sequences(self, pairs: Sequence[Tuple[int, int]]) -> List[ImageRecord]:
        """Overwrite every record's sequence with a client-computed order.

        Args:
            pairs: `(id, sequence)` for every stored image; the sequences must
                be a permutation of `0..N-1`.

        Returns:
            All records in their new display order.

        Raises:
            ImageValidationError: If `pairs` is not a complete permutation.
        """
        async with self._db.transaction() as conn:
            cur = await conn.execute("SELECT id FROM IMAGE")
            known_ids = [row[0] for row in await cur.fetchall()]
            assignment = sequencer.validate_reassignment(known_ids, pairs)
            await conn.executemany(
                "UPDATE IMAGE SET sequence = ? WHERE id = ?",
                [(seq, image_id) for image_id, seq in assignment.items()],
            )

        LOGGER.info("Reassigned sequences for %d images", len(assignment))
        return await self.list_images()

    async def delete_image(self, image_id: int) -> ImageRecord:
        """Delete the IMAGE row and close the gap it leaves in the sequence range.

        Returns:
            The deleted record, so callers can remove its file.

        Raises:
            ImageNotFoundError: If no row has `image_id`.
        """
        async with self._db.transaction() as conn:
            record = await self._fetch(conn, image_id)
            if record is None:
                raise ImageNotFoundError(image_id)
            await conn.execute("DELETE FROM IMAGE WHERE id = ?", (image_id,))
            await self._apply_shift(conn, sequencer.plan_gap_closure(record.sequence), exclude_id=image_id)

        LOGGER.info("Deleted image %s from sequence %s", image_id, record.sequence)
        return record

    async def _fetch(self, conn: aiosqlite.Connection, image_id: int) -> Optional[ImageRecord]:
        if not _MIN_ID <= image_id <= _MAX_ID:
            return None
        cur = await conn.execute(
            f"SELECT {self._COLUMN_LIST} FROM IMAGE WHERE id = ?",
            (image_id,),
        )
        row = await cur.fetchone()
        return self._row_to_record(row) if row else None

    @staticmethod
    async def _count(conn: aiosqlite.Connection) -> int:
        cur = await conn.execute("SELECT COUNT(*) FROM IMAGE")
        row = await cur.fetchone()
        return int(row[0]) if row else 0

    @staticmethod
    async def _apply_shift(
        conn: aiosqlite.Connection, shift: SequenceShift, exclude_id: int
    ) -> None:
        """Run one range update described by `shift`."""
        if shift.upper is None:
            await conn.execute(
                "UPDATE IMAGE SET sequence = sequence + ? WHERE sequence >= ? AND id != ?",
                (shift.delta, shift.lower, exclude_id),
            )
        else:
            await conn.execute(
                "UPDATE IMAGE SET sequence = sequence + ? "
                "WHERE sequence >= ? AND sequence <= ? AND id != ?",
                (shift.delta, shift.lower, shift.upper, exclude_id),
            )

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> ImageRecord:
        """Convert a DB row tuple into an ImageRecord."""
        return ImageRecord(
            id=row[0],
            title=row[1],
            description=row[2],
            image_url=row[3],
            sequence=row[4],
            upload_date=row[5],
        )


def _require_title(title: Optional[str]) -> None:
    if title is None or not title.strip():
        raise ImageValidationError("Title is required")
