"""Print the image carousel stored in the project's SQLite database.

Images are listed in display order, followed by a check that their
sequence values still form the dense range 0..N-1. It reuses the same
`DATABASE_DIR` behavior as the application via `utils.config.Settings`.

Run: set the `DATABASE_DIR` environment variable and run `python print_db.py`.
The exit status is 1 when the sequence range has gaps or duplicates.
"""
import asyncio
import sys
from typing import List, Tuple

from dal.image_dal import ImageDAL
from services.sequencer import is_dense
from utils.config import Settings
from utils.database_init import AsyncDatabaseInitializer


async def carousel_report(initializer: AsyncDatabaseInitializer) -> Tuple[List[str], bool]:
    """Describe every stored image and check the sequence range.

    Args:
        initializer: Database provider to read from.

    Returns:
        `(lines, dense)`: one line per image in display order followed by a
        summary line, and whether the sequences form the range 0..N-1.
    """
    records = await ImageDAL(initializer).list_images()
    lines = [
        f"{record.sequence:>4}  id={record.id}  {record.title!r}  {record.image_url}"
        for record in records
    ]
    sequences = [record.sequence for record in records]
    dense = is_dense(sequences)
    if dense:
        lines.append(f"{len(records)} images, sequence range is dense")
    else:
        lines.append(f"{len(records)} images, sequence range is BROKEN: {sorted(sequences)}")
    return lines, dense


async def main() -> int:
    """Print the carousel and return the process exit status."""
    initializer = AsyncDatabaseInitializer(Settings.from_env().database_dir)
    lines, dense = await carousel_report(initializer)
    for line in lines:
        print(line)
    return 0 if dense else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
