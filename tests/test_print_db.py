"""
Unit tests for the carousel inspection script.
"""

import asyncio

from conftest import seed_images
from print_db import carousel_report, main


def corrupt_sequence(initializer, title, sequence):
    """Force one record's sequence, bypassing the resequencing rules."""

    async def _corrupt():
        async with initializer.transaction() as conn:
            await conn.execute("UPDATE IMAGE SET sequence = ? WHERE title = ?", (sequence, title))

    asyncio.run(_corrupt())


class TestCarouselReport:
    """Test cases for carousel_report."""

    def test_empty_database(self, initializer):
        lines, dense = asyncio.run(carousel_report(initializer))

        assert lines == ["0 images, sequence range is dense"]
        assert dense is True

    def test_lists_in_display_order(self, initializer, image_dal):
        records = seed_images(image_dal, 3)
        asyncio.run(image_dal.update_image(records[2].id, sequence=0))

        lines, dense = asyncio.run(carousel_report(initializer))

        assert "'img2'" in lines[0]
        assert lines[0].strip().startswith("0")
        assert lines[-1] == "3 images, sequence range is dense"
        assert dense is True

    def test_reports_broken_range(self, initializer, image_dal):
        seed_images(image_dal, 2)
        corrupt_sequence(initializer, "img1", 5)

        lines, dense = asyncio.run(carousel_report(initializer))

        assert lines[-1] == "2 images, sequence range is BROKEN: [0, 5]"
        assert dense is False


class TestMain:
    """Test cases for the script's exit status."""

    def test_exit_status_follows_dense_flag(self, monkeypatch, tmp_path, initializer, image_dal, capsys):
        monkeypatch.setattr("utils.config.load_dotenv", lambda: None)
        monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "db"))
        seed_images(image_dal, 2)

        assert asyncio.run(main()) == 0
        assert "2 images, sequence range is dense" in capsys.readouterr().out

        corrupt_sequence(initializer, "img0", 7)

        assert asyncio.run(main()) == 1
