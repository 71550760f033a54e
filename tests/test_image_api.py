"""
Integration tests for the /api/images HTTP surface.
"""

from fastapi.testclient import TestClient

from conftest import png_bytes, upload
from dal.image_dal import ImageDAL
from main import create_app
from services.sequencer import is_dense
from utils.errors import StorageError

MIB = 1024 * 1024
HUGE_ID = 99999999999999999999


def titles(client):
    return [image["title"] for image in client.get("/api/images").json()]


class TestListImages:
    """Test cases for GET /api/images."""

    def test_empty(self, client):
        response = client.get("/api/images")

        assert response.status_code == 200
        assert response.json() == []

    def test_sorted_and_dense(self, client):
        for title in ("a", "b", "c"):
            upload(client, title)

        images = client.get("/api/images").json()

        assert [i["title"] for i in images] == ["a", "b", "c"]
        assert is_dense(i["sequence"] for i in images)
        assert set(images[0]) == {"id", "title", "description", "imageUrl", "sequence", "uploadDate"}


class TestUploadImage:
    """Test cases for POST /api/images."""

    def test_created_record_appended(self, client, settings):
        first = upload(client, "first")
        second = upload(client, "second")

        assert first.status_code == 201
        assert first.json()["sequence"] == 0
        assert second.json()["sequence"] == 1
        assert second.json()["description"] == "second description"

        filename = second.json()["imageUrl"].rsplit("/", 1)[-1]
        assert filename.endswith("-sunset.png")
        assert (settings.upload_dir / filename).exists()

    def test_uploaded_file_is_served(self, client):
        data = png_bytes(128)
        image_url = upload(client, data=data).json()["imageUrl"]

        response = client.get(image_url)

        assert response.status_code == 200
        assert response.content == data

    def test_accepts_four_mib_png(self, client):
        response = upload(client, data=png_bytes(4 * MIB))

        assert response.status_code == 201

    def test_rejects_six_mib_file(self, client, settings):
        response = upload(client, data=png_bytes(6 * MIB))

        assert response.status_code == 400
        assert "too large" in response.json()["detail"]
        assert list(settings.upload_dir.iterdir()) == []

    def test_rejects_text_plain(self, client):
        response = upload(client, data=b"hello", content_type="text/plain", name="notes.txt")

        assert response.status_code == 400
        assert "Invalid file type" in response.json()["detail"]

    def test_accepts_jpeg_and_gif(self, client):
        assert upload(client, content_type="image/jpeg", name="a.jpg").status_code == 201
        assert upload(client, content_type="image/gif", name="a.gif").status_code == 201

    def test_rejects_missing_file(self, client):
        response = client.post("/api/images", data={"title": "No file"})

        assert response.status_code == 400
        assert response.json()["detail"] == "No image file provided"

    def test_rejects_empty_file(self, client):
        response = upload(client, data=b"")

        assert response.status_code == 400

    def test_rejects_blank_title(self, client, settings):
        response = upload(client, title="  ")

        assert response.status_code == 400
        assert response.json()["detail"] == "Title is required"
        assert list(settings.upload_dir.iterdir()) == []

    def test_failed_insert_removes_written_file(self, client, settings, monkeypatch):
        async def _fail(self, record):
            raise StorageError("Database write failed")

        monkeypatch.setattr(ImageDAL, "create_image", _fail)

        response = upload(client)

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to upload image."
        assert list(settings.upload_dir.iterdir()) == []


class TestUpdateSequences:
    """Test cases for PUT /api/images/sequence."""

    def test_bulk_reorder(self, client):
        ids = [upload(client, t).json()["id"] for t in ("a", "b", "c")]
        body = [{"id": ids[2], "sequence": 0}, {"id": ids[0], "sequence": 1}, {"id": ids[1], "sequence": 2}]

        response = client.put("/api/images/sequence", json=body)

        assert response.status_code == 200
        assert [i["title"] for i in response.json()] == ["c", "a", "b"]
        assert titles(client) == ["c", "a", "b"]

    def test_wrapped_payload(self, client):
        ids = [upload(client, t).json()["id"] for t in ("a", "b")]
        body = {"sequences": [{"id": ids[0], "sequence": 1}, {"id": ids[1], "sequence": 0}]}

        response = client.put("/api/images/sequence", json=body)

        assert response.status_code == 200
        assert titles(client) == ["b", "a"]

    def test_round_trip_is_identity(self, client):
        for t in ("a", "b", "c"):
            upload(client, t)
        before = client.get("/api/images").json()

        response = client.put(
            "/api/images/sequence",
            json=[{"id": i["id"], "sequence": i["sequence"]} for i in before],
        )

        assert response.json() == before

    def test_partial_permutation_rejected(self, client):
        ids = [upload(client, t).json()["id"] for t in ("a", "b", "c")]

        response = client.put(
            "/api/images/sequence",
            json=[{"id": ids[0], "sequence": 2}, {"id": ids[2], "sequence": 0}],
        )

        assert response.status_code == 400
        assert titles(client) == ["a", "b", "c"]


class TestPatchImage:
    """Test cases for PATCH /api/images/{id}."""

    def test_edit_metadata(self, client):
        image_id = upload(client, "a").json()["id"]

        response = client.patch(f"/api/images/{image_id}", json={"title": "b", "description": "d"})

        assert response.status_code == 200
        assert response.json()["title"] == "b"
        assert response.json()["description"] == "d"
        assert response.json()["sequence"] == 0

    def test_move_shifts_window(self, client):
        ids = [upload(client, str(i)).json()["id"] for i in range(5)]

        response = client.patch(f"/api/images/{ids[2]}", json={"sequence": 0})

        assert response.status_code == 200
        assert response.json()["sequence"] == 0
        images = client.get("/api/images").json()
        assert [i["title"] for i in images] == ["2", "0", "1", "3", "4"]
        assert [i["sequence"] for i in images] == [0, 1, 2, 3, 4]

    def test_out_of_range_sequence(self, client):
        image_id = upload(client, "a").json()["id"]

        assert client.patch(f"/api/images/{image_id}", json={"sequence": 1}).status_code == 400
        assert client.patch(f"/api/images/{image_id}", json={"sequence": -1}).status_code == 400

    def test_blank_title(self, client):
        image_id = upload(client, "a").json()["id"]

        assert client.patch(f"/api/images/{image_id}", json={"title": ""}).status_code == 400

    def test_unknown_id(self, client):
        response = client.patch("/api/images/999", json={"title": "x"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Image not found"

    def test_id_beyond_64_bits_is_not_found(self, client):
        upload(client, "a")

        response = client.patch(f"/api/images/{HUGE_ID}", json={"title": "x"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Image not found"

    def test_null_description_clears_it(self, client):
        image_id = upload(client, "a").json()["id"]

        response = client.patch(f"/api/images/{image_id}", json={"description": None})

        assert response.status_code == 200
        assert response.json()["description"] is None

    def test_omitted_description_is_kept(self, client):
        image_id = upload(client, "a").json()["id"]

        response = client.patch(f"/api/images/{image_id}", json={"title": "b"})

        assert response.json()["description"] == "a description"


class TestDeleteImage:
    """Test cases for DELETE /api/images/{id}."""

    def test_delete_removes_record_and_file(self, client, settings):
        created = [upload(client, t).json() for t in ("a", "b", "c")]
        filename = created[1]["imageUrl"].rsplit("/", 1)[-1]

        response = client.delete(f"/api/images/{created[1]['id']}")

        assert response.status_code == 200
        assert response.json() == {"message": "Image deleted successfully"}
        images = client.get("/api/images").json()
        assert created[1]["id"] not in [i["id"] for i in images]
        assert not (settings.upload_dir / filename).exists()
        assert [i["sequence"] for i in images] == [0, 1]

    def test_delete_with_missing_file_still_succeeds(self, client, settings):
        created = upload(client, "a").json()
        (settings.upload_dir / created["imageUrl"].rsplit("/", 1)[-1]).unlink()

        assert client.delete(f"/api/images/{created['id']}").status_code == 200

    def test_unknown_id(self, client):
        assert client.delete("/api/images/999").status_code == 404

    def test_id_beyond_64_bits_is_not_found(self, client):
        upload(client, "a")

        response = client.delete(f"/api/images/{HUGE_ID}")

        assert response.status_code == 404
        assert len(client.get("/api/images").json()) == 1


class TestAppLifecycle:
    """Test cases for startup behaviour and auxiliary endpoints."""

    def test_factory_reads_environment(self, monkeypatch, tmp_path):
        """`uvicorn main:create_app --factory` calls create_app with no arguments."""
        monkeypatch.setattr("utils.config.load_dotenv", lambda: None)
        monkeypatch.setenv("DATABASE_DIR", str(tmp_path / "env-db"))
        monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "env-uploads"))

        with TestClient(create_app()) as env_client:
            assert env_client.get("/health").json()["ok"] is True
            assert upload(env_client).status_code == 201

        assert (tmp_path / "env-db" / "app.db").exists()
        assert len(list((tmp_path / "env-uploads").iterdir())) == 1

    def test_health(self, client):
        assert client.get("/health").json() == {"ok": True, "db_initialized": True, "uploads_ready": True}

    def test_records_survive_restart_and_orphans_are_swept(self, settings):
        with TestClient(create_app(settings)) as first:
            kept = upload(first, "kept").json()
        orphan = settings.upload_dir / "123-orphan.png"
        orphan.write_bytes(b"x")

        with TestClient(create_app(settings)) as second:
            assert titles(second) == ["kept"]

        assert not orphan.exists()
        assert (settings.upload_dir / kept["imageUrl"].rsplit("/", 1)[-1]).exists()

    def test_cors_origin_allowed(self, client, settings):
        response = client.get("/api/images", headers={"Origin": settings.cors_origin})

        assert response.headers["access-control-allow-origin"] == settings.cors_origin
