import io
import pytest
from fastapi import HTTPException
from PIL import Image
from movefinder.api.upload import safe_upload_path
from movefinder.core.config import settings
from movefinder.main import app
from movefinder.schemas.detection import DetectedObject
from movefinder.services.detection import DEMO_OBJECTS, get_detection_service


def _png_bytes(size=(640, 480)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (120, 180, 90)).save(buf, format="PNG")
    return buf.getvalue()


class FixedDetector:
    def __init__(self, objects):
        self.objects = objects
        self.images = []

    async def detect_objects(self, image):
        self.images.append(image)
        return [obj.model_copy() for obj in self.objects]

    async def detect_objects_from_video(self, video):
        return []


@pytest.fixture
def fixed_detector():
    detector = FixedDetector([
        DetectedObject(label="couch", score=0.9, quantity=2),
        DetectedObject(label="tv", score=0.8),
    ])
    app.dependency_overrides[get_detection_service] = lambda: detector
    return detector


@pytest.mark.integration
class TestUpload:

    async def test_image_upload_detects_and_reprices(self, test_client, create_quote_factory, upload_dir, fixed_detector):
        created = await create_quote_factory()
        quote_id = created["quote"]["id"]

        response = await test_client.post(
            f"/api/upload/{quote_id}",
            files={"media": ("living-room.png", _png_bytes(), "image/png")},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["total_detected_items"] == 2
        stored = data["files"][0]["media_file"]
        assert stored["original_name"] == "living-room.png"
        assert stored["filename"].endswith(".png")
        assert stored["processed"] is True
        assert (upload_dir / stored["filename"]).is_file()

        # image was re-encoded before detection
        assert fixed_detector.images[0][:3] == b"\xff\xd8\xff"

        # couch x2: 85*2*1.2*1.3 = 265.2 -> 265, tv: 45*1.2*1.1 = 59.4 -> 59; no rules apply midweek in November
        assert data["updated_cost"] == 324

        detail = (await test_client.get(f"/api/quotes/{quote_id}")).json()
        assert detail["quote"]["estimated_cost"] == 324
        assert {item["item_label"]: item["quantity"] for item in detail["detected_items"]} == {"couch": 2, "tv": 1}
        assert len(detail["media_files"]) == 1

        history = (await test_client.get(f"/api/quotes/{quote_id}/history")).json()
        assert history[0]["changed_by"] == "rule_pricing"

    async def test_demo_detection_without_api_key(self, test_client, create_quote_factory):
        created = await create_quote_factory()
        response = await test_client.post(
            f"/api/upload/{created['quote']['id']}",
            files=[
                ("media", ("a.png", _png_bytes(), "image/png")),
                ("media", ("b.png", _png_bytes(), "image/png")),
            ],
        )
        assert response.status_code == 200

        data = response.json()
        demo_labels = {obj.label for obj in DEMO_OBJECTS}
        assert len(data["files"]) == 2
        for processed in data["files"]:
            assert 2 <= len(processed["detected_objects"]) <= 4
            assert {obj["label"] for obj in processed["detected_objects"]} <= demo_labels
        assert data["updated_cost"] > 0

    async def test_video_upload(self, test_client, create_quote_factory, fixed_detector):
        created = await create_quote_factory()
        response = await test_client.post(
            f"/api/upload/{created['quote']['id']}",
            files={"media": ("tour.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total_detected_items"] == 0
        assert data["updated_cost"] is None

    async def test_rejects_non_media(self, test_client, create_quote_factory, upload_dir):
        created = await create_quote_factory()
        response = await test_client.post(
            f"/api/upload/{created['quote']['id']}",
            files={"media": ("notes.pdf", b"%PDF-1.4", "application/pdf")},
        )
        assert response.status_code == 400
        assert not upload_dir.exists() or not any(upload_dir.iterdir())

    async def test_rejects_oversized_file(self, test_client, create_quote_factory, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 10)
        created = await create_quote_factory()
        response = await test_client.post(
            f"/api/upload/{created['quote']['id']}",
            files={"media": ("big.png", _png_bytes(), "image/png")},
        )
        assert response.status_code == 400
        assert "too large" in response.json()["detail"]

    async def test_rejects_too_many_files(self, test_client, create_quote_factory):
        created = await create_quote_factory()
        files = [("media", (f"{i}.png", b"x", "image/png")) for i in range(settings.MAX_UPLOAD_FILES + 1)]
        response = await test_client.post(f"/api/upload/{created['quote']['id']}", files=files)
        assert response.status_code == 400

    async def test_requires_files(self, test_client, create_quote_factory):
        created = await create_quote_factory()
        response = await test_client.post(f"/api/upload/{created['quote']['id']}", data={"note": "nothing"})
        assert response.status_code == 400

    async def test_unknown_quote(self, test_client, upload_dir):
        response = await test_client.post(
            "/api/upload/9999",
            files={"media": ("a.png", _png_bytes(), "image/png")},
        )
        assert response.status_code == 404


@pytest.mark.integration
class TestMediaFiles:

    async def _upload(self, test_client, create_quote_factory):
        created = await create_quote_factory()
        quote_id = created["quote"]["id"]
        response = await test_client.post(
            f"/api/upload/{quote_id}",
            files={"media": ("kitchen.png", _png_bytes(), "image/png")},
        )
        return quote_id, response.json()["files"][0]["media_file"]["filename"]

    async def test_list_serve_and_delete(self, test_client, create_quote_factory, upload_dir, fixed_detector):
        quote_id, filename = await self._upload(test_client, create_quote_factory)

        listing = (await test_client.get(f"/api/upload/{quote_id}/files")).json()
        assert listing["quote_id"] == quote_id
        assert [f["filename"] for f in listing["files"]] == [filename]

        served = await test_client.get(f"/api/upload/file/{filename}")
        assert served.status_code == 200
        assert served.headers["content-type"] == "image/png"
        assert served.content == _png_bytes()

        deleted = await test_client.delete(f"/api/upload/file/{filename}")
        assert deleted.status_code == 200
        assert not (upload_dir / filename).exists()

        listing = (await test_client.get(f"/api/upload/{quote_id}/files")).json()
        assert listing["files"] == []

    async def test_missing_file(self, test_client, upload_dir):
        assert (await test_client.get("/api/upload/file/nope.png")).status_code == 404
        assert (await test_client.delete("/api/upload/file/nope.png")).status_code == 404

    async def test_files_for_unknown_quote(self, test_client):
        assert (await test_client.get("/api/upload/9999/files")).status_code == 404

    @pytest.mark.parametrize("name", ["..", "../secret.txt", "../../etc/passwd", "/etc/passwd"])
    def test_path_traversal_is_denied(self, upload_dir, name):
        with pytest.raises(HTTPException) as exc:
            safe_upload_path(name)
        assert exc.value.status_code == 403

    def test_plain_name_resolves_inside_upload_dir(self, upload_dir):
        assert safe_upload_path("photo.png") == (upload_dir / "photo.png").resolve()
