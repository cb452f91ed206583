"""Hosted object detection for household items in uploaded photos.

Detection never fails from the caller's point of view: a missing API key,
an HTTP error, a timeout or an unexpected payload all yield a random
sample of demo detections instead.
"""
import io
import random
import logging
from typing import Dict, List, Optional

import httpx
from PIL import Image, UnidentifiedImageError

from movefinder.core.config import settings
from movefinder.core.metrics import detection_requests
from movefinder.schemas.detection import BoundingBox, DetectedObject, ServiceStatus

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "your_huggingface_api_key_here"

MAX_IMAGE_SIZE = (800, 600)
JPEG_QUALITY = 90

DEMO_OBJECTS = [
    DetectedObject(label="couch", score=0.95, box=BoundingBox(xmax=100, ymax=100)),
    DetectedObject(label="dining table", score=0.88, box=BoundingBox(xmax=100, ymax=100)),
    DetectedObject(label="chair", score=0.92, box=BoundingBox(xmax=100, ymax=100)),
    DetectedObject(label="tv", score=0.85, box=BoundingBox(xmax=100, ymax=100)),
    DetectedObject(label="refrigerator", score=0.91, box=BoundingBox(xmax=100, ymax=100)),
]

# DETR (COCO) labels -> moving item vocabulary. Anything else is dropped.
LABEL_MAPPINGS = {
    # Furniture
    "couch": "couch",
    "sofa": "couch",
    "chair": "chair",
    "dining table": "dining table",
    "table": "dining table",
    "bed": "bed",
    "bench": "chair",

    # Appliances
    "refrigerator": "refrigerator",
    "microwave": "microwave",
    "oven": "oven",
    "toaster": "toaster",
    "sink": "sink",
    "toilet": "toilet",

    # Electronics
    "tv": "tv",
    "television": "tv",
    "laptop": "laptop",
    "computer": "laptop",
    "cell phone": "laptop",
    "remote": "laptop",

    # Personal items
    "suitcase": "suitcase",
    "handbag": "suitcase",
    "backpack": "suitcase",
    "book": "book",

    # Fragile items
    "vase": "vase",
    "wine glass": "wine glass",
    "cup": "wine glass",
    "bottle": "wine glass",
    "potted plant": "potted plant",
    "plant": "potted plant",

    # Kitchen items
    "bowl": "wine glass",
    "knife": "wine glass",
    "spoon": "wine glass",
    "fork": "wine glass",

    # Decorative and wall-mounted
    "clock": "vase",
    "picture frame": "vase",
    "mirror": "tv",
    "painting": "tv",
}


def map_label(api_label: str) -> Optional[str]:
    return LABEL_MAPPINGS.get((api_label or "").strip().lower())


def deduplicate_objects(objects: List[DetectedObject]) -> List[DetectedObject]:
    """Merge detections per label: best score, occurrence count as quantity, first box."""
    grouped: Dict[str, DetectedObject] = {}
    for obj in objects:
        existing = grouped.get(obj.label)
        if existing is None:
            grouped[obj.label] = DetectedObject(label=obj.label, score=obj.score, quantity=1, box=obj.box)
            continue
        existing.score = max(existing.score, obj.score)
        existing.quantity += 1
    return list(grouped.values())


def generate_demo_objects() -> List[DetectedObject]:
    count = random.randint(2, 4)
    return [obj.model_copy(deep=True) for obj in random.sample(DEMO_OBJECTS, count)]


def prepare_image(data: bytes) -> bytes:
    """Shrink an image to fit 800x600 and re-encode it as JPEG.

    Bytes Pillow cannot decode are returned unchanged so the hosted model
    can still try them.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.thumbnail(MAX_IMAGE_SIZE)
            out = io.BytesIO()
            img.convert("RGB").save(out, format="JPEG", quality=JPEG_QUALITY)
            return out.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Image preparation skipped: {e}")
        return data


class ObjectDetectionService:

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        confidence_threshold: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.HUGGINGFACE_API_KEY
        self.api_url = api_url or settings.DETECTION_API_URL
        self.confidence_threshold = (
            confidence_threshold
            if confidence_threshold is not None
            else settings.DETECTION_CONFIDENCE_THRESHOLD
        )
        self.timeout = timeout or settings.DETECTION_TIMEOUT
        self._transport = transport

    @property
    def demo_mode(self) -> bool:
        return not self.api_key or self.api_key == PLACEHOLDER_API_KEY

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _parse_results(self, results) -> List[DetectedObject]:
        if not isinstance(results, list):
            raise ValueError(f"Unexpected detection payload: {type(results).__name__}")

        objects = []
        for raw in results:
            score = float(raw.get("score", 0))
            if score < self.confidence_threshold:
                continue
            label = map_label(raw.get("label", ""))
            if not label:
                continue
            box = BoundingBox(**raw["box"]) if isinstance(raw.get("box"), dict) else None
            objects.append(DetectedObject(label=label, score=score, box=box))

        return deduplicate_objects(objects)

    async def detect_objects(self, image: bytes) -> List[DetectedObject]:
        if self.demo_mode:
            logger.info("No detection API key configured - using demo detections")
            detection_requests.labels(mode="demo").inc()
            return generate_demo_objects()

        try:
            async with self._client() as client:
                response = await client.post(
                    self.api_url,
                    content=image,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/octet-stream",
                    },
                )
                response.raise_for_status()
                objects = self._parse_results(response.json())
            detection_requests.labels(mode="api").inc()
            logger.info(f"Detected {len(objects)} item types")
            return objects
        except httpx.TimeoutException:
            logger.warning(f"Object detection timed out after {self.timeout}s - using demo detections")
        except Exception as e:
            logger.error(f"Object detection API error: {e} - using demo detections")

        detection_requests.labels(mode="fallback").inc()
        return generate_demo_objects()

    async def detect_objects_from_video(self, video: bytes) -> List[DetectedObject]:
        # TODO: sample key frames with ffmpeg and merge per-frame detections
        logger.info(f"Video detection ({len(video)} bytes) - using demo detections")
        detection_requests.labels(mode="demo").inc()
        return generate_demo_objects()

    async def health_check(self) -> ServiceStatus:
        if self.demo_mode:
            return ServiceStatus(status="demo", message="Running in demo mode - no API key configured")

        try:
            async with self._client() as client:
                response = await client.get(
                    self.api_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            # the inference endpoint only accepts POST
            if response.is_success or response.status_code == 405:
                return ServiceStatus(status="healthy", message="Object detection service is available")
            return ServiceStatus(status="error", message=f"API returned status {response.status_code}")
        except Exception as e:
            return ServiceStatus(status="error", message=f"API connection failed: {e}")


def get_detection_service() -> ObjectDetectionService:
    return ObjectDetectionService()
