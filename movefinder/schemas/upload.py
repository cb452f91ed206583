from pydantic import BaseModel
from typing import List, Optional
from movefinder.schemas.detection import DetectedObject
from movefinder.schemas.quote import MediaFileOut


class ProcessedFile(BaseModel):
    media_file: MediaFileOut
    detected_objects: List[DetectedObject] = []


class UploadOut(BaseModel):
    files: List[ProcessedFile]
    total_detected_items: int
    updated_cost: Optional[int] = None
    message: str


class MediaListOut(BaseModel):
    quote_id: int
    files: List[MediaFileOut]
