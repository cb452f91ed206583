from pydantic import BaseModel
from typing import Optional


class BoundingBox(BaseModel):
    xmin: float = 0
    ymin: float = 0
    xmax: float = 0
    ymax: float = 0


class DetectedObject(BaseModel):
    label: str
    score: float
    quantity: int = 1
    box: Optional[BoundingBox] = None


class ServiceStatus(BaseModel):
    status: str
    message: str
