from pydantic import BaseModel, Field
from typing import List, NamedTuple, Optional
from datetime import date

from movefinder.core.enums import MoveType, HomeSize


class ItemLine(NamedTuple):
    label: str
    quantity: int = 1


class MoveDetails(BaseModel):
    move_type: MoveType
    estimated_size: Optional[HomeSize] = None
    move_date: Optional[date] = None
    from_address: str = ""
    to_address: Optional[str] = ""


class EstimateItem(BaseModel):
    label: str = Field(min_length=1, max_length=120)
    quantity: int = Field(default=1, ge=1)


class EstimateRequest(MoveDetails):
    items: List[EstimateItem] = []


class ItemCost(BaseModel):
    label: str
    quantity: int
    cost: int


class Adjustment(BaseModel):
    name: str
    multiplier: float = 1.0
    surcharge: float = 0.0


class PricingBreakdown(BaseModel):
    items: List[ItemCost] = []
    items_total: int = 0
    size_base_price: Optional[int] = None
    setup_fee: int
    subtotal: float
    location_adjustments: List[Adjustment] = []
    seasonal_adjustments: List[Adjustment] = []
    total: int


class DurationEstimate(BaseModel):
    estimated_hours: float
    base: float
    items: float
    specialty: float
    travel: float


class CrewEstimate(BaseModel):
    movers: int
    hourly_rate: float
    labor_cost: int
    truck_cost: int


class EstimateResponse(BaseModel):
    estimated_cost: int
    breakdown: PricingBreakdown
    duration: DurationEstimate
    crew: CrewEstimate
    tips: List[str]
