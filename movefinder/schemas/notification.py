from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime


class QuoteEmailData(BaseModel):
    quote_id: int
    customer_name: str
    customer_email: str
    customer_phone: str
    move_type: str
    move_date: date
    from_address: str
    to_address: str = ""
    estimated_size: str
    special_items: str = ""
    notes: str = ""
    detected_items: str = ""
    total_cost: Optional[float] = None
    media_file_count: int = 0
    submitted_at: datetime
