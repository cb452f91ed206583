from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import date, datetime
from movefinder.core.enums import MoveType, HomeSize, QuoteStatus


class QuoteCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    phone: str = Field(min_length=1, max_length=40)
    move_type: MoveType
    move_date: date
    from_address: str = Field(min_length=1)
    to_address: Optional[str] = None
    estimated_size: HomeSize
    special_items: Optional[str] = None
    notes: Optional[str] = None


class QuoteUpdate(BaseModel):
    move_type: Optional[MoveType] = None
    move_date: Optional[date] = None
    from_address: Optional[str] = Field(default=None, min_length=1)
    to_address: Optional[str] = None
    estimated_size: Optional[HomeSize] = None
    special_items: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[QuoteStatus] = None
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    final_cost: Optional[float] = Field(default=None, ge=0)


class CustomerOut(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    created_at: datetime


class QuoteOut(BaseModel):
    id: int
    customer_id: int
    move_type: MoveType
    move_date: date
    from_address: str
    to_address: Optional[str] = None
    estimated_size: HomeSize
    special_items: Optional[str] = None
    notes: Optional[str] = None
    status: QuoteStatus
    estimated_cost: Optional[float] = None
    final_cost: Optional[float] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class QuoteSummaryOut(QuoteOut):
    customer_name: str
    customer_email: str
    items_count: int = 0
    media_count: int = 0


class DetectedItemIn(BaseModel):
    item_label: str = Field(min_length=1, max_length=120)
    confidence_score: float = Field(ge=0, le=1)
    quantity: int = Field(default=1, ge=1)


class ItemsIn(BaseModel):
    items: List[DetectedItemIn]


class DetectedItemOut(BaseModel):
    id: int
    quote_id: int
    item_label: str
    confidence_score: float
    quantity: int
    estimated_cost: Optional[float] = None
    created_at: datetime


class MediaFileOut(BaseModel):
    id: int
    quote_id: int
    filename: str
    original_name: str
    file_type: str
    file_size: int
    processed: bool
    created_at: datetime


class HistoryOut(BaseModel):
    id: int
    field_name: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    changed_by: str
    created_at: datetime


class QuoteCreatedOut(BaseModel):
    quote: QuoteOut
    customer: CustomerOut
    estimated_cost: int


class QuoteDetailOut(BaseModel):
    quote: QuoteOut
    customer: CustomerOut
    detected_items: List[DetectedItemOut]
    media_files: List[MediaFileOut]


class ItemsAddedOut(BaseModel):
    items_added: int
    detected_items: List[DetectedItemOut]
    updated_cost: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class QuoteListOut(BaseModel):
    quotes: List[QuoteSummaryOut]
    pagination: Pagination


class SubmitOut(QuoteDetailOut):
    message: str
    warning: Optional[str] = None
