from datetime import datetime
from typing import List

from movefinder.models.customer import Customer
from movefinder.models.detected_item import DetectedItem
from movefinder.models.media_file import MediaFile
from movefinder.models.quote import Quote
from movefinder.models.quote_history import QuoteHistory
from movefinder.schemas.notification import QuoteEmailData
from movefinder.schemas.quote import (
    CustomerOut, DetectedItemOut, HistoryOut, MediaFileOut, QuoteOut, QuoteSummaryOut,
)


def build_quote_response(quote: Quote) -> QuoteOut:
    return QuoteOut(
        id=quote.id,
        customer_id=quote.customer_id,
        move_type=quote.move_type,
        move_date=quote.move_date,
        from_address=quote.from_address,
        to_address=quote.to_address,
        estimated_size=quote.estimated_size,
        special_items=quote.special_items,
        notes=quote.notes,
        status=quote.status,
        estimated_cost=quote.estimated_cost,
        final_cost=quote.final_cost,
        created_at=quote.created_at,
        updated_at=quote.updated_at,
    )


def build_quote_summary(quote: Quote, customer: Customer, items_count: int, media_count: int) -> QuoteSummaryOut:
    return QuoteSummaryOut(
        **build_quote_response(quote).model_dump(),
        customer_name=customer.name,
        customer_email=customer.email,
        items_count=items_count,
        media_count=media_count,
    )


def build_customer_response(customer: Customer) -> CustomerOut:
    return CustomerOut(
        id=customer.id,
        name=customer.name,
        email=customer.email,
        phone=customer.phone,
        created_at=customer.created_at,
    )


def build_item_response(item: DetectedItem) -> DetectedItemOut:
    return DetectedItemOut(
        id=item.id,
        quote_id=item.quote_id,
        item_label=item.item_label,
        confidence_score=item.confidence_score,
        quantity=item.quantity,
        estimated_cost=item.estimated_cost,
        created_at=item.created_at,
    )


def build_media_response(media: MediaFile) -> MediaFileOut:
    return MediaFileOut(
        id=media.id,
        quote_id=media.quote_id,
        filename=media.filename,
        original_name=media.original_name,
        file_type=media.file_type,
        file_size=media.file_size,
        processed=media.processed,
        created_at=media.created_at,
    )


def build_history_response(entry: QuoteHistory) -> HistoryOut:
    return HistoryOut(
        id=entry.id,
        field_name=entry.field_name,
        old_value=entry.old_value,
        new_value=entry.new_value,
        changed_by=entry.changed_by,
        created_at=entry.created_at,
    )


def build_item_response_list(items: list) -> List[DetectedItemOut]:
    return [build_item_response(item) for item in items]


def build_media_response_list(files: list) -> List[MediaFileOut]:
    return [build_media_response(media) for media in files]


def build_email_data(quote: Quote, customer: Customer, items: list, media_count: int) -> QuoteEmailData:
    return QuoteEmailData(
        quote_id=quote.id,
        customer_name=customer.name,
        customer_email=customer.email,
        customer_phone=customer.phone,
        move_type=str(quote.move_type),
        move_date=quote.move_date,
        from_address=quote.from_address,
        to_address=quote.to_address or "",
        estimated_size=str(quote.estimated_size),
        special_items=quote.special_items or "",
        notes=quote.notes or "",
        detected_items=", ".join(f"{item.item_label} ({item.quantity or 1}x)" for item in items),
        total_cost=quote.estimated_cost,
        media_file_count=media_count,
        submitted_at=datetime.now(),
    )
