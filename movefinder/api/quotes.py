import math
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional

from movefinder.db.session import get_db
from movefinder.models.customer import Customer
from movefinder.models.detected_item import DetectedItem
from movefinder.models.media_file import MediaFile
from movefinder.models.quote import Quote
from movefinder.models.quote_history import QuoteHistory
from movefinder.schemas.pricing import EstimateRequest, EstimateResponse, ItemLine
from movefinder.schemas.quote import (
    QuoteCreate, QuoteUpdate, QuoteOut, QuoteCreatedOut, QuoteDetailOut, QuoteListOut,
    ItemsIn, ItemsAddedOut, HistoryOut, Pagination, SubmitOut,
)
from movefinder.core.enums import HistorySource, MoveType, QuoteStatus
from movefinder.core.guards import check_status_transition, check_submittable
from movefinder.core.history import record_change
from movefinder.core.metrics import quotes_created, quote_estimate
from movefinder.core.rate_limit import enforce_quote_rate_limit
from movefinder.core.response_builders import (
    build_quote_response, build_quote_summary, build_customer_response,
    build_item_response_list, build_media_response_list, build_history_response, build_email_data,
)
from movefinder.services.email import EmailDeliveryError, EmailService, get_email_service
from movefinder.services.pricing import (
    get_pricing_breakdown, estimate_move_duration, estimate_crew_cost, get_moving_tips, trip_distance,
    round_half_up,
)
from movefinder.services.quotes import (
    get_quote_or_404, get_customer, find_or_create_customer, load_detected_items, load_media_files,
    count_children, add_detected_items, reprice_with_catalog,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/quotes", tags=["quotes"])

COST_RELEVANT_FIELDS = {"move_type", "move_date", "estimated_size", "from_address", "to_address"}
NULLABLE_FIELDS = {"to_address", "special_items", "notes", "final_cost"}

STATUS_UPDATE_MESSAGES = {
    QuoteStatus.QUOTED: "Your moving quote is ready for review.",
    QuoteStatus.BOOKED: "Great news! Your move is booked.",
    QuoteStatus.COMPLETED: "Your move is complete. Thanks for choosing Austin Move Finder!",
    QuoteStatus.CANCELLED: "Your quote request has been cancelled.",
}


def _quote_detail(quote: Quote, customer: Customer, items: list, media: list) -> dict:
    return {
        "quote": build_quote_response(quote),
        "customer": build_customer_response(customer),
        "detected_items": build_item_response_list(items),
        "media_files": build_media_response_list(media),
    }


@router.post("", response_model=QuoteCreatedOut, status_code=201, dependencies=[Depends(enforce_quote_rate_limit)])
async def create_quote(
    payload: QuoteCreate,
    db: AsyncSession = Depends(get_db),
):
    customer = await find_or_create_customer(db, payload.name, payload.email, payload.phone)

    quote = Quote(
        customer_id=customer.id,
        move_type=payload.move_type.value,
        move_date=payload.move_date,
        from_address=payload.from_address,
        to_address=payload.to_address,
        estimated_size=payload.estimated_size.value,
        special_items=payload.special_items,
        notes=payload.notes,
        status=QuoteStatus.PENDING,
    )
    db.add(quote)
    await db.flush()

    estimated_cost = await reprice_with_catalog(db, quote)

    await db.commit()
    await db.refresh(quote)
    await db.refresh(customer)

    quotes_created.labels(move_type=quote.move_type).inc()
    logger.info(f"Quote {quote.id} created for customer {customer.id}: {estimated_cost}")

    return QuoteCreatedOut(
        quote=build_quote_response(quote),
        customer=build_customer_response(customer),
        estimated_cost=estimated_cost,
    )


@router.get("", response_model=QuoteListOut)
async def list_quotes(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[QuoteStatus] = Query(None),
    move_type: Optional[MoveType] = Query(None),
    customer_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    filters = []
    if status:
        filters.append(Quote.status == status)
    if move_type:
        filters.append(Quote.move_type == move_type.value)
    if customer_id:
        filters.append(Quote.customer_id == customer_id)

    count_q = select(func.count(Quote.id))
    q = select(Quote, Customer).join(Customer, Quote.customer_id == Customer.id)
    for condition in filters:
        count_q = count_q.where(condition)
        q = q.where(condition)

    total = (await db.execute(count_q)).scalar_one()

    q = q.order_by(Quote.created_at.desc(), Quote.id.desc()).limit(limit).offset((page - 1) * limit)
    rows = (await db.execute(q)).all()

    quote_ids = [quote.id for quote, _ in rows]
    item_counts = await count_children(db, DetectedItem, quote_ids)
    media_counts = await count_children(db, MediaFile, quote_ids)

    return QuoteListOut(
        quotes=[
            build_quote_summary(quote, customer, item_counts.get(quote.id, 0), media_counts.get(quote.id, 0))
            for quote, customer in rows
        ],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.post("/estimate", response_model=EstimateResponse)
async def estimate_quote(payload: EstimateRequest):
    """Price a move without storing anything."""
    items = [ItemLine(item.label, item.quantity) for item in payload.items]
    distance = trip_distance(payload.move_type)

    breakdown = get_pricing_breakdown(payload, items)
    duration = estimate_move_duration(items, distance, payload.move_type)
    quote_estimate.labels(pricing_path="estimate").observe(breakdown.total)

    return EstimateResponse(
        estimated_cost=breakdown.total,
        breakdown=breakdown,
        duration=duration,
        crew=estimate_crew_cost(duration, payload.move_type, distance),
        tips=get_moving_tips(items),
    )


@router.get("/{quote_id}", response_model=QuoteDetailOut)
async def get_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
):
    quote = await get_quote_or_404(db, quote_id)
    customer = await get_customer(db, quote.customer_id)
    items = await load_detected_items(db, quote.id)
    media = await load_media_files(db, quote.id)
    return QuoteDetailOut(**_quote_detail(quote, customer, items, media))


@router.put("/{quote_id}", response_model=QuoteOut)
async def update_quote(
    quote_id: int,
    payload: QuoteUpdate,
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Update a quote"""
    quote = await get_quote_or_404(db, quote_id)

    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    for field in ("estimated_cost", "final_cost"):
        if changes.get(field) is not None:
            changes[field] = round_half_up(changes[field])

    old_status = quote.status
    if "status" in changes:
        check_status_transition(old_status, changes["status"])

    for field, value in changes.items():
        if field in ("move_type", "estimated_size"):
            value = value.value
        record_change(db, quote.id, field, getattr(quote, field), value, HistorySource.API)
        setattr(quote, field, value)

    if COST_RELEVANT_FIELDS & changes.keys():
        await reprice_with_catalog(db, quote)

    await db.commit()
    await db.refresh(quote)

    if quote.status != old_status:
        await _notify_status_change(db, email_service, quote)

    return build_quote_response(quote)


async def _notify_status_change(db: AsyncSession, email_service: EmailService, quote: Quote) -> None:
    customer = await get_customer(db, quote.customer_id)
    data = build_email_data(quote, customer, [], 0)
    try:
        await email_service.send_quote_update(data, STATUS_UPDATE_MESSAGES[quote.status])
    except EmailDeliveryError as e:
        logger.warning(f"Status update email for quote {quote.id} not delivered: {e}")


@router.get("/{quote_id}/history", response_model=List[HistoryOut])
async def get_quote_history(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
):
    await get_quote_or_404(db, quote_id)
    res = await db.execute(
        select(QuoteHistory)
        .where(QuoteHistory.quote_id == quote_id)
        .order_by(QuoteHistory.id.desc())
    )
    return [build_history_response(entry) for entry in res.scalars().all()]


@router.post("/{quote_id}/items", response_model=ItemsAddedOut)
async def add_quote_items(
    quote_id: int,
    payload: ItemsIn,
    db: AsyncSession = Depends(get_db),
):
    quote = await get_quote_or_404(db, quote_id)

    added = add_detected_items(
        db, quote, [(item.item_label, item.confidence_score, item.quantity) for item in payload.items]
    )
    await db.flush()
    updated_cost = await reprice_with_catalog(db, quote)
    await db.commit()

    items = await load_detected_items(db, quote.id)
    return ItemsAddedOut(
        items_added=len(added),
        detected_items=build_item_response_list(items),
        updated_cost=updated_cost,
    )


@router.post("/{quote_id}/submit", response_model=SubmitOut)
async def submit_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    quote = await get_quote_or_404(db, quote_id)
    check_submittable(quote.status)

    if quote.status != QuoteStatus.QUOTED:
        record_change(db, quote.id, "status", quote.status, QuoteStatus.QUOTED, HistorySource.SUBMISSION)
        quote.status = QuoteStatus.QUOTED
    await db.commit()
    await db.refresh(quote)

    customer = await get_customer(db, quote.customer_id)
    items = await load_detected_items(db, quote.id)
    media = await load_media_files(db, quote.id)
    detail = _quote_detail(quote, customer, items, media)

    email_data = build_email_data(quote, customer, items, len(media))
    try:
        await email_service.send_quote_notification(email_data)
        await email_service.send_customer_confirmation(email_data)
    except EmailDeliveryError as e:
        logger.error(f"Quote {quote.id} submitted but emails failed: {e}")
        return SubmitOut(
            **detail,
            message="Quote submitted successfully, but email notification failed",
            warning="Please contact customer directly",
        )

    logger.info(f"Quote {quote.id} submitted")
    return SubmitOut(**detail, message="Quote submitted successfully and emails sent")
