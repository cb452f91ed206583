"""Quote persistence helpers shared by the quote and upload routes."""
import logging
from typing import Iterable, List, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from movefinder.core.enums import HistorySource, MoveType
from movefinder.core.guards import check_not_found
from movefinder.core.history import record_cost_change
from movefinder.core.metrics import quote_estimate, track_db_operation
from movefinder.models.customer import Customer
from movefinder.models.detected_item import DetectedItem
from movefinder.models.media_file import MediaFile
from movefinder.models.quote import Quote
from movefinder.schemas.pricing import ItemLine, MoveDetails
from movefinder.services.pricing import calculate_item_cost, calculate_total_quote, trip_distance
from movefinder.services.pricing_rules import calculate_rule_based_cost

logger = logging.getLogger(__name__)


async def get_quote_or_404(db: AsyncSession, quote_id: int) -> Quote:
    res = await db.execute(select(Quote).where(Quote.id == quote_id))
    quote = res.scalars().first()
    check_not_found(quote, "Quote", quote_id)
    return quote


async def get_customer(db: AsyncSession, customer_id: int) -> Customer:
    res = await db.execute(select(Customer).where(Customer.id == customer_id))
    return res.scalars().one()


@track_db_operation("select", "customers")
async def find_or_create_customer(db: AsyncSession, name: str, email: str, phone: str) -> Customer:
    """Customers are keyed by email; an existing record is reused as is.

    Must run before anything else is added to the session: losing an insert
    race to a concurrent request rolls the session back and re-reads the row.
    """
    res = await db.execute(select(Customer).where(Customer.email == email))
    customer = res.scalars().first()
    if customer:
        return customer

    customer = Customer(name=name, email=email, phone=phone)
    db.add(customer)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.info(f"Customer {email} was created concurrently, reusing it")
        res = await db.execute(select(Customer).where(Customer.email == email))
        customer = res.scalars().one()
    return customer


async def load_detected_items(db: AsyncSession, quote_id: int) -> List[DetectedItem]:
    res = await db.execute(
        select(DetectedItem)
        .where(DetectedItem.quote_id == quote_id)
        .order_by(DetectedItem.confidence_score.desc(), DetectedItem.id)
    )
    return list(res.scalars().all())


async def load_media_files(db: AsyncSession, quote_id: int) -> List[MediaFile]:
    res = await db.execute(
        select(MediaFile).where(MediaFile.quote_id == quote_id).order_by(MediaFile.id)
    )
    return list(res.scalars().all())


async def count_children(db: AsyncSession, model, quote_ids: List[int]) -> dict:
    if not quote_ids:
        return {}
    res = await db.execute(
        select(model.quote_id, func.count(model.id))
        .where(model.quote_id.in_(quote_ids))
        .group_by(model.quote_id)
    )
    return dict(res.all())


def move_details(quote: Quote) -> MoveDetails:
    return MoveDetails(
        move_type=quote.move_type,
        estimated_size=quote.estimated_size,
        move_date=quote.move_date,
        from_address=quote.from_address or "",
        to_address=quote.to_address or "",
    )


def add_detected_items(
    db: AsyncSession,
    quote: Quote,
    items: Iterable[Tuple[str, float, int]],
) -> List[DetectedItem]:
    """Attach (label, confidence, quantity) rows with their calculator cost."""
    distance = trip_distance(quote.move_type)
    is_commercial = quote.move_type == MoveType.COMMERCIAL

    added = []
    for label, confidence, quantity in items:
        quantity = quantity or 1
        item = DetectedItem(
            quote_id=quote.id,
            item_label=label,
            confidence_score=confidence,
            quantity=quantity,
            estimated_cost=calculate_item_cost(label, quantity, distance, is_commercial),
        )
        db.add(item)
        added.append(item)
    return added


async def reprice_with_catalog(db: AsyncSession, quote: Quote) -> int:
    """Re-aggregate the quote from its detected items through the catalog calculator."""
    items = await load_detected_items(db, quote.id)
    total = calculate_total_quote(
        move_details(quote),
        [ItemLine(item.item_label, item.quantity) for item in items],
    )
    record_cost_change(db, quote, total, HistorySource.CATALOG_PRICING)
    quote_estimate.labels(pricing_path="catalog").observe(total)
    return total


async def reprice_with_rules(db: AsyncSession, quote: Quote) -> int:
    """Re-estimate the quote through the stored pricing rules."""
    total = await calculate_rule_based_cost(db, quote)
    record_cost_change(db, quote, total, HistorySource.RULE_PRICING)
    quote_estimate.labels(pricing_path="rules").observe(total)
    logger.info(f"Quote {quote.id} re-estimated from pricing rules: {total}")
    return total
