"""Quote change log"""
import logging
from datetime import date
from enum import Enum
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from movefinder.core.enums import HistorySource
from movefinder.models.quote_history import QuoteHistory

logger = logging.getLogger(__name__)


def _stringify(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def record_change(
    db: AsyncSession,
    quote_id: int,
    field_name: str,
    old_value: Any,
    new_value: Any,
    changed_by: HistorySource = HistorySource.API,
) -> Optional[QuoteHistory]:
    """Add a history row when the stringified value actually changed."""
    old_str, new_str = _stringify(old_value), _stringify(new_value)
    if old_str == new_str:
        return None

    entry = QuoteHistory(
        quote_id=quote_id,
        field_name=field_name,
        old_value=old_str,
        new_value=new_str,
        changed_by=str(changed_by),
    )
    db.add(entry)
    logger.debug(f"Quote {quote_id}: {field_name} {old_str!r} -> {new_str!r} ({changed_by})")
    return entry


def record_cost_change(
    db: AsyncSession,
    quote,
    new_cost: Optional[float],
    changed_by: HistorySource,
) -> None:
    record_change(db, quote.id, "estimated_cost", quote.estimated_cost, new_cost, changed_by)
    quote.estimated_cost = new_cost
