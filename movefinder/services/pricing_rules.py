"""Database-backed pricing rules.

A second pricing path that runs after media uploads: it starts from the
stored per-item costs (or a size-based base price) and applies the active
rows of ``pricing_rules`` as multipliers plus fixed add-ons.
"""
import json
import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from movefinder.core.enums import HomeSize, MoveType, RuleType
from movefinder.core.metrics import track_db_operation
from movefinder.models.detected_item import DetectedItem
from movefinder.models.pricing_rule import PricingRule
from movefinder.models.quote import Quote
from movefinder.services.pricing import round_half_up

logger = logging.getLogger(__name__)

RULE_BASE_PRICES = {
    HomeSize.STUDIO: 400,
    HomeSize.ONE_BEDROOM: 600,
    HomeSize.TWO_BEDROOM: 900,
    HomeSize.THREE_BEDROOM: 1300,
    HomeSize.FOUR_PLUS_BEDROOM: 1800,
    HomeSize.COMMERCIAL: 2500,
}
DEFAULT_RULE_BASE_PRICE = 800

DEFAULT_RULES = [
    {
        "rule_name": "weekend_surcharge",
        "rule_type": RuleType.SEASONAL,
        "condition_json": json.dumps({"days": [0, 6]}),  # Sunday, Saturday
        "multiplier": 1.15,
        "fixed_cost": 0.0,
    },
    {
        "rule_name": "peak_season",
        "rule_type": RuleType.SEASONAL,
        "condition_json": json.dumps({"months": [5, 6, 7, 8]}),
        "multiplier": 1.25,
        "fixed_cost": 0.0,
    },
    {
        "rule_name": "long_distance",
        "rule_type": RuleType.DISTANCE,
        "condition_json": json.dumps({"min_miles": 50}),
        "multiplier": 1.8,
        "fixed_cost": 200.0,
    },
    {
        "rule_name": "downtown_parking",
        "rule_type": RuleType.LOCATION,
        "condition_json": json.dumps({"zones": ["central"]}),
        "multiplier": 1.0,
        "fixed_cost": 75.0,
    },
]


def sunday_based_weekday(value: date) -> int:
    """Day of week with Sunday as 0, the numbering stored in rule conditions."""
    return (value.weekday() + 1) % 7


def _parse_conditions(rule: PricingRule) -> Optional[dict]:
    try:
        conditions = json.loads(rule.condition_json)
    except (TypeError, ValueError) as e:
        logger.warning(f"Pricing rule {rule.rule_name} has invalid conditions: {e}")
        return None
    if not isinstance(conditions, dict):
        logger.warning(f"Pricing rule {rule.rule_name} conditions are not an object")
        return None
    return conditions


def rule_applies(
    rule: PricingRule,
    move_type: str,
    move_date: Optional[date],
    from_address: Optional[str],
    to_address: Optional[str],
) -> bool:
    conditions = _parse_conditions(rule)
    if conditions is None:
        return False

    if rule.rule_type == RuleType.SEASONAL:
        if move_date is None:
            return False
        days = conditions.get("days") or []
        months = conditions.get("months") or []
        return sunday_based_weekday(move_date) in days or move_date.month in months

    if rule.rule_type == RuleType.DISTANCE:
        return move_type == MoveType.LONG_DISTANCE and bool(conditions.get("min_miles"))

    if rule.rule_type == RuleType.LOCATION:
        addresses = f"{from_address or ''} {to_address or ''}".lower()
        return bool(conditions.get("zones")) and "downtown" in addresses

    return False


def apply_pricing_rules(
    base_cost: float,
    rules: Iterable[PricingRule],
    move_type: str,
    move_date: Optional[date],
    from_address: Optional[str] = "",
    to_address: Optional[str] = "",
) -> int:
    adjusted = float(base_cost)
    additional = 0.0

    for rule in rules:
        if not rule.active:
            continue
        if rule_applies(rule, move_type, move_date, from_address, to_address):
            adjusted *= float(rule.multiplier)
            additional += float(rule.fixed_cost or 0.0)

    return max(0, round_half_up(adjusted + additional))


@track_db_operation("select", "pricing_rules")
async def load_active_rules(db: AsyncSession) -> List[PricingRule]:
    res = await db.execute(
        select(PricingRule).where(PricingRule.active.is_(True)).order_by(PricingRule.id)
    )
    return list(res.scalars().all())


async def seed_default_rules(db: AsyncSession) -> int:
    """Insert any default rule missing by name. Returns the number inserted."""
    res = await db.execute(select(PricingRule.rule_name))
    existing = set(res.scalars().all())

    created = 0
    for data in DEFAULT_RULES:
        if data["rule_name"] in existing:
            continue
        db.add(PricingRule(**data, active=True))
        created += 1

    if created:
        await db.flush()
    return created


async def calculate_rule_based_cost(db: AsyncSession, quote: Quote) -> int:
    res = await db.execute(select(DetectedItem).where(DetectedItem.quote_id == quote.id))
    items = res.scalars().all()

    if items:
        base_cost = sum(float(item.estimated_cost or 0) for item in items)
    else:
        base_cost = RULE_BASE_PRICES.get(quote.estimated_size, DEFAULT_RULE_BASE_PRICE)

    rules = await load_active_rules(db)
    return apply_pricing_rules(
        base_cost,
        rules,
        move_type=quote.move_type,
        move_date=quote.move_date,
        from_address=quote.from_address,
        to_address=quote.to_address,
    )
