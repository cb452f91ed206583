import math
from datetime import date
from typing import Iterable, List, Optional, Tuple

from movefinder.core.enums import MoveType
from movefinder.schemas.pricing import (
    Adjustment,
    CrewEstimate,
    DurationEstimate,
    ItemCost,
    ItemLine,
    MoveDetails,
    PricingBreakdown,
)
from movefinder.services.catalog import (
    ADDITIONAL_MOVER_RATE,
    BASE_HOURLY_RATE,
    CatalogEntry,
    DEFAULT_SETUP_FEE,
    DEFAULT_SIZE_PRICE,
    DIFFICULT_ACCESS_KEYWORDS,
    DIFFICULTY_MULTIPLIERS,
    DOWNTOWN_KEYWORDS,
    EASY_ACCESS_KEYWORDS,
    FALLBACK_ITEM,
    HIGHWAY_KEYWORDS,
    ITEM_CATALOG,
    LOCAL_DISTANCE_MILES,
    LONG_DISTANCE_MILES,
    LONG_HAUL_MULTIPLIER,
    LONG_HAUL_THRESHOLD_MILES,
    MINIMUM_HOURS,
    MOVE_SETUP_FEES,
    SIZE_BASE_PRICES,
    SPECIALTY_CATEGORY,
    SPECIALTY_HANDLING_ITEMS,
    SPECIALTY_ITEM_MULTIPLIER,
    SPECIALTY_MOVE_MULTIPLIER,
    TRUCK_RATES_PER_MILE,
    WEIGHT_MULTIPLIERS,
)

DOWNTOWN_SURCHARGE = 85

PEAK_MONTHS = range(5, 9)
SPRING_MONTHS = range(3, 5)
FALL_MONTHS = range(9, 11)

ITEMS_PER_HOUR = 15
SPECIALTY_HOURS_PER_ITEM = 0.5
AVERAGE_HIGHWAY_MPH = 45


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def lookup_item(label: str) -> CatalogEntry:
    """Resolve a label to a catalog entry: exact, then substring, then the generic item."""
    normalized = (label or "").strip().lower()
    if not normalized:
        return ITEM_CATALOG[FALLBACK_ITEM]

    entry = ITEM_CATALOG.get(normalized)
    if entry is not None:
        return entry

    for key, candidate in ITEM_CATALOG.items():
        if key in normalized or normalized in key:
            return candidate

    return ITEM_CATALOG[FALLBACK_ITEM]


def calculate_item_cost(
    label: str,
    quantity: int = 1,
    distance: float = LOCAL_DISTANCE_MILES,
    is_specialty_move: bool = False,
) -> int:
    entry = lookup_item(label)

    cost = entry.base_price * (quantity or 1)
    cost *= DIFFICULTY_MULTIPLIERS.get(entry.difficulty, 1.0)
    cost *= WEIGHT_MULTIPLIERS.get(entry.weight, 1.0)

    if distance > LONG_HAUL_THRESHOLD_MILES:
        cost *= LONG_HAUL_MULTIPLIER

    if is_specialty_move:
        cost *= SPECIALTY_MOVE_MULTIPLIER

    if entry.category == SPECIALTY_CATEGORY:
        cost *= SPECIALTY_ITEM_MULTIPLIER

    return round_half_up(cost)


def trip_distance(move_type) -> int:
    return LONG_DISTANCE_MILES if move_type == MoveType.LONG_DISTANCE else LOCAL_DISTANCE_MILES


def apply_location_adjustments(
    cost: float, from_address: Optional[str], to_address: Optional[str]
) -> Tuple[float, List[Adjustment]]:
    address_text = f"{from_address or ''} {to_address or ''}".lower()
    applied = []

    if any(keyword in address_text for keyword in DOWNTOWN_KEYWORDS):
        # parking and permit fees
        cost *= 1.25
        cost += DOWNTOWN_SURCHARGE
        applied.append(Adjustment(name="downtown", multiplier=1.25, surcharge=DOWNTOWN_SURCHARGE))

    if any(keyword in address_text for keyword in DIFFICULT_ACCESS_KEYWORDS):
        cost *= 1.15
        applied.append(Adjustment(name="difficult_access", multiplier=1.15))

    if any(keyword in address_text for keyword in EASY_ACCESS_KEYWORDS):
        cost *= 0.95
        applied.append(Adjustment(name="easy_access", multiplier=0.95))

    if any(keyword in address_text for keyword in HIGHWAY_KEYWORDS):
        cost *= 1.05
        applied.append(Adjustment(name="highway_access", multiplier=1.05))

    return cost, applied


def apply_seasonal_adjustments(cost: float, move_date: Optional[date]) -> Tuple[float, List[Adjustment]]:
    if move_date is None:
        return cost, []

    applied = []
    month = move_date.month

    if month in PEAK_MONTHS:
        cost *= 1.25
        applied.append(Adjustment(name="peak_season", multiplier=1.25))

    if month in SPRING_MONTHS:
        cost *= 1.15
        applied.append(Adjustment(name="spring_season", multiplier=1.15))

    if month in FALL_MONTHS:
        cost *= 1.1
        applied.append(Adjustment(name="fall_season", multiplier=1.1))

    if move_date.weekday() >= 5:
        cost *= 1.15
        applied.append(Adjustment(name="weekend", multiplier=1.15))

    if move_date.day >= 28:
        cost *= 1.1
        applied.append(Adjustment(name="month_end", multiplier=1.1))

    return cost, applied


def get_pricing_breakdown(details: MoveDetails, items: Iterable[ItemLine] = ()) -> PricingBreakdown:
    items = list(items)
    distance = trip_distance(details.move_type)
    is_commercial = details.move_type == MoveType.COMMERCIAL

    item_costs = [
        ItemCost(
            label=item.label,
            quantity=item.quantity or 1,
            cost=calculate_item_cost(item.label, item.quantity or 1, distance, is_commercial),
        )
        for item in items
    ]
    items_total = sum(item.cost for item in item_costs)

    size_base_price = None
    if item_costs:
        total = float(items_total)
    else:
        size_base_price = SIZE_BASE_PRICES.get(details.estimated_size, DEFAULT_SIZE_PRICE)
        total = float(size_base_price)

    setup_fee = MOVE_SETUP_FEES.get(details.move_type, DEFAULT_SETUP_FEE)
    total += setup_fee
    subtotal = total

    total, location = apply_location_adjustments(total, details.from_address, details.to_address)
    total, seasonal = apply_seasonal_adjustments(total, details.move_date)

    return PricingBreakdown(
        items=item_costs,
        items_total=items_total,
        size_base_price=size_base_price,
        setup_fee=setup_fee,
        subtotal=subtotal,
        location_adjustments=location,
        seasonal_adjustments=seasonal,
        total=max(0, round_half_up(total)),
    )


def calculate_total_quote(details: MoveDetails, items: Iterable[ItemLine] = ()) -> int:
    return get_pricing_breakdown(details, items).total


def estimate_move_duration(
    items: Iterable[ItemLine] = (),
    distance: float = LOCAL_DISTANCE_MILES,
    move_type=MoveType.LOCAL,
) -> DurationEstimate:
    items = list(items)
    base_hours = MINIMUM_HOURS.get(move_type, 2)

    item_count = sum(item.quantity or 1 for item in items)
    item_hours = math.ceil(item_count / ITEMS_PER_HOUR)

    specialty_count = sum(
        1 for item in items if (item.label or "").strip().lower() in SPECIALTY_HANDLING_ITEMS
    )
    specialty_hours = specialty_count * SPECIALTY_HOURS_PER_ITEM

    travel_hours = 0
    if move_type == MoveType.LONG_DISTANCE:
        # round trip
        travel_hours = math.ceil(distance / AVERAGE_HIGHWAY_MPH) * 2

    total_hours = base_hours + item_hours + specialty_hours + travel_hours

    return DurationEstimate(
        estimated_hours=max(total_hours, base_hours),
        base=base_hours,
        items=item_hours,
        specialty=specialty_hours,
        travel=travel_hours,
    )


def estimate_crew_cost(
    duration: DurationEstimate,
    move_type=MoveType.LOCAL,
    distance: float = LOCAL_DISTANCE_MILES,
    extra_movers: int = 0,
) -> CrewEstimate:
    hourly_rate = BASE_HOURLY_RATE + extra_movers * ADDITIONAL_MOVER_RATE
    return CrewEstimate(
        movers=2 + extra_movers,
        hourly_rate=hourly_rate,
        labor_cost=round_half_up(duration.estimated_hours * hourly_rate),
        truck_cost=round_half_up(distance * TRUCK_RATES_PER_MILE.get(move_type, 0.0)),
    )


def get_moving_tips(items: Iterable[ItemLine] = ()) -> List[str]:
    labels = {(item.label or "").strip().lower() for item in items}

    tips = [
        "Austin heat: schedule early morning moves in summer to avoid 100F+ temperatures",
        "Traffic: avoid I-35 and MoPac during rush hours (7-9 AM, 4-7 PM)",
        "Parking: downtown moves may require a permit - we'll handle this for you",
    ]

    if labels & {"piano", "pool table"}:
        tips.append("Specialty items: our expert team has experience with Austin's music scene equipment")

    if labels & {"refrigerator", "washing machine", "dryer"}:
        tips.append("Appliances: we'll disconnect and reconnect to Austin's electrical standards")

    if labels & {"outdoor furniture", "grill", "patio set"}:
        tips.append("Outdoor items: perfect for Austin's year-round outdoor lifestyle")

    if labels & {"artwork", "antique"}:
        tips.append("Valuables: we use museum-quality packing for art and antiques")

    return tips
