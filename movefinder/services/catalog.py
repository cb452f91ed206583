"""Static moving data: item catalog, crew/truck rates and handling multipliers."""
from typing import NamedTuple

from movefinder.core.enums import Difficulty, Weight, MoveType, HomeSize


class CatalogEntry(NamedTuple):
    category: str
    base_price: float
    difficulty: Difficulty
    weight: Weight


def _entry(category: str, base_price: float, difficulty: str, weight: str) -> CatalogEntry:
    return CatalogEntry(category, base_price, Difficulty(difficulty), Weight(weight))


# Lookup order matters: substring matching returns the first hit.
ITEM_CATALOG = {
    # Living room
    "couch": _entry("furniture", 85, "medium", "heavy"),
    "sofa": _entry("furniture", 85, "medium", "heavy"),
    "chair": _entry("furniture", 25, "easy", "light"),
    "dining table": _entry("furniture", 65, "medium", "heavy"),
    "coffee table": _entry("furniture", 35, "easy", "medium"),
    "tv": _entry("electronics", 45, "medium", "medium"),
    "entertainment center": _entry("furniture", 75, "hard", "heavy"),
    "bookshelf": _entry("furniture", 55, "medium", "heavy"),
    "lamp": _entry("decor", 15, "easy", "light"),

    # Bedroom
    "bed": _entry("furniture", 95, "medium", "heavy"),
    "mattress": _entry("furniture", 65, "medium", "medium"),
    "dresser": _entry("furniture", 75, "medium", "heavy"),
    "nightstand": _entry("furniture", 35, "easy", "medium"),
    "wardrobe": _entry("furniture", 125, "hard", "heavy"),
    "mirror": _entry("decor", 25, "medium", "light"),

    # Kitchen & appliances
    "refrigerator": _entry("appliances", 150, "hard", "heavy"),
    "washing machine": _entry("appliances", 135, "hard", "heavy"),
    "dryer": _entry("appliances", 125, "hard", "heavy"),
    "dishwasher": _entry("appliances", 115, "hard", "heavy"),
    "microwave": _entry("appliances", 35, "easy", "medium"),
    "oven": _entry("appliances", 165, "hard", "heavy"),
    "stove": _entry("appliances", 145, "hard", "heavy"),
    "kitchen island": _entry("furniture", 95, "hard", "heavy"),

    # Office & storage
    "desk": _entry("furniture", 55, "medium", "medium"),
    "office chair": _entry("furniture", 35, "easy", "light"),
    "filing cabinet": _entry("furniture", 45, "medium", "heavy"),
    "bookcase": _entry("furniture", 65, "medium", "heavy"),
    "cabinet": _entry("furniture", 55, "medium", "medium"),
    "shelf": _entry("furniture", 25, "easy", "light"),

    # Specialty
    "piano": _entry("specialty", 450, "expert", "extreme"),
    "pool table": _entry("specialty", 325, "expert", "extreme"),
    "hot tub": _entry("specialty", 850, "expert", "extreme"),
    "safe": _entry("specialty", 275, "expert", "extreme"),
    "artwork": _entry("specialty", 65, "medium", "light"),
    "antique": _entry("specialty", 85, "hard", "medium"),

    # Outdoor
    "outdoor furniture": _entry("furniture", 45, "medium", "medium"),
    "patio set": _entry("furniture", 75, "medium", "heavy"),
    "grill": _entry("appliances", 55, "medium", "medium"),
    "fire pit": _entry("outdoor", 65, "medium", "heavy"),
    "lawn mower": _entry("tools", 45, "medium", "medium"),
    "gardening tools": _entry("tools", 25, "easy", "light"),

    # Boxes
    "box": _entry("boxes", 8, "easy", "light"),
    "small box": _entry("boxes", 5, "easy", "light"),
    "large box": _entry("boxes", 12, "easy", "medium"),
    "wardrobe box": _entry("boxes", 15, "easy", "medium"),
    "moving box": _entry("boxes", 8, "easy", "light"),

    # Generic fallbacks
    "furniture": _entry("furniture", 65, "medium", "medium"),
    "item": _entry("general", 25, "easy", "light"),
    "object": _entry("general", 25, "easy", "light"),
}

FALLBACK_ITEM = "item"
SPECIALTY_CATEGORY = "specialty"

DIFFICULTY_MULTIPLIERS = {
    Difficulty.EASY: 1.0,
    Difficulty.MEDIUM: 1.2,
    Difficulty.HARD: 1.5,
    Difficulty.EXPERT: 2.0,
}

WEIGHT_MULTIPLIERS = {
    Weight.LIGHT: 1.0,
    Weight.MEDIUM: 1.1,
    Weight.HEAVY: 1.3,
    Weight.EXTREME: 1.8,
}

LONG_HAUL_THRESHOLD_MILES = 50
LONG_HAUL_MULTIPLIER = 1.4
SPECIALTY_MOVE_MULTIPLIER = 1.25
SPECIALTY_ITEM_MULTIPLIER = 1.15

LOCAL_DISTANCE_MILES = 15
LONG_DISTANCE_MILES = 500

BASE_HOURLY_RATE = 120  # 2-person crew
ADDITIONAL_MOVER_RATE = 45

TRUCK_RATES_PER_MILE = {
    MoveType.LOCAL: 0.0,
    MoveType.LONG_DISTANCE: 1.45,
    MoveType.COMMERCIAL: 1.65,
}

MINIMUM_HOURS = {
    MoveType.LOCAL: 2,
    MoveType.LONG_DISTANCE: 4,
    MoveType.COMMERCIAL: 3,
    MoveType.STORAGE: 1,
}

SIZE_BASE_PRICES = {
    HomeSize.STUDIO: 450,
    HomeSize.ONE_BEDROOM: 650,
    HomeSize.TWO_BEDROOM: 950,
    HomeSize.THREE_BEDROOM: 1350,
    HomeSize.FOUR_PLUS_BEDROOM: 1850,
    HomeSize.COMMERCIAL: 2500,
}
DEFAULT_SIZE_PRICE = 800

MOVE_SETUP_FEES = {
    MoveType.LOCAL: 150,
    MoveType.LONG_DISTANCE: 350,
    MoveType.COMMERCIAL: 275,
    MoveType.STORAGE: 100,
}
DEFAULT_SETUP_FEE = 150

DOWNTOWN_KEYWORDS = ("downtown", "congress", "sixth street", "6th street", "rainey")
DIFFICULT_ACCESS_KEYWORDS = ("westlake", "tarrytown", "rollingwood")
EASY_ACCESS_KEYWORDS = ("pflugerville", "round rock", "cedar park")
HIGHWAY_KEYWORDS = ("i-35", "mopac", "183")

SPECIALTY_HANDLING_ITEMS = ("piano", "pool table", "safe", "hot tub")
