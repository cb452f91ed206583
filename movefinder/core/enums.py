from enum import Enum


class MoveType(str, Enum):
    LOCAL = "local"
    LONG_DISTANCE = "long-distance"
    COMMERCIAL = "commercial"
    STORAGE = "storage"

    def __str__(self):
        return self.value


class HomeSize(str, Enum):
    STUDIO = "studio"
    ONE_BEDROOM = "1br"
    TWO_BEDROOM = "2br"
    THREE_BEDROOM = "3br"
    FOUR_PLUS_BEDROOM = "4br+"
    COMMERCIAL = "commercial"

    def __str__(self):
        return self.value


class QuoteStatus(str, Enum):
    PENDING = "pending"
    QUOTED = "quoted"
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self):
        return self.value


class RuleType(str, Enum):
    ITEM = "item"
    DISTANCE = "distance"
    SEASONAL = "seasonal"
    LOCATION = "location"

    def __str__(self):
        return self.value


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"

    def __str__(self):
        return self.value


class Weight(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"
    EXTREME = "extreme"

    def __str__(self):
        return self.value


class HistorySource(str, Enum):
    API = "api"
    CATALOG_PRICING = "catalog_pricing"
    RULE_PRICING = "rule_pricing"
    SUBMISSION = "submission"

    def __str__(self):
        return self.value
