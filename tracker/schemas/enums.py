"""Per-domain enumerations and their ordering rules.

Each enumeration used for sorting publishes a ``priority`` through a mapping
that must cover every member; ``tests/tracker/schemas/test_enums.py`` asserts
the mappings stay exhaustive when a new member is added.
"""

from __future__ import annotations

from enum import Enum


class MoodType(str, Enum):
    """Mood recorded for a diary day."""

    TERRIBLE = "terrible"
    BAD = "bad"
    NEUTRAL = "neutral"
    GOOD = "good"
    EXCELLENT = "excellent"

    @property
    def score(self) -> int:
        """Numeric happiness value in the range -2..2."""

        return MOOD_SCORES[self]


class ItemStatus(str, Enum):
    """Ownership status of a collectible."""

    OWNED = "owned"
    WISHLIST = "wishlist"
    FOR_TRADE = "for_trade"
    SOLD = "sold"

    @property
    def priority(self) -> int:
        return ITEM_STATUS_PRIORITY[self]


class ItemCondition(str, Enum):
    """Physical condition grade shared by collectibles and heirlooms."""

    MINT = "mint"
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def priority(self) -> int:
        return ITEM_CONDITION_PRIORITY[self]


class ToolCondition(str, Enum):
    """Working condition of a workshop tool."""

    NEW = "new"
    GOOD = "good"
    WORN = "worn"
    NEEDS_REPAIR = "needs_repair"
    BROKEN = "broken"

    @property
    def priority(self) -> int:
        return TOOL_CONDITION_PRIORITY[self]


class BeautyToolStatus(str, Enum):
    """Lifecycle status of a beauty tool."""

    IN_USE = "in_use"
    NEEDS_CLEANING = "needs_cleaning"
    REPLACE_SOON = "replace_soon"
    RETIRED = "retired"

    @property
    def priority(self) -> int:
        return BEAUTY_TOOL_STATUS_PRIORITY[self]


class RecipeCategory(str, Enum):
    """Course a recipe belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    DESSERT = "dessert"
    SNACK = "snack"
    DRINK = "drink"


class VictoryCategory(str, Enum):
    """Area of life a victory belongs to."""

    PERSONAL = "personal"
    WORK = "work"
    HEALTH = "health"
    LEARNING = "learning"
    RELATIONSHIPS = "relationships"
    OTHER = "other"


MOOD_SCORES: dict[MoodType, int] = {
    MoodType.TERRIBLE: -2,
    MoodType.BAD: -1,
    MoodType.NEUTRAL: 0,
    MoodType.GOOD: 1,
    MoodType.EXCELLENT: 2,
}

# Lower numbers sort first.
ITEM_STATUS_PRIORITY: dict[ItemStatus, int] = {
    ItemStatus.OWNED: 0,
    ItemStatus.FOR_TRADE: 1,
    ItemStatus.WISHLIST: 2,
    ItemStatus.SOLD: 3,
}

ITEM_CONDITION_PRIORITY: dict[ItemCondition, int] = {
    ItemCondition.MINT: 0,
    ItemCondition.EXCELLENT: 1,
    ItemCondition.GOOD: 2,
    ItemCondition.FAIR: 3,
    ItemCondition.POOR: 4,
}

TOOL_CONDITION_PRIORITY: dict[ToolCondition, int] = {
    ToolCondition.NEW: 0,
    ToolCondition.GOOD: 1,
    ToolCondition.WORN: 2,
    ToolCondition.NEEDS_REPAIR: 3,
    ToolCondition.BROKEN: 4,
}

BEAUTY_TOOL_STATUS_PRIORITY: dict[BeautyToolStatus, int] = {
    BeautyToolStatus.IN_USE: 0,
    BeautyToolStatus.NEEDS_CLEANING: 1,
    BeautyToolStatus.REPLACE_SOON: 2,
    BeautyToolStatus.RETIRED: 3,
}

PRIORITY_TABLES: dict[type[Enum], dict] = {
    ItemStatus: ITEM_STATUS_PRIORITY,
    ItemCondition: ITEM_CONDITION_PRIORITY,
    ToolCondition: TOOL_CONDITION_PRIORITY,
    BeautyToolStatus: BEAUTY_TOOL_STATUS_PRIORITY,
}


def priority_of(value: Enum) -> int:
    """Return the ordering priority for any prioritized enum member."""

    table = PRIORITY_TABLES.get(type(value))
    if table is None:
        raise TypeError(f"{type(value).__name__} has no priority ordering")
    return table[value]


__all__ = [
    "BEAUTY_TOOL_STATUS_PRIORITY",
    "BeautyToolStatus",
    "ITEM_CONDITION_PRIORITY",
    "ITEM_STATUS_PRIORITY",
    "ItemCondition",
    "ItemStatus",
    "MOOD_SCORES",
    "MoodType",
    "PRIORITY_TABLES",
    "RecipeCategory",
    "TOOL_CONDITION_PRIORITY",
    "ToolCondition",
    "VictoryCategory",
    "priority_of",
]
