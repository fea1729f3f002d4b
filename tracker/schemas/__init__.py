"""Pydantic models describing tracker records."""

from tracker.schemas.domains import (  # noqa: F401
    BeautyTool,
    CollectibleCollection,
    CollectibleItem,
    Heirloom,
    Ingredient,
    MoodEntry,
    Recipe,
    Tool,
    Victory,
)
from tracker.schemas.entity import Entity  # noqa: F401
from tracker.schemas.enums import (  # noqa: F401
    BeautyToolStatus,
    ItemCondition,
    ItemStatus,
    MoodType,
    RecipeCategory,
    ToolCondition,
    VictoryCategory,
)
from tracker.schemas.registry import DOMAINS, DomainSpec, get_domain  # noqa: F401
