"""Domain records for each personal-tracking app."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import Field

from tracker.schemas.entity import (
    COMMENT_MAX_LENGTH,
    NAME_MAX_LENGTH,
    Entity,
    OptionalText,
    PhotoIds,
    RequiredName,
)
from tracker.schemas.enums import (
    BeautyToolStatus,
    ItemCondition,
    ItemStatus,
    MoodType,
    RecipeCategory,
    ToolCondition,
    VictoryCategory,
)


class MoodEntry(Entity):
    """One mood diary day; at most one entry exists per calendar date."""

    entry_date: date
    mood: MoodType
    comment: str = Field("", max_length=COMMENT_MAX_LENGTH)
    photo_ids: PhotoIds = ()
    is_favorite: bool = False

    @property
    def score(self) -> int:
        return self.mood.score


class Victory(Entity):
    """A win recorded in the victory journal."""

    title: RequiredName
    story: OptionalText = ""
    category: VictoryCategory = VictoryCategory.PERSONAL
    achieved_on: date
    is_favorite: bool = False
    is_archived: bool = False
    archived_at: datetime | None = None


class Tool(Entity):
    """Workshop tool in the tool catalog."""

    name: RequiredName
    category: str = Field("", max_length=NAME_MAX_LENGTH)
    condition: ToolCondition = ToolCondition.GOOD
    description: OptionalText = ""
    photo_ids: PhotoIds = ()
    is_favorite: bool = False


class BeautyTool(Entity):
    """Brush, comb or device tracked in the beauty-tool inventory."""

    name: RequiredName
    category: str = Field("", max_length=NAME_MAX_LENGTH)
    status: BeautyToolStatus = BeautyToolStatus.IN_USE
    purchased_on: date | None = None
    description: OptionalText = ""
    photo_ids: PhotoIds = ()
    is_favorite: bool = False


class Recipe(Entity):
    """Recipe card; owns its ingredient lines."""

    title: RequiredName
    category: RecipeCategory = RecipeCategory.DINNER
    instructions: OptionalText = ""
    is_favorite: bool = False


class Ingredient(Entity):
    """Ingredient line owned by exactly one recipe."""

    recipe_id: str = Field(..., min_length=1)
    name: RequiredName
    quantity: str = Field("", max_length=NAME_MAX_LENGTH)


class CollectibleCollection(Entity):
    """Named collection (e.g. "Stamps") that owns collectible items."""

    name: RequiredName
    description: OptionalText = ""


class CollectibleItem(Entity):
    """Item owned by exactly one collectible collection."""

    collection_id: str = Field(..., min_length=1)
    name: RequiredName
    category: str = Field("", max_length=NAME_MAX_LENGTH)
    status: ItemStatus = ItemStatus.OWNED
    condition: ItemCondition = ItemCondition.GOOD
    acquired_on: date | None = None
    story: OptionalText = ""
    photo_ids: PhotoIds = ()
    is_favorite: bool = False


class Heirloom(Entity):
    """Family heirloom with its provenance story."""

    name: RequiredName
    story: OptionalText = ""
    origin_year: int | None = Field(None, ge=0, le=9999)
    condition: ItemCondition = ItemCondition.GOOD
    photo_ids: PhotoIds = ()
    is_favorite: bool = False
    is_archived: bool = False
    archived_at: datetime | None = None


__all__ = [
    "BeautyTool",
    "CollectibleCollection",
    "CollectibleItem",
    "Heirloom",
    "Ingredient",
    "MoodEntry",
    "Recipe",
    "Tool",
    "Victory",
]
