"""Static description of each domain collection.

A :class:`DomainSpec` tells the generic store, query and statistics code which
fields hold the display title, which are searchable, which dates must not lie
in the future and which parent (if any) owns records of the domain.
"""

from __future__ import annotations

from dataclasses import dataclass

from tracker.schemas.domains import (
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
from tracker.schemas.entity import Entity


@dataclass(frozen=True, slots=True)
class DomainSpec:
    """Metadata consumed by the generic store, query and statistics layers."""

    collection: str
    model: type[Entity]
    title_field: str
    search_fields: tuple[str, ...] = ()
    facets: tuple[str, ...] = ()
    date_field: str | None = None
    past_date_fields: tuple[str, ...] = ()
    past_year_fields: tuple[str, ...] = ()
    unique_date: bool = False
    priority_field: str | None = None
    owner_collection: str | None = None
    owner_field: str | None = None

    @property
    def supports_favorites(self) -> bool:
        return "is_favorite" in self.model.model_fields

    @property
    def supports_archive(self) -> bool:
        return "is_archived" in self.model.model_fields

    @property
    def supports_photos(self) -> bool:
        return "photo_ids" in self.model.model_fields

    @property
    def is_child(self) -> bool:
        return self.owner_collection is not None

    def title_of(self, entity: Entity) -> str:
        """Return the display title, falling back to the date for untitled records."""

        title = getattr(entity, self.title_field, "") or ""
        if not title and self.date_field is not None:
            value = getattr(entity, self.date_field, None)
            if value is not None:
                return value.isoformat()
        return title


MOODS = DomainSpec(
    collection="moods",
    model=MoodEntry,
    title_field="comment",
    search_fields=("comment",),
    facets=("mood",),
    date_field="entry_date",
    past_date_fields=("entry_date",),
    unique_date=True,
)

VICTORIES = DomainSpec(
    collection="victories",
    model=Victory,
    title_field="title",
    search_fields=("title", "story"),
    facets=("category",),
    date_field="achieved_on",
    past_date_fields=("achieved_on",),
)

TOOLS = DomainSpec(
    collection="tools",
    model=Tool,
    title_field="name",
    search_fields=("name", "description", "category"),
    facets=("category", "condition"),
    priority_field="condition",
)

BEAUTY_TOOLS = DomainSpec(
    collection="beauty_tools",
    model=BeautyTool,
    title_field="name",
    search_fields=("name", "description", "category"),
    facets=("category", "status"),
    date_field="purchased_on",
    past_date_fields=("purchased_on",),
    priority_field="status",
)

RECIPES = DomainSpec(
    collection="recipes",
    model=Recipe,
    title_field="title",
    search_fields=("title", "instructions"),
    facets=("category",),
)

INGREDIENTS = DomainSpec(
    collection="ingredients",
    model=Ingredient,
    title_field="name",
    search_fields=("name", "quantity"),
    owner_collection="recipes",
    owner_field="recipe_id",
)

COLLECTIONS = DomainSpec(
    collection="collections",
    model=CollectibleCollection,
    title_field="name",
    search_fields=("name", "description"),
)

COLLECTIBLES = DomainSpec(
    collection="collectibles",
    model=CollectibleItem,
    title_field="name",
    search_fields=("name", "story", "category"),
    facets=("category", "status", "condition"),
    date_field="acquired_on",
    past_date_fields=("acquired_on",),
    priority_field="condition",
    owner_collection="collections",
    owner_field="collection_id",
)

HEIRLOOMS = DomainSpec(
    collection="heirlooms",
    model=Heirloom,
    title_field="name",
    search_fields=("name", "story"),
    facets=("condition",),
    past_year_fields=("origin_year",),
    priority_field="condition",
)

DOMAINS: dict[str, DomainSpec] = {
    domain.collection: domain
    for domain in (
        MOODS,
        VICTORIES,
        TOOLS,
        BEAUTY_TOOLS,
        RECIPES,
        INGREDIENTS,
        COLLECTIONS,
        COLLECTIBLES,
        HEIRLOOMS,
    )
}


def get_domain(collection: str) -> DomainSpec:
    """Return the registered domain for ``collection``."""

    try:
        return DOMAINS[collection]
    except KeyError:
        raise LookupError(f"Unknown collection: {collection}") from None


__all__ = [
    "BEAUTY_TOOLS",
    "COLLECTIBLES",
    "COLLECTIONS",
    "DOMAINS",
    "DomainSpec",
    "HEIRLOOMS",
    "INGREDIENTS",
    "MOODS",
    "RECIPES",
    "TOOLS",
    "VICTORIES",
    "get_domain",
]
