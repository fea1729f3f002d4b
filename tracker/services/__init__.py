"""Store, query, statistics and favorites services."""

from tracker.services.favorites import FavoriteRef, FavoriteSort, FavoritesIndex  # noqa: F401
from tracker.services.query import (  # noqa: F401
    Archived,
    DateRange,
    FacetEquals,
    Favorite,
    Period,
    QueryEngine,
    SortDirection,
    SortKey,
    TextSearch,
)
from tracker.services.statistics import StatisticsEngine, percentage  # noqa: F401
from tracker.services.store import EntityStore, StoreChange, Subscription  # noqa: F401
from tracker.services.workspace import Workspace, build_workspace  # noqa: F401
