"""Grocery Board - Shared shopping lists sorted by store section."""

from .board import (
    add_item,
    board_stats,
    check_invariants,
    clear_board,
    delete_item,
    edit_item_text,
    find_container,
    move_item,
    toggle_item,
    visible_item_ids,
)
from .categorizer import RULES, Rule, classify
from .config import ConfigManager
from .data_store import (
    BackendType,
    ConflictError,
    create_data_store,
    DataStore,
    SchemaError,
    StoreError,
)
from .drag import on_drag_end, on_drag_over
from .duplicates import find_duplicate
from .item_normalizer import fold_text, normalize_ingredient
from .list_manager import (
    DuplicateItemError,
    ItemNotFoundError,
    ListManager,
    SectionNotFoundError,
)
from .models import (
    Board,
    BoardStats,
    CheckFilter,
    Classification,
    Item,
    ItemRecord,
    ListMeta,
    Recipe,
    RecipeDetails,
    Section,
    SectionRecord,
    StoreKey,
)
from .output_formatter import OutputFormatter
from .recipe_book import RecipeBook, RecipeNotFoundError
from .recipe_fetcher import RecipeFetcher, RecipeFetchError, RecipeFetchStatus
from .sqlite_store import SQLiteStore
from .sync import (
    BoardSync,
    compute_sync_plan,
    InitializationError,
    remap_board_to_template,
    SyncPlan,
    SyncState,
)
from .templates import FALLBACK_SECTION_ID, get_default_board

__version__ = "0.1.0"

__all__ = [
    "add_item",
    "BackendType",
    "Board",
    "board_stats",
    "BoardStats",
    "BoardSync",
    "check_invariants",
    "CheckFilter",
    "classify",
    "Classification",
    "clear_board",
    "compute_sync_plan",
    "ConfigManager",
    "ConflictError",
    "create_data_store",
    "DataStore",
    "delete_item",
    "DuplicateItemError",
    "edit_item_text",
    "FALLBACK_SECTION_ID",
    "find_container",
    "find_duplicate",
    "fold_text",
    "get_default_board",
    "InitializationError",
    "Item",
    "ItemNotFoundError",
    "ItemRecord",
    "ListManager",
    "ListMeta",
    "move_item",
    "normalize_ingredient",
    "on_drag_end",
    "on_drag_over",
    "OutputFormatter",
    "Recipe",
    "RecipeBook",
    "RecipeDetails",
    "RecipeFetcher",
    "RecipeFetchError",
    "RecipeFetchStatus",
    "RecipeNotFoundError",
    "remap_board_to_template",
    "Rule",
    "RULES",
    "SchemaError",
    "Section",
    "SectionNotFoundError",
    "SectionRecord",
    "SQLiteStore",
    "StoreError",
    "StoreKey",
    "SyncPlan",
    "SyncState",
    "toggle_item",
    "visible_item_ids",
]
