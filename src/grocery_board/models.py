"""Core data models for Grocery Board."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class StoreKey(str, Enum):
    """Supported store layouts (section templates)."""

    WILLYS = "willys"
    HEMKOP = "hemkop"


class CheckFilter(str, Enum):
    """Which items a view shows."""

    ALL = "all"
    CHECKED = "checked"
    UNCHECKED = "unchecked"


class Item(BaseModel):
    """A shopping list item."""

    id: str
    text: str
    checked: bool = False


class Section(BaseModel):
    """A named column of items. ``item_ids`` is the shopping order."""

    id: str
    title: str
    item_ids: list[str] = Field(default_factory=list)


class Board(BaseModel):
    """The complete in-memory state of one shopping list."""

    items: dict[str, Item] = Field(default_factory=dict)
    columns: dict[str, Section] = Field(default_factory=dict)
    column_order: list[str] = Field(default_factory=list)

    def sections(self) -> list[Section]:
        """Sections in display order."""
        return [self.columns[col_id] for col_id in self.column_order if col_id in self.columns]


class BoardStats(BaseModel):
    """Item counts shown next to a list."""

    total: int = 0
    checked: int = 0

    @property
    def unchecked(self) -> int:
        return self.total - self.checked


class Classification(BaseModel):
    """Result of routing an ingredient line to a section."""

    column_id: str
    normalized: str


# --- Persistence records ---


class ListMeta(BaseModel):
    """A stored shopping list."""

    id: str
    store: StoreKey = StoreKey.WILLYS
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class SectionRecord(BaseModel):
    """A stored section row."""

    id: str
    title: str
    sort_order: int = 0


class ItemRecord(BaseModel):
    """A stored item row."""

    id: str
    section_id: str
    text: str
    checked: bool = False
    sort_order: int = 0


class RecipeDetails(BaseModel):
    """Parsed recipe returned by the recipe service."""

    title: str | None = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: str | None = None
    yields: str | None = None
    total_time: int | None = None
    image_url: str | None = None
    host: str | None = None


class Recipe(BaseModel):
    """A recipe saved on a list."""

    id: str
    title: str = ""
    url: str
    sort_order: int = 0
    total_time: int | None = None
    ingredients: list[str] | None = None
    instructions: str | None = None
    yields: str | None = None
    image_url: str | None = None
    host: str | None = None
