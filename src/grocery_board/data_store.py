"""Data persistence for Grocery Board.

This module defines the persistence contract the sync driver talks to and a
JSON file backend (default). ``sqlite_store.SQLiteStore`` implements the same
contract. Use create_data_store() to get the backend named in configuration.
"""

import json
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from .models import ItemRecord, ListMeta, Recipe, SectionRecord, StoreKey

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class StoreError(Exception):
    """Raised when the store cannot complete a read or write."""


class ConflictError(StoreError):
    """Raised when creating a record that already exists."""


class SchemaError(StoreError):
    """Raised when the stored data does not have the expected layout."""


class BackendType(str, Enum):
    """Data storage backend types."""

    JSON = "json"
    SQLITE = "sqlite"


class PersistenceProtocol(Protocol):
    """Protocol defining the data store interface."""

    def get_list(self, list_id: str) -> ListMeta | None: ...
    def create_list(self, list_id: str, store_key: StoreKey) -> ListMeta: ...
    def update_list_store(self, list_id: str, store_key: StoreKey) -> None: ...
    def list_sections(self, list_id: str) -> list[SectionRecord]: ...
    def upsert_sections(self, list_id: str, sections: Iterable[SectionRecord]) -> None: ...
    def delete_sections(self, list_id: str, section_ids: Iterable[str]) -> None: ...
    def list_items(self, list_id: str) -> list[ItemRecord]: ...
    def upsert_items(self, list_id: str, items: Iterable[ItemRecord]) -> None: ...
    def delete_items(self, list_id: str, item_ids: Iterable[str]) -> None: ...
    def list_recipes(self, list_id: str) -> list[Recipe]: ...
    def upsert_recipes(self, list_id: str, recipes: Iterable[Recipe]) -> None: ...
    def delete_recipes(self, list_id: str, recipe_ids: Iterable[str]) -> None: ...
    def delete_stale_lists(self, max_age: timedelta) -> int: ...
    def subscribe(self, list_id: str, on_change: Callable[[], None]) -> Unsubscribe: ...


class ChangeFeed:
    """In-process change notifications, one channel per list."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[[], None]]] = defaultdict(list)

    def subscribe(self, list_id: str, on_change: Callable[[], None]) -> Unsubscribe:
        """Register a callback and return a function that removes it."""
        self._listeners[list_id].append(on_change)
        logger.debug(f"Subscribed to list:{list_id}")

        def unsubscribe() -> None:
            listeners = self._listeners.get(list_id)
            if listeners and on_change in listeners:
                listeners.remove(on_change)
                logger.debug(f"Unsubscribed from list:{list_id}")
            if list_id in self._listeners and not self._listeners[list_id]:
                del self._listeners[list_id]

        return unsubscribe

    def listener_count(self, list_id: str) -> int:
        return len(self._listeners.get(list_id, ()))

    def notify(self, list_id: str) -> None:
        """Tell every subscriber of a list to refetch."""
        for callback in list(self._listeners.get(list_id, ())):
            try:
                callback()
            except Exception as e:
                # A failing listener never stops the others.
                logger.error(f"Change listener for list:{list_id} failed: {e}")


class DataStore:
    """Manages JSON file persistence for shopping lists."""

    def __init__(self, data_dir: Path | None = None):
        """Initialize data store.

        Args:
            data_dir: Directory for data files. Defaults to ./data
        """
        self.data_dir = data_dir or Path.cwd() / "data"
        self.feed = ChangeFeed()
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _lists_path(self) -> Path:
        """Path to the lists document."""
        return self.data_dir / "lists.json"

    def _load(self) -> dict[str, Any]:
        path = self._lists_path()
        if not path.exists():
            return {"version": "1.0", "lists": {}}

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read {path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("lists"), dict):
            raise SchemaError(f"{path} is not a grocery board document")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        path = self._lists_path()
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StoreError(f"Failed to write {path}: {e}") from e

    def _list_doc(self, data: dict[str, Any], list_id: str) -> dict[str, Any]:
        doc = data["lists"].get(list_id)
        if doc is None:
            raise StoreError(f"List '{list_id}' does not exist")
        return doc

    def _write(self, list_id: str, mutate: Callable[[dict[str, Any]], None]) -> None:
        """Apply a change to one list's document, save, then notify subscribers."""
        data = self._load()
        doc = self._list_doc(data, list_id)
        mutate(doc)
        doc["meta"]["updated_at"] = datetime.now().isoformat()
        self._save(data)
        self.feed.notify(list_id)

    # --- Lists ---

    def get_list(self, list_id: str) -> ListMeta | None:
        doc = self._load()["lists"].get(list_id)
        if doc is None:
            return None
        return _parse_rows(ListMeta, [doc.get("meta")], f"list '{list_id}'")[0]

    def create_list(self, list_id: str, store_key: StoreKey) -> ListMeta:
        data = self._load()
        if list_id in data["lists"]:
            raise ConflictError(f"List '{list_id}' already exists")

        meta = ListMeta(id=list_id, store=store_key)
        data["lists"][list_id] = {
            "meta": meta.model_dump(mode="json"),
            "sections": [],
            "items": [],
            "recipes": [],
        }
        self._save(data)
        return meta

    def update_list_store(self, list_id: str, store_key: StoreKey) -> None:
        def mutate(doc: dict[str, Any]) -> None:
            doc["meta"]["store"] = store_key.value

        self._write(list_id, mutate)

    def delete_stale_lists(self, max_age: timedelta) -> int:
        """Delete lists not updated within ``max_age``. Returns the count."""
        data = self._load()
        cutoff = datetime.now() - max_age
        stale = [
            list_id
            for list_id, doc in data["lists"].items()
            if datetime.fromisoformat(doc["meta"]["updated_at"]) < cutoff
        ]
        for list_id in stale:
            del data["lists"][list_id]
        if stale:
            self._save(data)
        return len(stale)

    # --- Sections ---

    def list_sections(self, list_id: str) -> list[SectionRecord]:
        doc = self._load()["lists"].get(list_id)
        if doc is None:
            return []
        sections = _parse_rows(SectionRecord, doc.get("sections", []), f"sections of '{list_id}'")
        return sorted(sections, key=lambda s: s.sort_order)

    def upsert_sections(self, list_id: str, sections: Iterable[SectionRecord]) -> None:
        rows = [section.model_dump(mode="json") for section in sections]
        if not rows:
            return

        def mutate(doc: dict[str, Any]) -> None:
            _upsert_rows(doc["sections"], rows)

        self._write(list_id, mutate)

    def delete_sections(self, list_id: str, section_ids: Iterable[str]) -> None:
        ids = set(section_ids)
        if not ids:
            return

        def mutate(doc: dict[str, Any]) -> None:
            doc["sections"] = [row for row in doc["sections"] if row["id"] not in ids]

        self._write(list_id, mutate)

    # --- Items ---

    def list_items(self, list_id: str) -> list[ItemRecord]:
        doc = self._load()["lists"].get(list_id)
        if doc is None:
            return []
        return _parse_rows(ItemRecord, doc.get("items", []), f"items of '{list_id}'")

    def upsert_items(self, list_id: str, items: Iterable[ItemRecord]) -> None:
        rows = [item.model_dump(mode="json") for item in items]
        if not rows:
            return

        def mutate(doc: dict[str, Any]) -> None:
            _upsert_rows(doc["items"], rows)

        self._write(list_id, mutate)

    def delete_items(self, list_id: str, item_ids: Iterable[str]) -> None:
        ids = set(item_ids)
        if not ids:
            return

        def mutate(doc: dict[str, Any]) -> None:
            doc["items"] = [row for row in doc["items"] if row["id"] not in ids]

        self._write(list_id, mutate)

    # --- Recipes ---

    def list_recipes(self, list_id: str) -> list[Recipe]:
        doc = self._load()["lists"].get(list_id)
        if doc is None:
            return []
        recipes = _parse_rows(Recipe, doc.get("recipes", []), f"recipes of '{list_id}'")
        return sorted(recipes, key=lambda r: r.sort_order)

    def upsert_recipes(self, list_id: str, recipes: Iterable[Recipe]) -> None:
        rows = [recipe.model_dump(mode="json") for recipe in recipes]
        if not rows:
            return

        def mutate(doc: dict[str, Any]) -> None:
            _upsert_rows(doc.setdefault("recipes", []), rows)

        self._write(list_id, mutate)

    def delete_recipes(self, list_id: str, recipe_ids: Iterable[str]) -> None:
        ids = set(recipe_ids)
        if not ids:
            return

        def mutate(doc: dict[str, Any]) -> None:
            doc["recipes"] = [row for row in doc.get("recipes", []) if row["id"] not in ids]

        self._write(list_id, mutate)

    # --- Change feed ---

    def subscribe(self, list_id: str, on_change: Callable[[], None]) -> Unsubscribe:
        return self.feed.subscribe(list_id, on_change)


def _parse_rows(model: type[BaseModel], rows: Any, source: str) -> list[Any]:
    """Validate stored rows. A malformed row is a schema problem."""
    try:
        return [model(**row) for row in rows]
    except (ValidationError, KeyError, TypeError) as e:
        raise SchemaError(f"Malformed {source} in lists.json: {e}") from e


def _upsert_rows(existing: list[dict[str, Any]], rows: list[dict[str, Any]]) -> None:
    """Replace rows with matching ids in place and append the rest."""
    index = {row["id"]: i for i, row in enumerate(existing)}
    for row in rows:
        if row["id"] in index:
            existing[index[row["id"]]] = row
        else:
            index[row["id"]] = len(existing)
            existing.append(row)


def create_data_store(
    backend: BackendType = BackendType.JSON,
    data_dir: Path | None = None,
    db_path: Path | None = None,
) -> PersistenceProtocol:
    """Create a data store with the specified backend.

    Args:
        backend: Which backend to use (json or sqlite)
        data_dir: Directory for data files (used by JSON backend, also used
                  as base path for SQLite if db_path not specified)
        db_path: Path to SQLite database file (only used by SQLite backend)

    Returns:
        A DataStore or SQLiteStore instance
    """
    if backend == BackendType.SQLITE:
        from .sqlite_store import SQLiteStore

        if db_path is None:
            base_dir = data_dir or Path.cwd() / "data"
            db_path = base_dir / "grocery_board.db"
        return SQLiteStore(db_path=db_path)

    return DataStore(data_dir=data_dir)
