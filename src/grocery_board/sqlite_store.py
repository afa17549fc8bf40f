"""SQLite-based data persistence for Grocery Board.

This module provides SQLite database storage as an alternative to the JSON
file. It implements the same interface as DataStore for seamless switching.
"""

import json
import logging
import sqlite3
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path

from .data_store import ChangeFeed, ConflictError, SchemaError, StoreError, Unsubscribe
from .models import ItemRecord, ListMeta, Recipe, SectionRecord, StoreKey

logger = logging.getLogger(__name__)


class SQLiteStore:
    """Manages SQLite database persistence for shopping lists."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | None = None):
        """Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file. Defaults to ./data/grocery_board.db
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "grocery_board.db"
        self.db_path = db_path
        self.feed = ChangeFeed()
        self._ensure_directories()
        self._init_database()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper cleanup."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ConflictError(str(e)) from e
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database schema if not exists."""
        with self._get_connection() as conn:
            conn.executescript("""
                -- Schema version tracking
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                );

                -- Shopping lists
                CREATE TABLE IF NOT EXISTS grocery_lists (
                    id TEXT PRIMARY KEY,
                    store TEXT NOT NULL DEFAULT 'willys',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                -- Sections (columns) of a list
                CREATE TABLE IF NOT EXISTS list_columns (
                    list_id TEXT NOT NULL REFERENCES grocery_lists(id) ON DELETE CASCADE,
                    id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (list_id, id)
                );

                -- Items, ordered within their column
                CREATE TABLE IF NOT EXISTS list_items (
                    id TEXT PRIMARY KEY,
                    list_id TEXT NOT NULL REFERENCES grocery_lists(id) ON DELETE CASCADE,
                    column_id TEXT NOT NULL,
                    text TEXT NOT NULL,
                    checked INTEGER NOT NULL DEFAULT 0,
                    sort_order INTEGER NOT NULL DEFAULT 0
                );

                CREATE INDEX IF NOT EXISTS idx_list_items_list
                    ON list_items(list_id, column_id, sort_order);

                -- Recipes saved on a list
                CREATE TABLE IF NOT EXISTS recipes (
                    id TEXT PRIMARY KEY,
                    list_id TEXT NOT NULL REFERENCES grocery_lists(id) ON DELETE CASCADE,
                    title TEXT NOT NULL DEFAULT '',
                    url TEXT NOT NULL,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    total_time INTEGER,
                    ingredients TEXT,
                    instructions TEXT,
                    yields TEXT,
                    image_url TEXT,
                    host TEXT
                );

                -- Record schema version
                INSERT OR IGNORE INTO schema_version (version) VALUES (1);
            """)

            row = conn.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
            if row["version"] != self.SCHEMA_VERSION:
                raise SchemaError(
                    f"Database schema version {row['version']} is not supported "
                    f"(expected {self.SCHEMA_VERSION})"
                )

    def _touch(self, conn: sqlite3.Connection, list_id: str) -> None:
        cursor = conn.execute(
            "UPDATE grocery_lists SET updated_at = ? WHERE id = ?",
            (datetime.now().isoformat(), list_id),
        )
        if cursor.rowcount == 0:
            raise StoreError(f"List '{list_id}' does not exist")

    # --- Lists ---

    def get_list(self, list_id: str) -> ListMeta | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM grocery_lists WHERE id = ?",
                (list_id,),
            ).fetchone()

            if not row:
                return None

            return ListMeta(
                id=row["id"],
                store=StoreKey(row["store"]),
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )

    def create_list(self, list_id: str, store_key: StoreKey) -> ListMeta:
        meta = ListMeta(id=list_id, store=store_key)
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO grocery_lists (id, store, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    meta.id,
                    meta.store.value,
                    meta.created_at.isoformat(),
                    meta.updated_at.isoformat(),
                ),
            )
        return meta

    def update_list_store(self, list_id: str, store_key: StoreKey) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE grocery_lists SET store = ? WHERE id = ?",
                (store_key.value, list_id),
            )
            self._touch(conn, list_id)
        self.feed.notify(list_id)

    def delete_stale_lists(self, max_age: timedelta) -> int:
        """Delete lists not updated within ``max_age``. Returns the count."""
        cutoff = (datetime.now() - max_age).isoformat()
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM grocery_lists WHERE updated_at < ?",
                (cutoff,),
            )
            return cursor.rowcount

    # --- Sections ---

    def list_sections(self, list_id: str) -> list[SectionRecord]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM list_columns WHERE list_id = ? ORDER BY sort_order",
                (list_id,),
            ).fetchall()

            return [
                SectionRecord(id=row["id"], title=row["title"], sort_order=row["sort_order"])
                for row in rows
            ]

    def upsert_sections(self, list_id: str, sections: Iterable[SectionRecord]) -> None:
        sections = list(sections)
        if not sections:
            return

        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT INTO list_columns (list_id, id, title, sort_order)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(list_id, id) DO UPDATE SET
                    title = excluded.title,
                    sort_order = excluded.sort_order
                """,
                [(list_id, s.id, s.title, s.sort_order) for s in sections],
            )
            self._touch(conn, list_id)
        self.feed.notify(list_id)

    def delete_sections(self, list_id: str, section_ids: Iterable[str]) -> None:
        ids = list(section_ids)
        if not ids:
            return

        placeholders = ",".join("?" * len(ids))
        with self._get_connection() as conn:
            conn.execute(
                f"DELETE FROM list_columns WHERE list_id = ? AND id IN ({placeholders})",
                [list_id, *ids],
            )
            self._touch(conn, list_id)
        self.feed.notify(list_id)

    # --- Items ---

    def list_items(self, list_id: str) -> list[ItemRecord]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM list_items WHERE list_id = ? ORDER BY sort_order",
                (list_id,),
            ).fetchall()

            return [
                ItemRecord(
                    id=row["id"],
                    section_id=row["column_id"],
                    text=row["text"],
                    checked=bool(row["checked"]),
                    sort_order=row["sort_order"],
                )
                for row in rows
            ]

    def upsert_items(self, list_id: str, items: Iterable[ItemRecord]) -> None:
        items = list(items)
        if not items:
            return

        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT INTO list_items (id, list_id, column_id, text, checked, sort_order)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    list_id = excluded.list_id,
                    column_id = excluded.column_id,
                    text = excluded.text,
                    checked = excluded.checked,
                    sort_order = excluded.sort_order
                """,
                [
                    (i.id, list_id, i.section_id, i.text, int(i.checked), i.sort_order)
                    for i in items
                ],
            )
            self._touch(conn, list_id)
        self.feed.notify(list_id)

    def delete_items(self, list_id: str, item_ids: Iterable[str]) -> None:
        ids = list(item_ids)
        if not ids:
            return

        placeholders = ",".join("?" * len(ids))
        with self._get_connection() as conn:
            conn.execute(
                f"DELETE FROM list_items WHERE list_id = ? AND id IN ({placeholders})",
                [list_id, *ids],
            )
            self._touch(conn, list_id)
        self.feed.notify(list_id)

    # --- Recipes ---

    def list_recipes(self, list_id: str) -> list[Recipe]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM recipes WHERE list_id = ? ORDER BY sort_order",
                (list_id,),
            ).fetchall()

            return [
                Recipe(
                    id=row["id"],
                    title=row["title"],
                    url=row["url"],
                    sort_order=row["sort_order"],
                    total_time=row["total_time"],
                    ingredients=json.loads(row["ingredients"]) if row["ingredients"] else None,
                    instructions=row["instructions"],
                    yields=row["yields"],
                    image_url=row["image_url"],
                    host=row["host"],
                )
                for row in rows
            ]

    def upsert_recipes(self, list_id: str, recipes: Iterable[Recipe]) -> None:
        recipes = list(recipes)
        if not recipes:
            return

        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT OR REPLACE INTO recipes
                (id, list_id, title, url, sort_order, total_time, ingredients,
                 instructions, yields, image_url, host)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        r.id,
                        list_id,
                        r.title,
                        r.url,
                        r.sort_order,
                        r.total_time,
                        json.dumps(r.ingredients) if r.ingredients is not None else None,
                        r.instructions,
                        r.yields,
                        r.image_url,
                        r.host,
                    )
                    for r in recipes
                ],
            )
            self._touch(conn, list_id)
        self.feed.notify(list_id)

    def delete_recipes(self, list_id: str, recipe_ids: Iterable[str]) -> None:
        ids = list(recipe_ids)
        if not ids:
            return

        placeholders = ",".join("?" * len(ids))
        with self._get_connection() as conn:
            conn.execute(
                f"DELETE FROM recipes WHERE list_id = ? AND id IN ({placeholders})",
                [list_id, *ids],
            )
            self._touch(conn, list_id)
        self.feed.notify(list_id)

    # --- Change feed ---

    def subscribe(self, list_id: str, on_change: Callable[[], None]) -> Unsubscribe:
        return self.feed.subscribe(list_id, on_change)
