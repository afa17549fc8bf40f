"""Reconciliation between the in-memory board and the persistence store.

The board is always changed locally first (optimistically) and then written
to the store as a diff: items the store knows about but the board no longer
has are deleted, and every item on the board is upserted with a sort order
recomputed from its position. If a write fails, or another client changes the
list, the board is replaced by a full refetch. There is no merge: the last
snapshot fetched wins.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from .board import find_container
from .data_store import ConflictError, PersistenceProtocol, SchemaError, StoreError, Unsubscribe
from .models import Board, Item, ItemRecord, Section, SectionRecord, StoreKey
from .templates import (
    FALLBACK_SECTION_ID,
    TEMPLATES,
    coerce_store_key,
    get_default_board,
)

logger = logging.getLogger(__name__)

BoardUpdate = Board | Callable[[Board], Board]


class InitializationError(Exception):
    """Raised when a list cannot be loaded and the board must not be used."""


class SyncState(str, Enum):
    """Where the driver is in a sync round."""

    IDLE = "idle"
    OPTIMISTIC = "optimistic"
    PERSISTING = "persisting"
    RECONCILING = "reconciling"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncPlan:
    """Store writes needed to make the store match a board."""

    deletes: tuple[str, ...]
    upserts: tuple[ItemRecord, ...]


def compute_sync_plan(known_ids: Iterable[str], board: Board) -> SyncPlan:
    """Diff the store's item ids against a desired board.

    Args:
        known_ids: Item ids the store held at the last sync point
        board: The board the store should end up matching

    Returns:
        Deletes for ids missing from the board (in store order) and one upsert
        per board item with ``sort_order`` equal to its index in its section
    """
    deletes = tuple(item_id for item_id in known_ids if item_id not in board.items)

    upserts: list[ItemRecord] = []
    for section in board.sections():
        for index, item_id in enumerate(section.item_ids):
            item = board.items.get(item_id)
            if item is None:
                continue
            upserts.append(
                ItemRecord(
                    id=item.id,
                    section_id=section.id,
                    text=item.text,
                    checked=item.checked,
                    sort_order=index,
                )
            )

    return SyncPlan(deletes=deletes, upserts=tuple(upserts))


def board_from_records(
    sections: Iterable[SectionRecord],
    items: Iterable[ItemRecord],
    fallback_section_id: str = FALLBACK_SECTION_ID,
) -> Board:
    """Build a board from a store snapshot.

    Sections are ordered by ``sort_order`` and items are appended to their
    section by ``sort_order``. An item pointing at an unknown section goes to
    the fallback section, or the first section when there is no fallback.
    """
    board = Board()
    for record in sorted(sections, key=lambda s: s.sort_order):
        if record.id in board.columns:
            continue
        board.columns[record.id] = Section(id=record.id, title=record.title, item_ids=[])
        board.column_order.append(record.id)

    if not board.column_order:
        return board

    if fallback_section_id in board.columns:
        orphan_target = fallback_section_id
    else:
        orphan_target = board.column_order[0]

    for record in sorted(items, key=lambda i: i.sort_order):
        if record.id in board.items:
            continue
        section_id = record.section_id
        if section_id not in board.columns:
            logger.debug(f"Item {record.id} has unknown section {section_id!r}")
            section_id = orphan_target
        board.items[record.id] = Item(id=record.id, text=record.text, checked=record.checked)
        board.columns[section_id].item_ids.append(record.id)

    return board


def remap_board_to_template(board: Board, store_key: StoreKey) -> Board:
    """Lay a board out with another store's sections without losing items.

    Items in sections the template lacks are appended to the fallback
    section in their current order. Template sections the board lacks are
    added empty, and the remaining sections take the template's titles and
    order.
    """
    layout = TEMPLATES[store_key]
    template_ids = [section_id for section_id, _ in layout]

    next_board = Board(items={k: v.model_copy() for k, v in board.items.items()})
    for section_id, title in layout:
        existing = board.columns.get(section_id)
        item_ids = list(existing.item_ids) if existing is not None else []
        next_board.columns[section_id] = Section(id=section_id, title=title, item_ids=item_ids)
    next_board.column_order = template_ids

    fallback = next_board.columns[FALLBACK_SECTION_ID]
    for section in board.sections():
        if section.id not in next_board.columns:
            fallback.item_ids.extend(section.item_ids)

    return next_board


class BoardSync:
    """Keeps one list's board in step with the store.

    Usage::

        with BoardSync(store, "kitchen") as sync:  # loads and subscribes
            sync.apply(lambda board: toggle_item(board, item_id))
    """

    def __init__(
        self,
        store: PersistenceProtocol,
        list_id: str,
        store_key: StoreKey | str | None = None,
        default_store: StoreKey | str | None = None,
    ):
        """Create a driver for one list.

        Args:
            store: Persistence backend
            list_id: List to keep in sync
            store_key: Layout the list must use; load() switches an existing
                list to it, remapping items out of sections it lacks
            default_store: Layout for a list that does not exist yet
        """
        self.store = store
        self.list_id = list_id
        self.requested_store = coerce_store_key(store_key) if store_key else None
        self.store_key = self.requested_store or coerce_store_key(default_store)
        self.board = get_default_board(self.store_key)
        self.state = SyncState.IDLE
        self.last_error: str | None = None

        self._known_ids: list[str] = []
        self._unsubscribe: Unsubscribe | None = None
        self._loaded = False
        self._writing = False
        self._remote_pending = False
        self._pending_store: StoreKey | None = None

    def __enter__(self) -> "BoardSync":
        self.load()
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def known_ids(self) -> list[str]:
        """Item ids the store held at the last sync point."""
        return list(self._known_ids)

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    def _set_state(self, state: SyncState) -> None:
        if state != self.state:
            logger.debug(f"list:{self.list_id} {self.state.value} -> {state.value}")
        self.state = state

    def _fail(self, message: str, cause: Exception) -> InitializationError:
        self._loaded = False
        self._set_state(SyncState.FAILED)
        self.last_error = message
        logger.error(f"list:{self.list_id} {message}: {cause}")
        return InitializationError(f"{message}: {cause}")

    def _require_loaded(self) -> None:
        if not self._loaded or self.state == SyncState.FAILED:
            raise InitializationError(f"List '{self.list_id}' is not loaded")

    # --- Loading ---

    def load(self) -> Board:
        """Initialize the list if needed and fetch its board."""
        self.initialize_list()
        try:
            self.refetch()
        except StoreError as e:
            raise self._fail("Could not load the list", e) from e
        self._loaded = True
        self._set_state(SyncState.IDLE)
        if self._pending_store is not None:
            key, self._pending_store = self._pending_store, None
            self.switch_store(key)
        return self.board

    def initialize_list(self) -> None:
        """Create the list from its template and add any missing sections.

        Existing sections are never modified. A list created concurrently by
        another client counts as created.
        """
        try:
            meta = self.store.get_list(self.list_id)
            if meta is None:
                try:
                    meta = self.store.create_list(self.list_id, self.store_key)
                    logger.info(f"Created list:{self.list_id} ({self.store_key.value})")
                except ConflictError:
                    logger.debug(f"list:{self.list_id} was created concurrently")
                    meta = self.store.get_list(self.list_id)
                    if meta is None:
                        raise StoreError(f"List '{self.list_id}' vanished after creation")

            # The list keeps its current layout until load() remaps it
            self.store_key = meta.store
            if self.requested_store is not None and meta.store != self.requested_store:
                self._pending_store = self.requested_store

            existing = self.store.list_sections(self.list_id)
            existing_ids = {section.id for section in existing}
            next_order = max((section.sort_order for section in existing), default=-1) + 1

            missing: list[SectionRecord] = []
            for section_id, title in TEMPLATES[self.store_key]:
                if section_id in existing_ids:
                    continue
                missing.append(SectionRecord(id=section_id, title=title, sort_order=next_order))
                next_order += 1

            if missing:
                logger.debug(
                    f"Adding {len(missing)} missing sections to list:{self.list_id}"
                )
                self.store.upsert_sections(self.list_id, missing)
        except SchemaError as e:
            raise self._fail("The store schema is not usable", e) from e
        except StoreError as e:
            raise self._fail("Could not initialize the list", e) from e

    def refetch(self) -> Board:
        """Replace the board with a full snapshot from the store."""
        sections = self.store.list_sections(self.list_id)
        items = self.store.list_items(self.list_id)
        self.board = board_from_records(sections, items)
        self._known_ids = [record.id for record in items]
        logger.debug(
            f"Fetched list:{self.list_id} ({len(sections)} sections, {len(items)} items)"
        )
        return self.board

    # --- Local changes ---

    def apply(self, update: BoardUpdate) -> Board:
        """Apply a board change locally and write it to the store.

        Args:
            update: The new board, or a function from the current board to it

        Returns:
            The board after the round: the updated board on success, or the
            store's snapshot after a failed write
        """
        self._require_loaded()

        next_board = update(self.board) if callable(update) else update
        if next_board is self.board:
            return self.board

        self._set_state(SyncState.OPTIMISTIC)
        self.board = next_board
        plan = compute_sync_plan(self._known_ids, next_board)

        def write() -> None:
            self.store.delete_items(self.list_id, plan.deletes)
            self.store.upsert_items(self.list_id, plan.upserts)
            self._known_ids = [record.id for record in plan.upserts]

        self._persist(write)
        return self.board

    def switch_store(self, store_key: StoreKey | str) -> Board:
        """Move the list to another store's layout, keeping every item."""
        self._require_loaded()

        key = coerce_store_key(store_key)
        remapped = remap_board_to_template(self.board, key)
        orphaned = [col_id for col_id in self.board.columns if col_id not in remapped.columns]
        plan = compute_sync_plan(self._known_ids, remapped)
        section_records = [
            SectionRecord(id=section.id, title=section.title, sort_order=index)
            for index, section in enumerate(remapped.sections())
        ]

        self._set_state(SyncState.OPTIMISTIC)
        self.board = remapped

        def write() -> None:
            self.store.update_list_store(self.list_id, key)
            self.store.upsert_sections(self.list_id, section_records)
            self.store.upsert_items(self.list_id, plan.upserts)
            self.store.delete_items(self.list_id, plan.deletes)
            self.store.delete_sections(self.list_id, orphaned)

        if self._persist(write, refetch=True):
            self.store_key = key
            self.requested_store = key
            logger.info(f"list:{self.list_id} switched to {key.value}")
        return self.board

    def reset(self) -> Board:
        """Delete every item of the list. Sections are kept."""
        self._require_loaded()

        def write() -> None:
            stored = [record.id for record in self.store.list_items(self.list_id)]
            self.store.delete_items(self.list_id, stored)

        self._persist(write, refetch=True)
        return self.board

    def _persist(self, write: Callable[[], None], refetch: bool = False) -> bool:
        """Run store writes. Returns True when they all succeeded.

        A failed write is followed by a corrective refetch. Change
        notifications caused by our own writes are folded into one refetch
        after the writes finish.
        """
        self._set_state(SyncState.PERSISTING)
        self._writing = True
        self._remote_pending = False
        try:
            write()
        except StoreError as e:
            self._writing = False
            logger.warning(f"Persisting list:{self.list_id} failed, refetching: {e}")
            self.last_error = f"Could not save changes: {e}"
            self._reconcile()
            return False
        finally:
            self._writing = False

        self.last_error = None
        if refetch or self._remote_pending:
            self._reconcile()
        else:
            self._set_state(SyncState.IDLE)
        return True

    def _reconcile(self) -> None:
        self._remote_pending = False
        self._set_state(SyncState.RECONCILING)
        try:
            self.refetch()
        except StoreError as e:
            logger.warning(f"Refetching list:{self.list_id} failed: {e}")
            self.last_error = f"Could not refresh the list: {e}"
        self._set_state(SyncState.IDLE)

    # --- Remote changes ---

    def on_remote_change(self) -> None:
        """Change-feed callback: the list changed somewhere, refetch it."""
        if self._writing:
            self._remote_pending = True
            return
        if not self._loaded:
            return
        self._reconcile()

    def start(self) -> None:
        """Subscribe to the list's change feed."""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.list_id, self.on_remote_change)

    def close(self) -> None:
        """Unsubscribe from the change feed."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def section_of(self, item_id: str) -> str | None:
        """Section currently holding an item."""
        section_id = find_container(self.board, item_id)
        return None if section_id == item_id else section_id
