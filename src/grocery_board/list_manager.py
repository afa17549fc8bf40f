"""Shopping list operations on top of the sync driver."""

import logging
from collections.abc import Iterable

from . import board as ops
from .categorizer import classify
from .duplicates import find_duplicate
from .models import CheckFilter, Item, StoreKey
from .sync import BoardSync
from .templates import coerce_store_key

logger = logging.getLogger(__name__)

# Shortest id prefix accepted in place of a full item id.
MIN_ID_PREFIX = 4


class DuplicateItemError(Exception):
    """Raised when attempting to add a duplicate item."""

    def __init__(self, existing_item: Item, section_id: str | None = None):
        self.existing_item = existing_item
        self.section_id = section_id
        super().__init__(
            f"Item '{existing_item.text}' already exists on the list"
            + (f" (section: {section_id})" if section_id else "")
        )


class ItemNotFoundError(Exception):
    """Raised when an item is not found."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item with ID '{item_id}' not found")


class SectionNotFoundError(Exception):
    """Raised when a section is not on the board."""

    def __init__(self, section_id: str):
        self.section_id = section_id
        super().__init__(f"Section '{section_id}' not found")


class ListManager:
    """Manages shopping list operations for one list."""

    def __init__(self, sync: BoardSync):
        """Initialize list manager.

        Args:
            sync: A loaded BoardSync for the list to work on
        """
        self.sync = sync

    @property
    def board(self):
        return self.sync.board

    def _resolve_item_id(self, item_id: str) -> str:
        """Accept a full item id or a unique prefix of one."""
        items = self.sync.board.items
        if item_id in items:
            return item_id
        if len(item_id) >= MIN_ID_PREFIX:
            matches = [known for known in items if known.startswith(item_id)]
            if len(matches) == 1:
                return matches[0]
        raise ItemNotFoundError(item_id)

    def _result(self, message: str, **data) -> dict:
        if self.sync.last_error:
            return {"success": False, "message": self.sync.last_error, "data": data}
        return {"success": True, "message": message, "data": data}

    def add_item(
        self,
        text: str,
        section_id: str | None = None,
        allow_duplicate: bool = False,
    ) -> dict:
        """Add an item at the top of a section.

        Args:
            text: Item text
            section_id: Target section. When omitted the text is classified;
                an unknown section falls back to the first section.
            allow_duplicate: Whether to add even if the text is already listed

        Returns:
            Dict with success status and item data

        Raises:
            ValueError: If the text is empty
            DuplicateItemError: If duplicate found and not allowed
        """
        text = text.strip()
        if not text:
            raise ValueError("Item text cannot be empty")

        current = self.sync.board
        if not allow_duplicate:
            existing_id = find_duplicate(current, text)
            if existing_id is not None:
                raise DuplicateItemError(
                    current.items[existing_id], ops.find_container(current, existing_id)
                )

        if section_id is None:
            section_id = classify(text, self.sync.store_key, current).column_id
        if section_id not in current.columns:
            if not current.column_order:
                raise SectionNotFoundError(section_id)
            section_id = current.column_order[0]

        item_id = ops.new_item_id()
        self.sync.apply(lambda b: ops.add_item(b, section_id, text, item_id=item_id))

        item = self.sync.board.items.get(item_id, Item(id=item_id, text=text))
        return self._result(
            f"Added {text} to {current.columns[section_id].title}",
            item=item.model_dump(mode="json"),
            section_id=section_id,
        )

    def toggle_item(self, item_id: str) -> dict:
        """Check or uncheck an item.

        Raises:
            ItemNotFoundError: If item not found
        """
        item_id = self._resolve_item_id(item_id)
        self.sync.apply(lambda b: ops.toggle_item(b, item_id))

        item = self.sync.board.items.get(item_id)
        state = "checked" if item and item.checked else "unchecked"
        return self._result(
            f"Marked {item.text if item else item_id} as {state}",
            item=item.model_dump(mode="json") if item else None,
        )

    def edit_item(self, item_id: str, text: str) -> dict:
        """Replace an item's text.

        Raises:
            ItemNotFoundError: If item not found
            ValueError: If the new text is empty
        """
        item_id = self._resolve_item_id(item_id)
        if not text.strip():
            raise ValueError("Item text cannot be empty")

        self.sync.apply(lambda b: ops.edit_item_text(b, item_id, text))
        item = self.sync.board.items.get(item_id)
        return self._result(
            f"Updated item to {text.strip()}",
            item=item.model_dump(mode="json") if item else None,
        )

    def remove_item(self, item_id: str) -> dict:
        """Delete an item.

        Raises:
            ItemNotFoundError: If item not found
        """
        item_id = self._resolve_item_id(item_id)
        removed = self.sync.board.items[item_id]
        self.sync.apply(lambda b: ops.delete_item(b, item_id))
        return self._result(
            f"Removed {removed.text} from the list",
            item=removed.model_dump(mode="json"),
        )

    def move_item(self, item_id: str, section_id: str, index: int = 0) -> dict:
        """Move an item to a position in a section.

        Raises:
            ItemNotFoundError: If item not found
            SectionNotFoundError: If the section is not on the board
        """
        item_id = self._resolve_item_id(item_id)
        if section_id not in self.sync.board.columns:
            raise SectionNotFoundError(section_id)

        moved = self.sync.board.items[item_id]
        self.sync.apply(lambda b: ops.move_item(b, item_id, section_id, index))
        return self._result(
            f"Moved {moved.text} to {self.sync.board.columns[section_id].title}",
            item=moved.model_dump(mode="json"),
            section_id=section_id,
        )

    def clear(self) -> dict:
        """Remove every item, keeping the sections."""
        count = len(self.sync.board.items)
        self.sync.apply(ops.clear_board)
        return self._result(f"Cleared {count} items", removed=count)

    def import_ingredients(
        self,
        lines: Iterable[str],
        store_key: StoreKey | str | None = None,
    ) -> dict:
        """Classify ingredient lines and add them in one change.

        Lines that normalize to nothing are skipped. Lines matching an item
        already on the list are still added and reported as duplicates.
        """
        store = coerce_store_key(store_key) if store_key else self.sync.store_key
        working = self.sync.board
        added: list[dict] = []
        skipped: list[str] = []
        duplicates: list[str] = []

        for line in lines:
            text = line.strip()
            classification = classify(text, store, working)
            if not text or not classification.normalized:
                if text:
                    skipped.append(text)
                continue

            if find_duplicate(working, text) is not None:
                duplicates.append(text)

            item_id = ops.new_item_id()
            working = ops.add_item(working, classification.column_id, text, item_id=item_id)
            added.append({"id": item_id, "text": text, "section_id": classification.column_id})

        if added:
            self.sync.apply(working)
        logger.info(
            f"Imported {len(added)} ingredients to list:{self.sync.list_id} "
            f"({len(skipped)} skipped, {len(duplicates)} duplicates)"
        )

        return self._result(
            f"Imported {len(added)} ingredients",
            added=added,
            skipped=skipped,
            duplicates=duplicates,
        )

    def get_board(self, check_filter: CheckFilter = CheckFilter.ALL) -> dict:
        """Get the board as sections of items plus counts.

        Args:
            check_filter: Which items to include

        Returns:
            Dict with list data
        """
        current = self.sync.board
        sections = []
        for section in current.sections():
            ids = ops.visible_item_ids(current, check_filter, section.id)
            sections.append(
                {
                    "id": section.id,
                    "title": section.title,
                    "items": [current.items[i].model_dump(mode="json") for i in ids],
                }
            )

        stats = ops.board_stats(current)
        return {
            "success": True,
            "data": {
                "list": {
                    "id": self.sync.list_id,
                    "store": self.sync.store_key.value,
                    "filter": check_filter.value,
                    "sections": sections,
                    "stats": {
                        "total": stats.total,
                        "checked": stats.checked,
                        "unchecked": stats.unchecked,
                    },
                }
            },
        }

    def get_flat_list(self, check_filter: CheckFilter = CheckFilter.ALL) -> list[dict]:
        """Items in shopping order across all sections, with their section."""
        current = self.sync.board
        return [
            {
                **current.items[i].model_dump(mode="json"),
                "section_id": ops.find_container(current, i),
            }
            for i in ops.visible_item_ids(current, check_filter)
        ]
