"""Duplicate item detection."""

from .item_normalizer import fold_text
from .models import Board


def find_duplicate(board: Board, candidate_text: str) -> str | None:
    """Return the id of an existing item with the same text, ignoring case and padding."""
    folded = fold_text(candidate_text)
    if not folded:
        return None

    for item_id, item in board.items.items():
        if fold_text(item.text) == folded:
            return item_id
    return None
