"""Drag and drop resolution.

Dragging is two-phase. While the pointer hovers, ``on_drag_over`` moves the
dragged item into whichever section it is over, so the board gives live
feedback across sections. Reordering inside a section is only committed on
release by ``on_drag_end``.
"""

from .board import find_container
from .models import Board


def _resolve_target(board: Board, over_id: str) -> tuple[str | None, bool]:
    over_is_section = over_id in board.columns
    container = over_id if over_is_section else find_container(board, over_id)
    return container, over_is_section


def on_drag_over(board: Board, active_id: str, over_id: str | None) -> Board:
    """Provisionally move the dragged item into the hovered section.

    Hovering a section appends the item to it; hovering an item inserts at
    that item's position. Hovering within the item's own section does nothing.
    """
    if over_id is None:
        return board

    active_container = find_container(board, active_id)
    over_container, over_is_section = _resolve_target(board, over_id)
    if active_container is None or over_container is None:
        return board
    if active_container == active_id or active_container == over_container:
        return board

    next_board = board.model_copy(deep=True)
    source = next_board.columns[active_container]
    source.item_ids = [x for x in source.item_ids if x != active_id]

    over_items = next_board.columns[over_container].item_ids
    over_index = len(over_items) if over_is_section else over_items.index(over_id)
    over_items.insert(over_index, active_id)
    return next_board


def on_drag_end(board: Board, active_id: str, over_id: str | None) -> Board:
    """Commit a reorder when the item is dropped within its own section."""
    if over_id is None:
        return board

    container = find_container(board, active_id)
    over_container, _ = _resolve_target(board, over_id)
    if container is None or over_container is None or container != over_container:
        return board

    item_ids = board.columns[container].item_ids
    if active_id not in item_ids or over_id not in item_ids:
        return board

    old_index = item_ids.index(active_id)
    new_index = item_ids.index(over_id)
    if old_index == new_index:
        return board

    next_board = board.model_copy(deep=True)
    reordered = next_board.columns[container].item_ids
    reordered.insert(new_index, reordered.pop(old_index))
    return next_board
