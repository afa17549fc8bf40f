"""Pure board operations.

Every function takes a Board and returns a Board. Inputs are never mutated:
a changed board is a deep copy, and a rejected operation (empty text, unknown
id, missing section) returns the input unchanged instead of raising.
"""

from uuid import uuid4

from .models import Board, BoardStats, CheckFilter, Item


def new_item_id() -> str:
    """Generate a globally unique item id."""
    return uuid4().hex


def find_container(board: Board, id_: str) -> str | None:
    """Return the section id for a section id, or the section holding an item."""
    if id_ in board.columns:
        return id_
    for col_id in board.column_order:
        section = board.columns.get(col_id)
        if section is not None and id_ in section.item_ids:
            return col_id
    return None


def add_item(board: Board, section_id: str, text: str, item_id: str | None = None) -> Board:
    """Add an unchecked item at the head of a section."""
    text = text.strip()
    if not text or section_id not in board.columns:
        return board

    item_id = item_id or new_item_id()
    if item_id in board.items:
        return board

    next_board = board.model_copy(deep=True)
    next_board.items[item_id] = Item(id=item_id, text=text, checked=False)
    next_board.columns[section_id].item_ids.insert(0, item_id)
    return next_board


def toggle_item(board: Board, item_id: str) -> Board:
    """Flip an item's checked flag."""
    if item_id not in board.items:
        return board

    next_board = board.model_copy(deep=True)
    item = next_board.items[item_id]
    item.checked = not item.checked
    return next_board


def edit_item_text(board: Board, item_id: str, new_text: str) -> Board:
    """Replace an item's text."""
    new_text = new_text.strip()
    if item_id not in board.items or not new_text:
        return board

    next_board = board.model_copy(deep=True)
    next_board.items[item_id].text = new_text
    return next_board


def delete_item(board: Board, item_id: str, section_id: str | None = None) -> Board:
    """Remove an item from the item map and from its section."""
    if item_id not in board.items:
        return board

    known = board.columns.get(section_id) if section_id is not None else None
    if known is None or item_id not in known.item_ids:
        section_id = find_container(board, item_id)

    next_board = board.model_copy(deep=True)
    next_board.items.pop(item_id, None)
    if section_id is not None:
        section = next_board.columns[section_id]
        section.item_ids = [x for x in section.item_ids if x != item_id]
    return next_board


def move_item(board: Board, item_id: str, target_section_id: str, target_index: int) -> Board:
    """Move an item to a position in a section.

    The index is clamped to the valid range of the target list after the
    item has been taken out, so moving within one section is a reorder.
    """
    source_id = find_container(board, item_id)
    if source_id is None or source_id == item_id or target_section_id not in board.columns:
        return board

    next_board = board.model_copy(deep=True)
    source = next_board.columns[source_id]
    source.item_ids = [x for x in source.item_ids if x != item_id]

    target = next_board.columns[target_section_id]
    index = max(0, min(target_index, len(target.item_ids)))
    target.item_ids.insert(index, item_id)
    return next_board


def clear_board(board: Board) -> Board:
    """Remove every item while keeping sections and their order."""
    next_board = board.model_copy(deep=True)
    next_board.items = {}
    for section in next_board.columns.values():
        section.item_ids = []
    return next_board


def check_invariants(board: Board) -> list[str]:
    """List every way the board violates its structural invariants."""
    problems: list[str] = []

    if len(set(board.column_order)) != len(board.column_order):
        problems.append("column_order contains duplicates")
    if set(board.column_order) != set(board.columns):
        problems.append("column_order does not match the section keys")

    owner: dict[str, str] = {}
    for col_id, section in board.columns.items():
        if section.id != col_id:
            problems.append(f"section {col_id!r} is stored under another id ({section.id!r})")
        for item_id in section.item_ids:
            if item_id not in board.items:
                problems.append(f"section {col_id!r} lists unknown item {item_id!r}")
            if item_id in owner:
                problems.append(
                    f"item {item_id!r} is listed by both {owner[item_id]!r} and {col_id!r}"
                )
            else:
                owner[item_id] = col_id

    for item_id, item in board.items.items():
        if item.id != item_id:
            problems.append(f"item {item_id!r} is stored under another id ({item.id!r})")
        if item_id not in owner:
            problems.append(f"item {item_id!r} is not in any section")

    return problems


def board_stats(board: Board) -> BoardStats:
    """Count items and checked items across all sections."""
    total = 0
    checked = 0
    for section in board.sections():
        for item_id in section.item_ids:
            item = board.items.get(item_id)
            if item is None:
                continue
            total += 1
            if item.checked:
                checked += 1
    return BoardStats(total=total, checked=checked)


def visible_item_ids(
    board: Board,
    check_filter: CheckFilter = CheckFilter.ALL,
    section_id: str | None = None,
) -> list[str]:
    """Item ids to show, for one section or the flat list of all sections."""
    if section_id is not None:
        sections = [board.columns[section_id]] if section_id in board.columns else []
    else:
        sections = board.sections()

    ids = [item_id for section in sections for item_id in section.item_ids]
    if check_filter == CheckFilter.ALL:
        return ids

    want_checked = check_filter == CheckFilter.CHECKED
    return [
        item_id
        for item_id in ids
        if item_id in board.items and board.items[item_id].checked == want_checked
    ]
