"""Tests for store section templates."""

from grocery_board.board import add_item, check_invariants
from grocery_board.models import StoreKey
from grocery_board.templates import (
    DEFAULT_STORE,
    FALLBACK_SECTION_ID,
    TEMPLATES,
    coerce_store_key,
    get_default_board,
    section_title,
    template_section_ids,
)


class TestTemplates:
    """Tests for the template tables."""

    def test_every_template_has_fallback(self):
        for store in StoreKey:
            assert FALLBACK_SECTION_ID in template_section_ids(store)

    def test_hemkop_adds_eggs_and_taco(self):
        willys = template_section_ids(StoreKey.WILLYS)
        hemkop = template_section_ids(StoreKey.HEMKOP)
        assert set(hemkop) - set(willys) == {"agg", "tacohyllan"}
        assert hemkop.index("agg") == hemkop.index("mejeri") + 1
        assert hemkop.index("tacohyllan") == hemkop.index("asiatiskt") + 1

    def test_section_ids_unique(self):
        for layout in TEMPLATES.values():
            ids = [section_id for section_id, _ in layout]
            assert len(ids) == len(set(ids))

    def test_section_title_lookup(self):
        assert section_title("mejeri") == "Mejeri"
        assert section_title("agg", StoreKey.WILLYS) == "Ägg"
        assert section_title("custom") == "custom"


class TestGetDefaultBoard:
    """Tests for get_default_board."""

    def test_board_matches_template(self):
        board = get_default_board(StoreKey.HEMKOP)
        assert board.column_order == template_section_ids(StoreKey.HEMKOP)
        assert board.items == {}
        assert check_invariants(board) == []

    def test_returns_fresh_board(self):
        """Changing one default board never affects the next."""
        first = get_default_board()
        first.columns["mejeri"].item_ids.append("x")
        first.column_order.pop()

        second = get_default_board()
        assert second.columns["mejeri"].item_ids == []
        assert second.column_order == template_section_ids(DEFAULT_STORE)

    def test_mutating_returned_board_keeps_template(self):
        board = add_item(get_default_board(), "mejeri", "Mjölk")
        assert board.items
        assert get_default_board().items == {}


class TestCoerceStoreKey:
    """Tests for coerce_store_key."""

    def test_known_values(self):
        assert coerce_store_key("hemkop") == StoreKey.HEMKOP
        assert coerce_store_key(" HEMKOP ") == StoreKey.HEMKOP
        assert coerce_store_key(StoreKey.WILLYS) == StoreKey.WILLYS

    def test_unknown_and_empty_use_default(self):
        assert coerce_store_key(None) == DEFAULT_STORE
        assert coerce_store_key("") == DEFAULT_STORE
        assert coerce_store_key("ica") == DEFAULT_STORE
