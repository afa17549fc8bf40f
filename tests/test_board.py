"""Tests for pure board operations."""

import random

import pytest

from grocery_board.board import (
    add_item,
    board_stats,
    check_invariants,
    clear_board,
    delete_item,
    edit_item_text,
    find_container,
    move_item,
    new_item_id,
    toggle_item,
    visible_item_ids,
)
from grocery_board.drag import on_drag_end, on_drag_over
from grocery_board.models import CheckFilter, StoreKey
from grocery_board.sync import remap_board_to_template
from grocery_board.templates import get_default_board


class TestAddItem:
    """Tests for add_item."""

    def test_adds_at_head(self, sample_board):
        """Newest items are shown first."""
        board = add_item(sample_board, "mejeri", "Grädde", item_id="gradde")
        assert board.columns["mejeri"].item_ids == ["gradde", "mjolk", "smor"]
        assert board.items["gradde"].checked is False

    def test_trims_text(self, sample_board):
        board = add_item(sample_board, "mejeri", "  Grädde  ", item_id="gradde")
        assert board.items["gradde"].text == "Grädde"

    def test_generates_unique_ids(self):
        board = get_default_board()
        board = add_item(board, "mejeri", "a")
        board = add_item(board, "mejeri", "b")
        assert len(board.items) == 2
        assert len(set(board.columns["mejeri"].item_ids)) == 2

    @pytest.mark.parametrize("text", ["", "   ", "\n"])
    def test_empty_text_is_noop(self, sample_board, text):
        assert add_item(sample_board, "mejeri", text) is sample_board

    def test_missing_section_is_noop(self, sample_board):
        assert add_item(sample_board, "nope", "Grädde") is sample_board

    def test_existing_id_is_noop(self, sample_board):
        assert add_item(sample_board, "brod", "Bröd", item_id="mjolk") is sample_board

    def test_input_not_mutated(self, sample_board):
        before = sample_board.model_dump()
        add_item(sample_board, "mejeri", "Grädde")
        assert sample_board.model_dump() == before


class TestToggleAndEdit:
    """Tests for toggle_item and edit_item_text."""

    def test_toggle_twice_is_identity(self, sample_board):
        board = toggle_item(toggle_item(sample_board, "mjolk"), "mjolk")
        assert board == sample_board

    def test_toggle_flips_checked(self, sample_board):
        assert toggle_item(sample_board, "mjolk").items["mjolk"].checked is True

    def test_toggle_unknown_is_noop(self, sample_board):
        assert toggle_item(sample_board, "nope") is sample_board

    def test_edit_stores_trimmed_text(self, sample_board):
        board = edit_item_text(sample_board, "mjolk", "  Havremjölk ")
        assert board.items["mjolk"].text == "Havremjölk"
        assert board.columns["mejeri"].item_ids == ["mjolk", "smor"]

    def test_edit_empty_or_unknown_is_noop(self, sample_board):
        assert edit_item_text(sample_board, "mjolk", "   ") is sample_board
        assert edit_item_text(sample_board, "nope", "x") is sample_board


class TestDeleteItem:
    """Tests for delete_item."""

    def test_removes_from_map_and_section(self, sample_board):
        board = delete_item(sample_board, "mjolk")
        assert "mjolk" not in board.items
        assert board.columns["mejeri"].item_ids == ["smor"]
        assert check_invariants(board) == []

    def test_delete_is_terminal(self, sample_board):
        """Later operations on a deleted id change nothing."""
        board = delete_item(sample_board, "mjolk")
        assert toggle_item(board, "mjolk") is board
        assert edit_item_text(board, "mjolk", "x") is board
        assert move_item(board, "mjolk", "brod", 0) is board
        assert find_container(board, "mjolk") is None

    def test_wrong_section_hint_still_deletes(self, sample_board):
        board = delete_item(sample_board, "lok", section_id="mejeri")
        assert "lok" not in board.items
        assert board.columns["frukt_gront"].item_ids == []
        assert board.columns["mejeri"].item_ids == ["mjolk", "smor"]

    def test_unknown_is_noop(self, sample_board):
        assert delete_item(sample_board, "nope") is sample_board


class TestMoveItem:
    """Tests for move_item."""

    def test_move_across_sections(self, sample_board):
        board = move_item(sample_board, "lok", "mejeri", 1)
        assert board.columns["mejeri"].item_ids == ["mjolk", "lok", "smor"]
        assert board.columns["frukt_gront"].item_ids == []

    def test_index_is_clamped(self, sample_board):
        board = move_item(sample_board, "lok", "mejeri", 99)
        assert board.columns["mejeri"].item_ids == ["mjolk", "smor", "lok"]
        board = move_item(sample_board, "lok", "mejeri", -5)
        assert board.columns["mejeri"].item_ids == ["lok", "mjolk", "smor"]

    def test_same_section_is_reorder(self, sample_board):
        board = move_item(sample_board, "mjolk", "mejeri", 1)
        assert board.columns["mejeri"].item_ids == ["smor", "mjolk"]

    def test_unknown_target_is_noop(self, sample_board):
        assert move_item(sample_board, "mjolk", "nope", 0) is sample_board

    def test_moving_a_section_id_is_noop(self, sample_board):
        assert move_item(sample_board, "mejeri", "brod", 0) is sample_board


class TestClearAndStats:
    """Tests for clear_board, board_stats and visible_item_ids."""

    def test_clear_keeps_sections(self, sample_board):
        board = clear_board(sample_board)
        assert board.items == {}
        assert board.column_order == sample_board.column_order
        assert all(not section.item_ids for section in board.sections())

    def test_stats(self, sample_board):
        board = toggle_item(sample_board, "smor")
        stats = board_stats(board)
        assert (stats.total, stats.checked, stats.unchecked) == (3, 1, 2)

    def test_visible_ids_flat_in_section_order(self, sample_board):
        assert visible_item_ids(sample_board) == ["lok", "mjolk", "smor"]

    def test_visible_ids_filtered(self, sample_board):
        board = toggle_item(sample_board, "smor")
        assert visible_item_ids(board, CheckFilter.CHECKED) == ["smor"]
        assert visible_item_ids(board, CheckFilter.UNCHECKED) == ["lok", "mjolk"]
        assert visible_item_ids(board, CheckFilter.UNCHECKED, "mejeri") == ["mjolk"]
        assert visible_item_ids(board, section_id="nope") == []


class TestFindContainer:
    """Tests for find_container."""

    def test_section_id_returns_itself(self, sample_board):
        assert find_container(sample_board, "mejeri") == "mejeri"

    def test_item_returns_owner(self, sample_board):
        assert find_container(sample_board, "lok") == "frukt_gront"

    def test_unknown_returns_none(self, sample_board):
        assert find_container(sample_board, "nope") is None


class TestCheckInvariants:
    """Tests for check_invariants."""

    def test_detects_item_in_two_sections(self, sample_board):
        broken = sample_board.model_copy(deep=True)
        broken.columns["brod"].item_ids.append("mjolk")
        assert any("listed by both" in p for p in check_invariants(broken))

    def test_detects_dangling_and_orphan(self, sample_board):
        broken = sample_board.model_copy(deep=True)
        broken.columns["brod"].item_ids.append("ghost")
        broken.columns["mejeri"].item_ids.remove("smor")
        problems = check_invariants(broken)
        assert any("unknown item 'ghost'" in p for p in problems)
        assert any("'smor' is not in any section" in p for p in problems)

    def test_detects_column_order_mismatch(self, sample_board):
        broken = sample_board.model_copy(deep=True)
        broken.column_order.append("mejeri")
        assert check_invariants(broken)


class TestRandomOperationSequences:
    """Invariants hold after any sequence of operations."""

    @pytest.mark.parametrize("seed", range(25))
    def test_invariants_hold(self, seed):
        rng = random.Random(seed)
        board = get_default_board(rng.choice(list(StoreKey)))

        for _ in range(200):
            sections = list(board.column_order) + ["missing"]
            ids = list(board.items) + ["ghost", new_item_id()]
            targets = ids + sections + [None]
            op = rng.randrange(8)
            if op == 0:
                text = rng.choice(["Mjölk", " ägg ", "", "   ", "bröd"])
                board = add_item(board, rng.choice(sections), text)
            elif op == 1:
                board = toggle_item(board, rng.choice(ids))
            elif op == 2:
                board = edit_item_text(board, rng.choice(ids), rng.choice(["x", " ", "y "]))
            elif op == 3:
                board = delete_item(board, rng.choice(ids), rng.choice(sections + [None]))
            elif op == 4:
                board = move_item(
                    board, rng.choice(ids), rng.choice(sections), rng.randint(-3, 30)
                )
            elif op == 5:
                board = on_drag_over(board, rng.choice(ids), rng.choice(targets))
            elif op == 6:
                board = on_drag_end(board, rng.choice(ids), rng.choice(targets))
            elif rng.random() < 0.1:
                board = clear_board(board)
            elif rng.random() < 0.1:
                board = remap_board_to_template(board, rng.choice(list(StoreKey)))

            assert check_invariants(board) == []
