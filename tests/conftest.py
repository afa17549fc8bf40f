"""Shared test fixtures for Grocery Board."""

import logging

import pytest

from grocery_board.board import add_item
from grocery_board.data_store import DataStore
from grocery_board.list_manager import ListManager
from grocery_board.models import StoreKey
from grocery_board.sqlite_store import SQLiteStore
from grocery_board.sync import BoardSync
from grocery_board.templates import get_default_board


@pytest.fixture(autouse=True)
def reset_package_logging():
    """Drop handlers the CLI installs so they do not outlive CliRunner streams."""
    yield
    package_logger = logging.getLogger("grocery_board")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def data_store(temp_data_dir):
    """Create a DataStore with temporary directory."""
    return DataStore(data_dir=temp_data_dir)


@pytest.fixture
def sqlite_store(tmp_path):
    """Create a SQLiteStore with a temporary database."""
    return SQLiteStore(db_path=tmp_path / "test.db")


@pytest.fixture(params=["json", "sqlite"])
def any_store(request, tmp_path):
    """Each persistence backend in turn."""
    if request.param == "sqlite":
        return SQLiteStore(db_path=tmp_path / "board.db")
    return DataStore(data_dir=tmp_path / "json_data")


@pytest.fixture
def sync(data_store):
    """A loaded BoardSync for a fresh list."""
    driver = BoardSync(data_store, "test-list")
    driver.load()
    yield driver
    driver.close()


@pytest.fixture
def list_manager(sync):
    """Create a ListManager on a fresh list."""
    return ListManager(sync)


@pytest.fixture
def sample_board():
    """A willys board with a few items in fixed positions.

    mejeri: [mjolk, smor], frukt_gront: [lok], everything else empty.
    """
    board = get_default_board(StoreKey.WILLYS)
    board = add_item(board, "mejeri", "Smör", item_id="smor")
    board = add_item(board, "mejeri", "Mjölk", item_id="mjolk")
    board = add_item(board, "frukt_gront", "Gul lök", item_id="lok")
    return board
