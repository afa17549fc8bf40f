"""Tests for recipes saved on a list."""

import pytest

from grocery_board.models import RecipeDetails, StoreKey
from grocery_board.recipe_book import RecipeBook, RecipeNotFoundError


@pytest.fixture
def recipe_book(any_store):
    any_store.create_list("kitchen", StoreKey.WILLYS)
    return RecipeBook(any_store, "kitchen")


class TestRecipeBook:
    """Tests for RecipeBook."""

    def test_add_coerces_url(self, recipe_book):
        recipe = recipe_book.add("example.com/pannkakor", title=" Pannkakor ")
        assert recipe.url == "https://example.com/pannkakor"
        assert recipe.title == "Pannkakor"
        assert recipe_book.list() == [recipe]

    def test_add_empty_url_raises(self, recipe_book):
        with pytest.raises(ValueError):
            recipe_book.add("   ")

    def test_newest_first(self, recipe_book):
        first = recipe_book.add("https://a.example")
        second = recipe_book.add("https://b.example")
        third = recipe_book.add("https://c.example")

        recipes = recipe_book.list()
        assert [r.id for r in recipes] == [third.id, second.id, first.id]
        assert [r.sort_order for r in recipes] == [0, 1, 2]

    def test_add_with_details(self, recipe_book):
        details = RecipeDetails(
            title="Tacos",
            ingredients=["8 tortillabröd", "400 g nötfärs"],
            total_time=25,
            host="example.com",
        )
        recipe = recipe_book.add("https://example.com/tacos", details=details)

        assert recipe.title == "Tacos"
        assert recipe.ingredients == ["8 tortillabröd", "400 g nötfärs"]
        assert recipe.total_time == 25
        assert recipe_book.get(recipe.id) == recipe

    def test_given_title_beats_details(self, recipe_book):
        recipe = recipe_book.add(
            "https://example.com/tacos", title="Fredagstacos", details=RecipeDetails(title="Tacos")
        )
        assert recipe.title == "Fredagstacos"

    def test_update(self, recipe_book):
        recipe = recipe_book.add("https://example.com/r")
        updated = recipe_book.update(recipe.id, title=" Soppa ", url="example.com/soppa")

        assert updated.title == "Soppa"
        assert updated.url == "https://example.com/soppa"
        assert recipe_book.get(recipe.id).title == "Soppa"

    def test_update_rejects_unknown_fields(self, recipe_book):
        recipe = recipe_book.add("https://example.com/r")
        with pytest.raises(ValueError):
            recipe_book.update(recipe.id, sort_order=5)
        with pytest.raises(ValueError):
            recipe_book.update(recipe.id, url=" ")

    def test_get_missing(self, recipe_book):
        with pytest.raises(RecipeNotFoundError) as exc_info:
            recipe_book.get("nope")
        assert exc_info.value.recipe_id == "nope"

    def test_remove(self, recipe_book):
        keep = recipe_book.add("https://a.example")
        gone = recipe_book.add("https://b.example")

        assert recipe_book.remove(gone.id) == gone
        assert [r.id for r in recipe_book.list()] == [keep.id]

        with pytest.raises(RecipeNotFoundError):
            recipe_book.remove(gone.id)
