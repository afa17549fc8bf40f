"""Recipes saved on a shopping list."""

import logging
from typing import Any
from uuid import uuid4

from .data_store import PersistenceProtocol
from .models import Recipe, RecipeDetails
from .recipe_fetcher import coerce_https_url

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset(
    {"title", "url", "total_time", "ingredients", "instructions", "yields", "image_url", "host"}
)


class RecipeNotFoundError(Exception):
    """Raised when a recipe id is not on the list."""

    def __init__(self, recipe_id: str):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe '{recipe_id}' not found")


class RecipeBook:
    """Reads and edits one list's recipes. Newest recipes come first."""

    def __init__(self, store: PersistenceProtocol, list_id: str):
        self.store = store
        self.list_id = list_id

    def list(self) -> list[Recipe]:
        """Recipes ordered by sort_order."""
        return sorted(self.store.list_recipes(self.list_id), key=lambda r: r.sort_order)

    def get(self, recipe_id: str) -> Recipe:
        for recipe in self.store.list_recipes(self.list_id):
            if recipe.id == recipe_id:
                return recipe
        raise RecipeNotFoundError(recipe_id)

    def add(self, url: str, title: str = "", details: RecipeDetails | None = None) -> Recipe:
        """Save a recipe at the top of the list.

        Existing recipes move down one place. Details from the recipe service
        fill in the title when none is given.
        """
        url = coerce_https_url(url)
        if not url:
            raise ValueError("Recipe URL cannot be empty")

        recipe = Recipe(id=uuid4().hex[:8], title=title.strip(), url=url, sort_order=0)
        if details is not None:
            recipe = recipe.model_copy(
                update={
                    "title": recipe.title or (details.title or "").strip(),
                    "total_time": details.total_time,
                    "ingredients": list(details.ingredients),
                    "instructions": details.instructions,
                    "yields": details.yields,
                    "image_url": details.image_url,
                    "host": details.host,
                }
            )

        shifted = [
            existing.model_copy(update={"sort_order": index + 1})
            for index, existing in enumerate(self.list())
        ]
        self.store.upsert_recipes(self.list_id, [recipe, *shifted])
        logger.info(f"Added recipe {recipe.id} to list:{self.list_id}")
        return recipe

    def update(self, recipe_id: str, **fields: Any) -> Recipe:
        """Change a recipe's fields.

        Raises:
            RecipeNotFoundError: If the recipe is not on the list
            ValueError: If a field cannot be edited
        """
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update recipe fields: {', '.join(sorted(unknown))}")
        if "url" in fields:
            fields["url"] = coerce_https_url(fields["url"] or "")
            if not fields["url"]:
                raise ValueError("Recipe URL cannot be empty")
        if "title" in fields:
            fields["title"] = (fields["title"] or "").strip()

        recipe = self.get(recipe_id).model_copy(update=fields)
        self.store.upsert_recipes(self.list_id, [recipe])
        return recipe

    def remove(self, recipe_id: str) -> Recipe:
        """Delete a recipe and return it."""
        recipe = self.get(recipe_id)
        self.store.delete_recipes(self.list_id, [recipe_id])
        logger.info(f"Removed recipe {recipe_id} from list:{self.list_id}")
        return recipe
