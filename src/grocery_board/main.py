"""CLI entry point for Grocery Board."""

import sys
from datetime import timedelta
from pathlib import Path
from typing import Annotated

import typer

from .categorizer import classify as classify_line
from .config import ConfigManager
from .data_store import PersistenceProtocol, StoreError, create_data_store
from .list_manager import (
    DuplicateItemError,
    ItemNotFoundError,
    ListManager,
    SectionNotFoundError,
)
from .logging_config import LoggingContext, configure_logging
from .models import CheckFilter, StoreKey
from .output_formatter import OutputFormatter
from .recipe_book import RecipeBook, RecipeNotFoundError
from .recipe_fetcher import RecipeFetcher, RecipeFetchError
from .sync import BoardSync, InitializationError

app = typer.Typer(
    name="grocery-board",
    help="Shared, categorized shopping lists",
    no_args_is_help=True,
)

# Global state for formatter and config (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
data_store: PersistenceProtocol | None = None
list_id: str = "default"


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def get_data_store() -> PersistenceProtocol:
    """Get or create the data store using config values."""
    global data_store
    if data_store is None:
        cfg = get_config()
        data_store = create_data_store(backend=cfg.data.backend, data_dir=cfg.data.storage_dir)
    return data_store


def open_sync(store_key: StoreKey | None = None) -> BoardSync:
    """Load the current list, exiting with INIT_FAILED if that is impossible."""
    sync = BoardSync(
        get_data_store(),
        list_id,
        store_key=store_key,
        default_store=get_config().defaults.store,
    )
    try:
        sync.load()
    except InitializationError as e:
        formatter.error(str(e), error_code="INIT_FAILED")
        raise typer.Exit(code=1)
    return sync


def get_list_manager() -> ListManager:
    """Create a ListManager for the current list."""
    return ListManager(open_sync())


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path")] = None,
    list_name: Annotated[
        str | None, typer.Option("--list", "-l", help="List to work on")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output")] = False,
) -> None:
    """Grocery Board CLI - Shopping lists sorted by store section."""
    global formatter, config, data_store, list_id

    formatter = OutputFormatter(json_mode=json_output)

    # Load config early
    config = ConfigManager()
    configure_logging(
        "DEBUG" if verbose else config.logging.level,
        json_format=config.logging.format == "json",
    )

    # CLI --data-dir overrides config, which overrides default
    effective_data_dir = data_dir if data_dir else config.data.storage_dir
    try:
        data_store = create_data_store(backend=config.data.backend, data_dir=effective_data_dir)
    except StoreError as e:
        formatter.error(f"Could not open the data store: {e}", error_code="INIT_FAILED")
        raise typer.Exit(code=1)
    list_id = list_name or config.defaults.list


@app.command()
def show(
    check_filter: Annotated[
        CheckFilter, typer.Option("--filter", help="Which items to show")
    ] = CheckFilter.ALL,
    flat: Annotated[bool, typer.Option("--flat", help="One list in shopping order")] = False,
) -> None:
    """View the shopping list."""
    with LoggingContext(list_id=list_id):
        manager = get_list_manager()
        try:
            if flat:
                formatter.output(
                    {"success": True, "data": {"flat": manager.get_flat_list(check_filter)}}
                )
            else:
                formatter.output(manager.get_board(check_filter))
        except Exception as e:
            formatter.error(str(e))
            raise typer.Exit(code=1)


@app.command()
def add(
    text: Annotated[str, typer.Argument(help="Item to add")],
    section: Annotated[
        str | None, typer.Option("--section", "-s", help="Section id (default: classified)")
    ] = None,
    force: Annotated[bool, typer.Option("--force", "-f", help="Allow duplicate items")] = False,
) -> None:
    """Add an item to the shopping list."""
    with LoggingContext(list_id=list_id):
        manager = get_list_manager()
        try:
            result = manager.add_item(
                text,
                section_id=section or get_config().defaults.section,
                allow_duplicate=force,
            )
            formatter.output(result, result["message"])
        except DuplicateItemError as e:
            formatter.error(str(e), error_code="DUPLICATE_ITEM")
            raise typer.Exit(code=1)
        except Exception as e:
            formatter.error(str(e))
            raise typer.Exit(code=1)


def _run_item_command(action) -> None:
    with LoggingContext(list_id=list_id):
        manager = get_list_manager()
        try:
            result = action(manager)
            formatter.output(result, result["message"])
        except ItemNotFoundError as e:
            formatter.error(str(e), error_code="ITEM_NOT_FOUND")
            raise typer.Exit(code=1)
        except SectionNotFoundError as e:
            formatter.error(str(e), error_code="SECTION_NOT_FOUND")
            raise typer.Exit(code=1)
        except Exception as e:
            formatter.error(str(e))
            raise typer.Exit(code=1)


@app.command()
def toggle(
    item_id: Annotated[str, typer.Argument(help="Item ID (or a unique prefix)")],
) -> None:
    """Check or uncheck an item."""
    _run_item_command(lambda manager: manager.toggle_item(item_id))


@app.command()
def edit(
    item_id: Annotated[str, typer.Argument(help="Item ID (or a unique prefix)")],
    text: Annotated[str, typer.Argument(help="New text")],
) -> None:
    """Change an item's text."""
    _run_item_command(lambda manager: manager.edit_item(item_id, text))


@app.command()
def remove(
    item_id: Annotated[str, typer.Argument(help="Item ID (or a unique prefix)")],
) -> None:
    """Remove an item from the shopping list."""
    _run_item_command(lambda manager: manager.remove_item(item_id))


@app.command()
def move(
    item_id: Annotated[str, typer.Argument(help="Item ID (or a unique prefix)")],
    section: Annotated[str, typer.Argument(help="Target section id")],
    index: Annotated[int, typer.Option("--index", "-i", help="Position in the section")] = 0,
) -> None:
    """Move an item to another section or position."""
    _run_item_command(lambda manager: manager.move_item(item_id, section, index))


@app.command()
def clear(
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Remove every item from the list."""
    if not confirm and not formatter.json_mode:
        typer.confirm(f"Remove all items from '{list_id}'?", abort=True)

    _run_item_command(lambda manager: manager.clear())


@app.command()
def reset(
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete every stored item of the list, including ones not yet seen."""
    if not confirm and not formatter.json_mode:
        typer.confirm(f"Delete all stored items of '{list_id}'?", abort=True)

    with LoggingContext(list_id=list_id):
        sync = open_sync()
        sync.reset()
        if sync.last_error:
            formatter.error(sync.last_error)
            raise typer.Exit(code=1)
        formatter.success(f"Reset list {list_id}")


@app.command()
def store(
    store_key: Annotated[StoreKey, typer.Argument(help="Store layout to use")],
) -> None:
    """Switch the list to another store's section layout."""
    with LoggingContext(list_id=list_id):
        sync = open_sync()
        sync.switch_store(store_key)
        if sync.last_error:
            formatter.error(sync.last_error)
            raise typer.Exit(code=1)
        formatter.success(
            f"Switched {list_id} to {store_key.value}",
            {"store": store_key.value, "sections": sync.board.column_order},
        )


@app.command()
def classify(
    lines: Annotated[list[str], typer.Argument(help="Ingredient lines")],
    store_key: Annotated[
        StoreKey | None, typer.Option("--store", "-s", help="Store layout")
    ] = None,
) -> None:
    """Show which section ingredient lines would go to."""
    layout = store_key or get_config().defaults.store
    results = []
    for line in lines:
        classification = classify_line(line, layout)
        results.append(
            {
                "line": line,
                "normalized": classification.normalized,
                "column_id": classification.column_id,
            }
        )
    formatter.output({"success": True, "data": {"classification": results}})


@app.command(name="import")
def import_ingredients(
    file: Annotated[
        Path | None, typer.Argument(help="File with one ingredient per line (default: stdin)")
    ] = None,
    store_key: Annotated[
        StoreKey | None, typer.Option("--store", "-s", help="Classify for this store layout")
    ] = None,
) -> None:
    """Add ingredient lines, each sorted into its section."""
    try:
        if file is None:
            text = sys.stdin.read()
        else:
            text = file.read_text(encoding="utf-8")
    except OSError as e:
        formatter.error(f"Cannot read {file}: {e}")
        raise typer.Exit(code=1)

    with LoggingContext(list_id=list_id):
        manager = get_list_manager()
        result = manager.import_ingredients(text.splitlines(), store_key=store_key)
        formatter.output(result, result["message"])
        if not result["success"]:
            raise typer.Exit(code=1)


@app.command()
def cleanup(
    days: Annotated[
        int | None, typer.Option("--days", "-d", help="Delete lists idle this many days")
    ] = None,
) -> None:
    """Delete lists that have not been changed for a while."""
    max_age_days = days if days is not None else get_config().cleanup.max_age_days
    try:
        deleted = get_data_store().delete_stale_lists(timedelta(days=max_age_days))
    except StoreError as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)
    formatter.success(f"Deleted {deleted} old lists", {"deleted": deleted})


# --- Recipe commands ---

recipe_app = typer.Typer(help="Saved recipe commands")
app.add_typer(recipe_app, name="recipe")


@recipe_app.command("add")
def recipe_add(
    url: Annotated[str, typer.Argument(help="Recipe page URL")],
    title: Annotated[str, typer.Option("--title", "-t", help="Recipe title")] = "",
    fetch: Annotated[
        bool, typer.Option("--fetch/--no-fetch", help="Parse the page with the recipe service")
    ] = True,
    add_ingredients: Annotated[
        bool, typer.Option("--add-ingredients", "-a", help="Add the ingredients to the list")
    ] = False,
) -> None:
    """Save a recipe, optionally adding its ingredients to the list."""
    cfg = get_config()
    details = None

    with LoggingContext(list_id=list_id):
        if fetch:
            if not cfg.recipes.service_url:
                formatter.error(
                    "Recipe service URL is not configured (set RECIPE_SERVICE_URL)",
                    error_code="RECIPE_FETCH_FAILED",
                )
                raise typer.Exit(code=1)
            try:
                fetcher = RecipeFetcher(cfg.recipes.service_url, timeout=cfg.recipes.timeout)
                with fetcher:
                    details = fetcher.fetch_ingredients(url)
            except RecipeFetchError as e:
                formatter.error(
                    f"{e.message} ({e.status.value})", error_code="RECIPE_FETCH_FAILED"
                )
                raise typer.Exit(code=1)

        # Recipes hang off the list row, so the list must exist first
        sync = open_sync()
        try:
            recipe = RecipeBook(sync.store, list_id).add(url, title=title, details=details)
        except (ValueError, StoreError) as e:
            formatter.error(str(e))
            raise typer.Exit(code=1)
        formatter.output(
            {"success": True, "data": {"recipe": recipe.model_dump(mode="json")}},
            f"Saved recipe {recipe.title or recipe.url}",
        )

        if add_ingredients and details is not None and details.ingredients:
            result = ListManager(sync).import_ingredients(details.ingredients)
            formatter.output(result, result["message"])


@recipe_app.command("list")
def recipe_list() -> None:
    """List saved recipes."""
    try:
        recipes = RecipeBook(get_data_store(), list_id).list()
    except StoreError as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)
    formatter.output(
        {"success": True, "data": {"recipes": [r.model_dump(mode="json") for r in recipes]}}
    )


@recipe_app.command("remove")
def recipe_remove(
    recipe_id: Annotated[str, typer.Argument(help="Recipe ID")],
) -> None:
    """Remove a saved recipe."""
    try:
        recipe = RecipeBook(get_data_store(), list_id).remove(recipe_id)
    except RecipeNotFoundError as e:
        formatter.error(str(e), error_code="RECIPE_NOT_FOUND")
        raise typer.Exit(code=1)
    except StoreError as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)
    formatter.success(f"Removed recipe {recipe.title or recipe.url}")


if __name__ == "__main__":
    app()
