"""Output formatting for CLI and programmatic use."""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for output."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


class OutputFormatter:
    """Formats output for both Rich terminal and JSON modes."""

    def __init__(self, json_mode: bool = False):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode
        self.console = Console()

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Output data in appropriate format.

        Args:
            data: Data to output
            message: Optional message for Rich mode
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        """Output as JSON to stdout."""
        print(json.dumps(data, cls=JSONEncoder, indent=2, ensure_ascii=False))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            if data.get("success", True):
                self.console.print(f"[green]✓[/green] {message}")
            else:
                self.console.print(f"[yellow]⚠[/yellow] {message}")

        payload = data.get("data", {})
        if "list" in payload:
            self._render_board(payload["list"])
        elif "flat" in payload:
            self._render_flat(payload["flat"])
        elif "added" in payload:
            self._render_import(payload)
        elif "recipes" in payload:
            self._render_recipes(payload["recipes"])
        elif "recipe" in payload and isinstance(payload["recipe"], dict):
            self._render_recipe(payload["recipe"])
        elif "classification" in payload:
            self._render_classification(payload["classification"])

    def _render_board(self, board: dict) -> None:
        """Render a board as one table per non-empty section."""
        sections = [section for section in board["sections"] if section["items"]]
        if not sections:
            self.console.print("[dim]No items on the list[/dim]")
        else:
            for section in sections:
                table = Table(
                    title=section["title"],
                    title_justify="left",
                    show_header=False,
                    header_style="bold cyan",
                )
                table.add_column("", width=1)
                table.add_column("Item", style="cyan", no_wrap=False)
                table.add_column("ID", style="dim")

                for item in section["items"]:
                    if item["checked"]:
                        mark, text = "[green]✓[/green]", f"[strike dim]{item['text']}[/]"
                    else:
                        mark, text = "○", item["text"]
                    table.add_row(mark, text, item["id"][:8])

                self.console.print(table)

        stats = board["stats"]
        self.console.print(
            f"\n[bold]{board['id']}[/bold] ({board['store']}): "
            f"{stats['checked']}/{stats['total']} checked"
        )

    def _render_flat(self, items: list[dict]) -> None:
        """Render items across sections in shopping order."""
        if not items:
            self.console.print("[dim]No items on the list[/dim]")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("", width=1)
        table.add_column("Item", style="cyan")
        table.add_column("Section", style="yellow")
        table.add_column("ID", style="dim")

        for item in items:
            mark = "[green]✓[/green]" if item["checked"] else "○"
            table.add_row(mark, item["text"], item.get("section_id") or "-", item["id"][:8])

        self.console.print(table)

    def _render_import(self, result: dict) -> None:
        """Render the outcome of an ingredient import."""
        if result["added"]:
            table = Table(title="Added", show_header=True, header_style="bold cyan")
            table.add_column("Ingredient", style="cyan")
            table.add_column("Section", style="yellow")
            for item in result["added"]:
                table.add_row(item["text"], item["section_id"])
            self.console.print(table)

        if result.get("duplicates"):
            self.console.print(
                f"[yellow]Already on the list:[/yellow] {', '.join(result['duplicates'])}"
            )
        if result.get("skipped"):
            self.console.print(f"[dim]Skipped: {', '.join(result['skipped'])}[/dim]")

    def _render_recipes(self, recipes: list[dict]) -> None:
        """Render saved recipes."""
        if not recipes:
            self.console.print("[dim]No saved recipes[/dim]")
            return

        table = Table(title="Recipes", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Title", style="cyan")
        table.add_column("Time", justify="right")
        table.add_column("Ingredients", justify="right")
        table.add_column("Source", style="green")

        for recipe in recipes:
            table.add_row(
                recipe["id"],
                recipe.get("title") or "-",
                f"{recipe['total_time']} min" if recipe.get("total_time") else "-",
                str(len(recipe.get("ingredients") or [])),
                recipe.get("host") or recipe["url"],
            )

        self.console.print(table)

    def _render_recipe(self, recipe: dict) -> None:
        """Render a single recipe."""
        heading = recipe.get("title") or recipe["url"]
        panel_content = f"[bold]{heading}[/bold]\n\nURL: {recipe['url']}"

        if recipe.get("yields"):
            panel_content += f"\nYields: {recipe['yields']}"
        if recipe.get("total_time"):
            panel_content += f"\nTime: {recipe['total_time']} min"

        ingredients = recipe.get("ingredients") or []
        if ingredients:
            panel_content += "\n\n" + "\n".join(f"• {line}" for line in ingredients)

        self.console.print(Panel(panel_content, title="Recipe", border_style="green"))

    def _render_classification(self, results: list[dict]) -> None:
        """Render classifier output."""
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Line", style="cyan")
        table.add_column("Normalized")
        table.add_column("Section", style="yellow")

        for result in results:
            normalized = result["normalized"] or "[dim]-[/dim]"
            table.add_row(result["line"], normalized, result["column_id"])

        self.console.print(table)

    def error(self, message: str, error_code: str | None = None) -> None:
        """Output error message.

        Args:
            message: Error message
            error_code: Optional error code
        """
        if self.json_mode:
            output = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            print(json.dumps(output, ensure_ascii=False))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

    def success(self, message: str, data: dict | None = None) -> None:
        """Output success message.

        Args:
            message: Success message
            data: Optional data to include
        """
        if self.json_mode:
            output: dict[str, Any] = {"success": True, "message": message}
            if data:
                output["data"] = data
            print(json.dumps(output, cls=JSONEncoder, ensure_ascii=False))
        else:
            self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        """Output warning message.

        Args:
            message: Warning message
        """
        if self.json_mode:
            print(json.dumps({"warning": message}, ensure_ascii=False))
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
