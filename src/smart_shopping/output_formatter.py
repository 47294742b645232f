"""Output formatting for CLI and programmatic use."""

import json
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .share import COMPLETED_GLYPH, PENDING_GLYPH


def _format_ms(value: int | None) -> str:
    if value is None:
        return "-"
    return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M")


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
        print(json.dumps(data, indent=2, ensure_ascii=False))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            self.console.print(f"[green]✓[/green] {escape(message)}")

        payload = data.get("data", {})
        if "list" in payload:
            self._render_list(payload["list"])
        elif "lists" in payload:
            self._render_lists(payload["lists"])
        elif "items" in payload:
            self._render_added_items(payload["items"])
        elif "item" in payload and isinstance(payload["item"], dict):
            self._render_item(payload["item"])
        elif "by_category" in payload:
            self._render_by_category(payload["by_category"])
        elif "categories" in payload:
            self._render_categories(payload["categories"])
        elif "products" in payload:
            self._render_products(payload["products"])
        elif "product" in payload:
            self._render_products([payload["product"]])
        elif "preferences" in payload:
            self._render_preferences(payload["preferences"])
        elif "parsed" in payload:
            self._render_parsed(payload["parsed"])
        elif "validation" in payload:
            self._render_validation(payload["validation"])
        elif "restored" in payload:
            self._render_restored(payload["restored"])

    def _render_list(self, list_data: dict) -> None:
        """Render one list with its items."""
        items = list_data["items"]

        if not items:
            self.console.print(f"[dim]No items on {escape(list_data['name'])}[/dim]")
            return

        table = Table(title=escape(list_data["name"]), show_header=True, header_style="bold cyan")
        table.add_column("", justify="center")
        table.add_column("Item", style="cyan", no_wrap=False)
        table.add_column("Qty", style="magenta", justify="right")
        table.add_column("Category", style="yellow")
        table.add_column("ID", style="dim")

        for item in items:
            glyph = (
                f"[green]{COMPLETED_GLYPH}[/green]" if item.get("completed") else PENDING_GLYPH
            )
            quantity = f"{item.get('quantity', 1)} {item.get('unit') or ''}".strip()
            table.add_row(
                glyph,
                escape(item["name"]),
                escape(quantity),
                escape(item.get("category", "other")),
                item["id"],
            )

        self.console.print(table)
        self.console.print(
            f"\nCompleted: {list_data['completed_items']}/{list_data['total_items']}"
        )

    def _render_lists(self, lists: list[dict]) -> None:
        """Render list summaries."""
        if not lists:
            self.console.print("[dim]No lists yet[/dim]")
            return

        table = Table(title="Shopping Lists", show_header=True, header_style="bold cyan")
        table.add_column("Name", style="cyan")
        table.add_column("Items", justify="right")
        table.add_column("Updated")
        table.add_column("ID", style="dim")

        for entry in lists:
            name = escape(entry["name"])
            if entry.get("archived"):
                name += " [dim](archived)[/dim]"
            table.add_row(
                name,
                f"{entry['completed_items']}/{entry['total_items']}",
                _format_ms(entry.get("updatedAt")),
                entry["id"],
            )

        self.console.print(table)

    def _render_added_items(self, items: list[dict]) -> None:
        """Render items added in one go."""
        for item in items:
            self.console.print(
                f"  - {escape(item['name'])} [yellow]({escape(item['category'])})[/yellow]"
            )

    def _render_item(self, item: dict) -> None:
        """Render a single item with Rich."""
        panel_content = f"""[bold]{escape(item["name"])}[/bold]

Quantity: {item.get("quantity", 1)} {escape(item.get("unit") or "")}
Category: {escape(item.get("category", "other"))}
Completed: {"yes" if item.get("completed") else "no"}"""

        if item.get("barcode"):
            panel_content += f"\nBarcode: {escape(item['barcode'])}"

        if item.get("notes"):
            panel_content += f"\nNotes: {escape(item['notes'])}"

        panel = Panel(panel_content, title="Item Details", border_style="green")
        self.console.print(panel)

    def _render_by_category(self, by_category: dict[str, list[dict]]) -> None:
        """Render items grouped by category."""
        for category, items in by_category.items():
            self.console.print(f"\n[bold yellow]{escape(category)}[/bold yellow]")
            for item in items:
                self.console.print(f"  - {escape(item['name'])} ({item.get('quantity', 1)})")

    def _render_categories(self, categories: list[dict]) -> None:
        """Render categories in display order."""
        table = Table(title="Categories", show_header=True, header_style="bold cyan")
        table.add_column("#", justify="right")
        table.add_column("Category")
        table.add_column("ID", style="dim")

        for position, category in enumerate(categories, start=1):
            label = f"{category.get('icon') or '📦'} {category['name']}"
            table.add_row(str(position), escape(label), category["id"])

        self.console.print(table)

    def _render_products(self, products: list[dict]) -> None:
        """Render cached products."""
        if not products:
            self.console.print("[dim]No cached products[/dim]")
            return

        table = Table(title="Products", show_header=True, header_style="bold cyan")
        table.add_column("Barcode", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Category", style="yellow")
        table.add_column("Last used")

        for product in products:
            table.add_row(
                escape(product["barcode"]),
                escape(product["name"]),
                escape(product["category"]),
                _format_ms(product.get("lastUsed")),
            )

        self.console.print(table)

    def _render_preferences(self, preferences: dict[str, str]) -> None:
        """Render learned preferences."""
        if not preferences:
            self.console.print("[dim]No learned preferences[/dim]")
            return

        for name, category in sorted(preferences.items()):
            self.console.print(
                f"  {escape(name)} [dim]->[/dim] [yellow]{escape(category)}[/yellow]"
            )

    def _render_parsed(self, parsed: list[dict]) -> None:
        """Render a dry-run parse."""
        for entry in parsed:
            self.console.print(
                f"  - {escape(entry['name'])} [yellow]({escape(entry['category'])})[/yellow]"
            )

    def _render_validation(self, validation: dict) -> None:
        """Render backup validation results."""
        if validation["valid"]:
            self.console.print("[green]Backup is valid[/green]")
            return

        for error in validation["errors"]:
            self.console.print(f"  [red]✗[/red] {escape(error)}")

    def _render_restored(self, restored: dict[str, int]) -> None:
        """Render restore counts."""
        for kind, count in restored.items():
            self.console.print(f"  {kind}: {count}")

    def text(self, text: str) -> None:
        """Output a block of plain text as-is."""
        if self.json_mode:
            print(json.dumps({"success": True, "data": {"text": text}}, ensure_ascii=False))
        else:
            self.console.print(text, markup=False, highlight=False)

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
            print(json.dumps(output))
        else:
            self.console.print(f"[red]✗ Error:[/red] {escape(message)}")

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
            print(json.dumps(output, ensure_ascii=False))
        else:
            self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        """Output warning message.

        Args:
            message: Warning message
        """
        if self.json_mode:
            print(json.dumps({"warning": message}))
        else:
            self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")
