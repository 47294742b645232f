"""Sharing a single list as text or as a JSON export."""

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from .models import ListExport, ShoppingItem, ShoppingList

LIST_EXPORT_VERSION = "1.0"

COMPLETED_GLYPH = "☑"
PENDING_GLYPH = "☐"


class ListImportError(ValueError):
    """Raised when a single-list export cannot be read."""


def format_list_as_text(shopping_list: ShoppingList, items: list[ShoppingItem]) -> str:
    """Render a list as plain text for messaging apps.

    Items are grouped under their category, categories sorted by id, and a
    completed/total summary closes the block.
    """
    lines = [shopping_list.name, "=" * len(shopping_list.name), ""]

    by_category: dict[str, list[ShoppingItem]] = {}
    for item in items:
        by_category.setdefault(item.category, []).append(item)

    for category in sorted(by_category):
        lines.append(f"{category[:1].upper()}{category[1:]}:")
        for item in by_category[category]:
            glyph = COMPLETED_GLYPH if item.completed else PENDING_GLYPH
            quantity = f" ({item.quantity:g})" if item.quantity and item.quantity > 1 else ""
            lines.append(f"  {glyph} {item.name}{quantity}")
        lines.append("")

    completed = sum(1 for item in items if item.completed)
    lines.extend(
        [
            "",
            "---",
            f"Total: {len(items)} items",
            f"Completed: {completed}/{len(items)}",
        ]
    )
    return "\n".join(lines) + "\n"


def export_list_as_json(shopping_list: ShoppingList, items: list[ShoppingItem]) -> str:
    """Export one list and its items; not a full backup."""
    export = ListExport(
        version=LIST_EXPORT_VERSION,
        exported_at=datetime.now(timezone.utc).isoformat(),
        list_=shopping_list,
        items=items,
    )
    return json.dumps(export.to_wire(), indent=2, ensure_ascii=False)


def import_list_from_json(content: str) -> ListExport:
    """Read a single-list export.

    Raises:
        ListImportError: If the content is not JSON or lacks version, list or items
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ListImportError("Invalid JSON file") from e

    if not isinstance(data, dict) or not all(data.get(key) for key in ("version", "list")):
        raise ListImportError("Invalid JSON format")
    if not isinstance(data.get("items"), list):
        raise ListImportError("Invalid JSON format")

    try:
        return ListExport.model_validate(data)
    except ValidationError as e:
        raise ListImportError(f"Invalid list export: {e.error_count()} error(s)") from e


def import_list_from_file(path: Path) -> ListExport:
    """Read a single-list export file.

    Raises:
        ListImportError: If the file is not UTF-8 JSON in the export shape
        OSError: If the file cannot be read
    """
    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ListImportError("File is not UTF-8 text") from e
    return import_list_from_json(content)
