"""CLI entry point for Smart Shopping."""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from .backup import BackupManager, BackupValidationError, RestoreError
from .categories import STORE_LAYOUT_PRESETS
from .category_manager import CategoryError, CategoryManager
from .config import ConfigManager
from .data_store import BackendType, DataStoreProtocol, create_data_store
from .list_manager import ItemNotFoundError, ListManager, ListNotFoundError, ProductNotFoundError
from .logging_config import setup_logging
from .models import Category, CategoryOrigin
from .output_formatter import OutputFormatter
from .share import ListImportError, export_list_as_json, format_list_as_text, import_list_from_file
from .text_parser import parse_items

app = typer.Typer(
    name="shop",
    help="Local-first shopping lists with smart categorization",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# Global state (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
data_store: DataStoreProtocol | None = None
list_manager: ListManager | None = None
category_manager: CategoryManager | None = None
backup_dir: Path | None = None


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def get_data_store() -> DataStoreProtocol:
    """Get or create the data store using config values."""
    global data_store
    if data_store is None:
        cfg = get_config()
        data_store = create_data_store(
            backend=_backend_type(cfg.data.backend), data_dir=cfg.data.storage_dir
        )
    return data_store


def get_list_manager() -> ListManager:
    """Get or create ListManager instance."""
    global list_manager
    if list_manager is None:
        list_manager = ListManager(
            get_data_store(), default_category=get_config().defaults.category
        )
    return list_manager


def get_category_manager() -> CategoryManager:
    """Get or create CategoryManager instance."""
    global category_manager
    if category_manager is None:
        category_manager = CategoryManager(get_data_store())
    return category_manager


def get_backup_manager() -> BackupManager:
    """Create a BackupManager sharing the list manager's preference store."""
    return BackupManager(
        get_data_store(),
        preferences=get_list_manager().preferences,
        categories=get_category_manager(),
    )


def _category_wire(category: Category) -> dict:
    return {**category.to_wire(), "builtin": category.origin == CategoryOrigin.BUILTIN}


def _fail(message: str, error_code: str | None = None) -> NoReturn:
    formatter.error(message, error_code=error_code)
    raise typer.Exit(code=1)


def _backend_type(name: str) -> BackendType:
    try:
        return BackendType(name)
    except ValueError:
        choices = ", ".join(b.value for b in BackendType)
        _fail(f"Unknown storage backend '{name}' (expected one of: {choices})", "INVALID_CONFIG")


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Smart Shopping CLI - lists, barcodes and categories that learn."""
    global formatter, config, data_store, list_manager, category_manager, backup_dir

    formatter = OutputFormatter(json_mode=json_output)
    config = ConfigManager()
    setup_logging("DEBUG" if verbose else config.logging.level)

    # CLI --data-dir overrides config, which overrides default
    effective_data_dir = data_dir if data_dir else config.data.storage_dir
    backup_dir = effective_data_dir / "backups" if data_dir else config.backup.directory

    data_store = create_data_store(
        backend=_backend_type(config.data.backend), data_dir=effective_data_dir
    )
    list_manager = ListManager(data_store, default_category=config.defaults.category)
    category_manager = CategoryManager(data_store)
    logger.debug("Using %s backend in %s", config.data.backend, effective_data_dir)


@app.command()
def add(
    list_id: Annotated[str, typer.Argument(help="List ID to add to")],
    text: Annotated[str, typer.Argument(help="Item, or free text such as 'milk, eggs and bread'")],
    quantity: Annotated[
        float | None, typer.Option("--quantity", "-q", help="Quantity (single item only)")
    ] = None,
    unit: Annotated[str | None, typer.Option("--unit", "-u", help="Unit of measurement")] = None,
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Category ID (single item only)")
    ] = None,
    notes: Annotated[str | None, typer.Option("--notes", "-n", help="Additional notes")] = None,
) -> None:
    """Add items to a list, splitting free text into separate items."""
    try:
        manager = get_list_manager()
        if quantity is not None or unit or category or notes:
            result = manager.add_item(
                list_id,
                text,
                category=category,
                quantity=int(quantity) if quantity and quantity.is_integer() else (quantity or 1),
                unit=unit,
                notes=notes,
            )
        else:
            result = manager.add_items_from_text(list_id, text)
        formatter.output(result, result["message"])
    except ListNotFoundError as e:
        _fail(str(e), "LIST_NOT_FOUND")


@app.command()
def scan(
    list_id: Annotated[str, typer.Argument(help="List ID to add to")],
    barcode: Annotated[str, typer.Argument(help="Decoded barcode value")],
    barcode_format: Annotated[
        str | None, typer.Option("--format", help="Barcode format, e.g. EAN_13")
    ] = None,
    name: Annotated[
        str | None, typer.Option("--name", help="Product name when the barcode is unknown")
    ] = None,
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Category for a new product")
    ] = None,
) -> None:
    """Add a scanned product, caching it on first manual entry."""
    try:
        manager = get_list_manager()
        try:
            result = manager.add_scanned_item(list_id, barcode, barcode_format)
        except ProductNotFoundError:
            if not name:
                raise
            result = manager.add_manual_product(list_id, barcode, name, category=category)
        formatter.output(result, result["message"])
    except ProductNotFoundError as e:
        _fail(f"{e}; pass --name to enter it manually", "PRODUCT_NOT_FOUND")
    except ListNotFoundError as e:
        _fail(str(e), "LIST_NOT_FOUND")


@app.command()
def parse(
    text: Annotated[str, typer.Argument(help="Free text or voice transcript")],
) -> None:
    """Show how text would be split and categorized, without saving."""
    manager = get_list_manager()
    parsed = [
        {"name": name, "category": manager.resolve_category(name)} for name in parse_items(text)
    ]
    formatter.output(
        {"success": True, "data": {"parsed": parsed}},
        f"Found {len(parsed)} item(s)",
    )


@app.command()
def share(
    list_id: Annotated[str, typer.Argument(help="List ID to share")],
    as_json: Annotated[
        bool, typer.Option("--export", help="Produce a JSON list export instead of text")
    ] = False,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write to a file instead of stdout")
    ] = None,
) -> None:
    """Share a list as plain text or as a JSON export."""
    try:
        manager = get_list_manager()
        shopping_list = manager.get_list(list_id)
        items = get_data_store().load_items(shopping_list.id)
        content = (
            export_list_as_json(shopping_list, items)
            if as_json
            else format_list_as_text(shopping_list, items)
        )

        if output:
            output.write_text(content, encoding="utf-8")
            formatter.success(f"Wrote {output}", {"path": str(output)})
        elif as_json and formatter.json_mode:
            print(content)
        else:
            formatter.text(content)
    except ListNotFoundError as e:
        _fail(str(e), "LIST_NOT_FOUND")


# Lists subcommand group
lists_app = typer.Typer(help="Shopping list commands")
app.add_typer(lists_app, name="lists")


@lists_app.command("new")
def lists_new(
    name: Annotated[str, typer.Argument(help="List name")],
    color: Annotated[str | None, typer.Option("--color", help="Display color")] = None,
) -> None:
    """Create a new list."""
    manager = get_list_manager()
    result = manager.create_list(name, color=color or get_config().defaults.list_color)
    formatter.output(result, result["message"])


@lists_app.command("ls")
def lists_ls(
    include_archived: Annotated[
        bool, typer.Option("--all", "-a", help="Include archived lists")
    ] = False,
) -> None:
    """Show lists with item counts."""
    result = get_list_manager().get_lists(include_archived=include_archived)
    formatter.output(result)


@lists_app.command("rename")
def lists_rename(
    list_id: Annotated[str, typer.Argument(help="List ID")],
    name: Annotated[str, typer.Argument(help="New name")],
    color: Annotated[str | None, typer.Option("--color", help="New display color")] = None,
) -> None:
    """Rename a list."""
    try:
        result = get_list_manager().rename_list(list_id, name, color=color)
        formatter.output(result, result["message"])
    except ListNotFoundError as e:
        _fail(str(e), "LIST_NOT_FOUND")


@lists_app.command("archive")
def lists_archive(
    list_id: Annotated[str, typer.Argument(help="List ID")],
    undo: Annotated[bool, typer.Option("--undo", help="Unarchive instead")] = False,
) -> None:
    """Archive (or unarchive) a list."""
    try:
        manager = get_list_manager()
        result = manager.unarchive_list(list_id) if undo else manager.archive_list(list_id)
        formatter.output(result, result["message"])
    except ListNotFoundError as e:
        _fail(str(e), "LIST_NOT_FOUND")


@lists_app.command("delete")
def lists_delete(
    list_id: Annotated[str, typer.Argument(help="List ID")],
) -> None:
    """Delete a list and its items."""
    try:
        result = get_list_manager().delete_list(list_id)
        formatter.output(result, result["message"])
    except ListNotFoundError as e:
        _fail(str(e), "LIST_NOT_FOUND")


@lists_app.command("duplicate")
def lists_duplicate(
    list_id: Annotated[str, typer.Argument(help="List ID")],
) -> None:
    """Copy a list with all items unchecked."""
    try:
        result = get_list_manager().duplicate_list(list_id)
        formatter.output(result, result["message"])
    except ListNotFoundError as e:
        _fail(str(e), "LIST_NOT_FOUND")


@lists_app.command("import")
def lists_import(
    path: Annotated[Path, typer.Argument(help="List export file")],
) -> None:
    """Create a list from a shared JSON list export."""
    try:
        export = import_list_from_file(path)
        result = get_list_manager().import_list(export)
        formatter.output(result, result["message"])
    except ListImportError as e:
        _fail(str(e), "INVALID_LIST_EXPORT")
    except OSError as e:
        _fail(str(e), "FILE_ERROR")


# Items subcommand group
items_app = typer.Typer(help="Item commands")
app.add_typer(items_app, name="items")


@items_app.command("ls")
def items_ls(
    list_id: Annotated[str, typer.Argument(help="List ID")],
    by_category: Annotated[bool, typer.Option("--by-category", help="Group by category")] = False,
) -> None:
    """Show the items on a list."""
    try:
        manager = get_list_manager()
        result = manager.get_by_category(list_id) if by_category else manager.get_items(list_id)
        formatter.output(result)
    except ListNotFoundError as e:
        _fail(str(e), "LIST_NOT_FOUND")


@items_app.command("check")
def items_check(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
) -> None:
    """Toggle an item between checked and unchecked."""
    try:
        result = get_list_manager().toggle_complete(item_id)
        formatter.output(result, result["message"])
    except ItemNotFoundError as e:
        _fail(str(e), "ITEM_NOT_FOUND")


@items_app.command("edit")
def items_edit(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
    name: Annotated[str | None, typer.Option("--name", help="New name")] = None,
    quantity: Annotated[float | None, typer.Option("--quantity", "-q", help="Quantity")] = None,
    unit: Annotated[str | None, typer.Option("--unit", "-u", help="Unit of measurement")] = None,
    notes: Annotated[str | None, typer.Option("--notes", "-n", help="Notes")] = None,
) -> None:
    """Edit an item's name, quantity, unit or notes."""
    try:
        if quantity is not None and quantity.is_integer():
            quantity = int(quantity)
        result = get_list_manager().update_item(
            item_id, name=name, quantity=quantity, unit=unit, notes=notes
        )
        formatter.output(result, result["message"])
    except ItemNotFoundError as e:
        _fail(str(e), "ITEM_NOT_FOUND")


@items_app.command("remove")
def items_remove(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
) -> None:
    """Remove an item."""
    try:
        result = get_list_manager().remove_item(item_id)
        formatter.output(result, result["message"])
    except ItemNotFoundError as e:
        _fail(str(e), "ITEM_NOT_FOUND")


@items_app.command("clear-completed")
def items_clear_completed(
    list_id: Annotated[str, typer.Argument(help="List ID")],
) -> None:
    """Remove every checked item from a list."""
    try:
        result = get_list_manager().remove_completed(list_id)
        formatter.output(result, result["message"])
    except ListNotFoundError as e:
        _fail(str(e), "LIST_NOT_FOUND")


@items_app.command("set-category")
def items_set_category(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
    category: Annotated[str, typer.Argument(help="Category ID")],
) -> None:
    """Move an item to a category and remember it for that name."""
    try:
        if get_category_manager().get_category(category) is None:
            _fail(f"Category '{category}' not found", "CATEGORY_NOT_FOUND")
        result = get_list_manager().change_category(item_id, category)
        formatter.output(result, result["message"])
    except ItemNotFoundError as e:
        _fail(str(e), "ITEM_NOT_FOUND")


# Categories subcommand group
categories_app = typer.Typer(help="Category commands")
app.add_typer(categories_app, name="categories")


@categories_app.command("ls")
def categories_ls() -> None:
    """Show categories in display order."""
    categories = get_category_manager().sorted_categories()
    formatter.output(
        {"success": True, "data": {"categories": [_category_wire(c) for c in categories]}}
    )


@categories_app.command("create")
def categories_create(
    name: Annotated[str, typer.Argument(help="Category name")],
    icon: Annotated[str, typer.Option("--icon", help="Emoji icon")] = "📦",
) -> None:
    """Create a custom category."""
    try:
        category = get_category_manager().create_category(name, icon=icon)
        output_data = {
            "success": True,
            "message": f"Created category {category.display}",
            "data": {"category": _category_wire(category)},
        }
        formatter.output(output_data, output_data["message"])
    except CategoryError as e:
        _fail(str(e), "INVALID_CATEGORY")


@categories_app.command("delete")
def categories_delete(
    category_id: Annotated[str, typer.Argument(help="Custom category ID")],
) -> None:
    """Delete a custom category."""
    try:
        get_category_manager().delete_category(category_id)
        formatter.success(f"Deleted category {category_id}")
    except CategoryError as e:
        _fail(str(e), "INVALID_CATEGORY")


@categories_app.command("order")
def categories_order(
    category_ids: Annotated[list[str], typer.Argument(help="Category IDs in display order")],
) -> None:
    """Set an explicit category display order."""
    manager = get_category_manager()
    unknown = [c for c in category_ids if manager.get_category(c) is None]
    if unknown:
        formatter.warning(f"Unknown categories kept in order: {', '.join(unknown)}")

    manager.save_category_order(category_ids)
    formatter.success("Saved category order", {"category_order": category_ids})


@categories_app.command("preset")
def categories_preset(
    preset: Annotated[str, typer.Argument(help=f"One of: {', '.join(STORE_LAYOUT_PRESETS)}")],
) -> None:
    """Apply a store layout preset to the category order."""
    if preset not in STORE_LAYOUT_PRESETS:
        _fail(f"Unknown preset '{preset}'", "UNKNOWN_PRESET")

    order = STORE_LAYOUT_PRESETS[preset]
    get_category_manager().save_category_order(order)
    formatter.success(f"Applied {preset} layout", {"category_order": order})


@categories_app.command("reset")
def categories_reset() -> None:
    """Return to the default category order."""
    get_category_manager().reset_category_order()
    formatter.success("Reset category order")


# Products subcommand group
products_app = typer.Typer(help="Barcode product cache commands")
app.add_typer(products_app, name="products")


@products_app.command("ls")
def products_ls() -> None:
    """Show cached products, most recently used first."""
    products = get_list_manager().products.list_products()
    formatter.output({"success": True, "data": {"products": [p.to_wire() for p in products]}})


@products_app.command("add")
def products_add(
    barcode: Annotated[str, typer.Argument(help="Barcode value")],
    name: Annotated[str, typer.Argument(help="Product name")],
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Category ID")
    ] = None,
) -> None:
    """Cache a product without adding it to a list."""
    manager = get_list_manager()
    product = manager.products.save_product(
        barcode, name, category or manager.resolve_category(name)
    )
    output_data = {
        "success": True,
        "message": f"Cached {product.name}",
        "data": {"product": product.to_wire()},
    }
    formatter.output(output_data, output_data["message"])


@products_app.command("delete")
def products_delete(
    barcode: Annotated[str, typer.Argument(help="Barcode value")],
) -> None:
    """Remove a product from the cache."""
    products = get_list_manager().products
    if products.get_by_barcode(barcode) is None:
        _fail(f"No product cached for barcode '{barcode}'", "PRODUCT_NOT_FOUND")

    products.delete(barcode)
    formatter.success(f"Deleted product {barcode}")


@products_app.command("clear")
def products_clear() -> None:
    """Remove every cached product."""
    get_list_manager().products.clear()
    formatter.success("Cleared product cache")


# Preferences subcommand group
prefs_app = typer.Typer(help="Learned category preference commands")
app.add_typer(prefs_app, name="prefs")


@prefs_app.command("ls")
def prefs_ls() -> None:
    """Show learned preferences."""
    preferences = get_list_manager().preferences.as_dict()
    formatter.output({"success": True, "data": {"preferences": preferences}})


@prefs_app.command("remove")
def prefs_remove(
    item_name: Annotated[str, typer.Argument(help="Item name")],
) -> None:
    """Forget the learned category for an item name."""
    get_list_manager().preferences.remove_preference(item_name)
    formatter.success(f"Forgot preference for {item_name}")


@prefs_app.command("clear")
def prefs_clear() -> None:
    """Forget every learned preference."""
    get_list_manager().preferences.clear_all()
    formatter.success("Cleared all preferences")


# Backup subcommand group
backup_app = typer.Typer(help="Backup and restore commands")
app.add_typer(backup_app, name="backup")


@backup_app.command("export")
def backup_export(
    directory: Annotated[
        Path | None, typer.Option("--dir", "-d", help="Directory to write the backup to")
    ] = None,
) -> None:
    """Write a full backup file."""
    cfg = get_config()
    target = directory or backup_dir or cfg.backup.directory
    try:
        path = get_backup_manager().write_backup(target, cfg.backup.filename_prefix)
        formatter.success(f"Backup written to {path}", {"path": str(path)})
    except OSError as e:
        _fail(str(e), "FILE_ERROR")


@backup_app.command("validate")
def backup_validate(
    path: Annotated[Path, typer.Argument(help="Backup file")],
) -> None:
    """Check a backup file without restoring it."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON: {e.msg}", "INVALID_BACKUP")
    except UnicodeDecodeError:
        _fail("File is not UTF-8 text", "INVALID_BACKUP")
    except OSError as e:
        _fail(str(e), "FILE_ERROR")

    result = get_backup_manager().validate_backup(data)
    formatter.output(
        {"success": result.valid, "data": {"validation": result.model_dump()}},
        "Checked backup",
    )
    if not result.valid:
        raise typer.Exit(code=1)


@backup_app.command("import")
def backup_import(
    path: Annotated[Path, typer.Argument(help="Backup file")],
    merge: Annotated[
        bool, typer.Option("--merge", help="Keep existing data instead of replacing it")
    ] = False,
) -> None:
    """Restore a backup, replacing existing data unless --merge is given."""
    try:
        restored = get_backup_manager().import_backup_from_file(path, merge=merge)
        output_data = {
            "success": True,
            "message": f"Restored backup ({'merge' if merge else 'replace'})",
            "data": {"restored": restored},
        }
        formatter.output(output_data, output_data["message"])
    except BackupValidationError as e:
        _fail(str(e), "INVALID_BACKUP")
    except RestoreError as e:
        _fail(str(e), "RESTORE_FAILED")
    except OSError as e:
        _fail(str(e), "FILE_ERROR")


if __name__ == "__main__":
    app()
