"""Full backup export, validation and restore.

A backup is a versioned snapshot of every list, item, custom category,
product, learned preference and the category display order. Restoring
re-creates lists and items with fresh ids; names, categories, quantities and
completed/archived state survive the round trip.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any
from uuid import uuid4

from .categories import BUILTIN_CATEGORY_IDS
from .category_manager import CategoryManager
from .data_store import DataStoreProtocol
from .models import (
    BackupSnapshot,
    BackupValidationResult,
    Category,
    Product,
    ShoppingItem,
    ShoppingList,
    now_ms,
)
from .preferences import PreferenceStore

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0.0"
SUPPORTED_MAJOR_VERSION = "1"

_REQUIRED_ARRAYS = ("lists", "items", "customCategories", "products")


class BackupValidationError(ValueError):
    """Raised when a backup is malformed or from an incompatible version.

    Nothing has been changed when this is raised.
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Invalid backup: {', '.join(errors)}")


class RestoreError(Exception):
    """Raised when restoring a valid backup fails partway.

    Attributes:
        restored: Count of entities restored per kind before the failure
    """

    def __init__(self, message: str, restored: dict[str, int] | None = None):
        self.restored = dict(restored or {})
        super().__init__(message)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_backup(data: Any) -> BackupValidationResult:
    """Check the shape and version of a candidate backup.

    Every problem is reported, not just the first one.

    Args:
        data: Decoded JSON value, or a BackupSnapshot

    Returns:
        BackupValidationResult with valid=True only when no errors were found
    """
    if isinstance(data, BackupSnapshot):
        data = data.to_wire()

    errors: list[str] = []

    if not isinstance(data, dict):
        errors.append("Backup data must be an object")
        return BackupValidationResult(valid=False, errors=errors)

    version = data.get("version")
    if not version:
        errors.append("Missing version field")

    if not _is_number(data.get("timestamp")):
        errors.append("Missing or invalid timestamp field")

    for key in _REQUIRED_ARRAYS:
        if not isinstance(data.get(key), list):
            errors.append(f"Missing or invalid {key} array")

    if "categoryPreferences" in data and not isinstance(data["categoryPreferences"], dict):
        errors.append("Invalid categoryPreferences object")

    if "categoryOrder" in data and not isinstance(data["categoryOrder"], list):
        errors.append("Invalid categoryOrder array")

    if version:
        if not isinstance(version, str):
            errors.append("Invalid version field")
        elif version.split(".")[0] != SUPPORTED_MAJOR_VERSION:
            errors.append(f"Incompatible backup version: {version}")

    return BackupValidationResult(valid=not errors, errors=errors)


class BackupManager:
    """Exports and restores complete backups."""

    def __init__(
        self,
        data_store: DataStoreProtocol,
        preferences: PreferenceStore | None = None,
        categories: CategoryManager | None = None,
    ):
        """Initialize backup manager.

        Args:
            data_store: Backend to snapshot and restore into
            preferences: Preference store; built on data_store if not provided
            categories: Category manager; built on data_store if not provided
        """
        self.data_store = data_store
        self.preferences = preferences or PreferenceStore(data_store)
        self.categories = categories or CategoryManager(data_store)

    # --- Export ---

    def export_backup(self) -> BackupSnapshot:
        """Collect every entity into a snapshot."""
        lists = self.data_store.load_lists()
        items: list[ShoppingItem] = []
        for shopping_list in lists:
            items.extend(self.data_store.load_items(shopping_list.id))

        snapshot = BackupSnapshot(
            version=BACKUP_VERSION,
            timestamp=now_ms(),
            lists=lists,
            items=items,
            custom_categories=self.categories.custom_categories(),
            products=self.data_store.load_products(),
            category_preferences=self.preferences.as_dict(),
            category_order=self.categories.get_category_order(),
        )
        logger.info("Exported backup with %d lists and %d items", len(lists), len(items))
        return snapshot

    def export_backup_json(self, snapshot: BackupSnapshot | None = None) -> str:
        """Serialize a snapshot (a fresh one by default) to JSON text."""
        snapshot = snapshot or self.export_backup()
        return json.dumps(snapshot.to_wire(), indent=2, ensure_ascii=False)

    def write_backup(self, directory: Path, filename_prefix: str = "shopping-list-backup") -> Path:
        """Write a fresh backup file named after today's date.

        Returns:
            Path of the written file
        """
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{filename_prefix}-{date.today().isoformat()}.json"
        path.write_text(self.export_backup_json(), encoding="utf-8")
        logger.info("Wrote backup to %s", path)
        return path

    # --- Import ---

    def validate_backup(self, data: Any) -> BackupValidationResult:
        """Check the shape and version of a candidate backup."""
        return validate_backup(data)

    def import_backup_from_file(self, path: Path, merge: bool = False) -> dict[str, int]:
        """Read a backup file and restore it.

        Raises:
            BackupValidationError: If the file is not JSON or not a valid backup
            RestoreError: If restoring fails after validation
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise BackupValidationError([f"Invalid JSON: {e.msg}"]) from e
        except UnicodeDecodeError as e:
            raise BackupValidationError([f"File is not UTF-8 text: {e.reason}"]) from e
        return self.import_backup(data, merge=merge)

    def import_backup(self, data: BackupSnapshot | dict[str, Any], merge: bool = False) -> dict[str, int]:
        """Restore a backup.

        Replace mode (the default) first deletes every list with its items,
        every cached product, every custom category and every preference.
        Merge mode layers the backup on top of existing data.

        Restore order is custom categories, products, lists with their items,
        preferences, then category order.

        Args:
            data: Decoded backup JSON or a BackupSnapshot
            merge: Keep existing data instead of replacing it

        Returns:
            Count of restored entities per kind

        Raises:
            BackupValidationError: If the backup is invalid; nothing is changed
            RestoreError: If a row cannot be restored
        """
        if isinstance(data, BackupSnapshot):
            data = data.to_wire()

        validation = validate_backup(data)
        if not validation.valid:
            raise BackupValidationError(validation.errors)

        restored = {"categories": 0, "products": 0, "lists": 0, "items": 0, "preferences": 0}
        try:
            plan = self._build_plan(data)
        except (KeyError, TypeError, ValueError) as e:
            raise RestoreError(f"Malformed backup row: {e}", restored) from e

        if not merge:
            self._clear_existing()

        try:
            self._apply_plan(plan, restored)
        except OSError:
            raise
        except Exception as e:
            logger.error("Restore failed after %s", restored)
            raise RestoreError(f"Failed to restore backup: {e}", restored) from e

        logger.info("Restored backup (%s): %s", "merge" if merge else "replace", restored)
        return restored

    def _build_plan(self, data: dict[str, Any]) -> dict[str, Any]:
        """Turn raw rows into entities before anything is written."""
        categories = [Category.model_validate(row) for row in data["customCategories"]]
        for category in categories:
            if category.id in BUILTIN_CATEGORY_IDS:
                raise ValueError(f"Cannot overwrite built-in category '{category.id}'")
        products = [Product.model_validate(row) for row in data["products"]]

        rows_by_list: dict[str, list[dict]] = {}
        for row in data["items"]:
            rows_by_list.setdefault(str(row["listId"]), []).append(row)

        lists = []
        for row in data["lists"]:
            shopping_list = ShoppingList(id=uuid4(), name=row["name"], color=row.get("color"))
            items = []
            for item_row in rows_by_list.get(str(row["id"]), []):
                item = ShoppingItem(
                    list_id=shopping_list.id,
                    name=item_row["name"],
                    quantity=item_row.get("quantity", 1),
                    unit=item_row.get("unit"),
                    category=item_row.get("category") or "other",
                    notes=item_row.get("notes"),
                    barcode=item_row.get("barcode"),
                )
                items.append((item, bool(item_row.get("completed"))))
            lists.append((shopping_list, bool(row.get("archived")), items))

        preferences = {
            str(name): str(category)
            for name, category in (data.get("categoryPreferences") or {}).items()
        }
        order = [str(category_id) for category_id in data.get("categoryOrder") or []]

        return {
            "categories": categories,
            "products": products,
            "lists": lists,
            "preferences": preferences,
            "order": order,
        }

    def _clear_existing(self) -> None:
        for shopping_list in self.data_store.load_lists():
            self.data_store.delete_list(shopping_list.id)

        self.data_store.clear_products()

        for category in self.categories.custom_categories():
            self.categories.delete_category(category.id)

        self.preferences.clear_all()
        logger.debug("Cleared existing data before restore")

    def _apply_plan(self, plan: dict[str, Any], restored: dict[str, int]) -> None:
        for category in plan["categories"]:
            self.categories.restore_category(category)
            restored["categories"] += 1

        for product in plan["products"]:
            self.data_store.save_product(product)
            restored["products"] += 1

        for shopping_list, archived, items in plan["lists"]:
            self.data_store.save_list(shopping_list)
            if archived:
                shopping_list.archived = True
                self.data_store.save_list(shopping_list)
            restored["lists"] += 1

            for item, completed in items:
                self.data_store.save_item(item)
                if completed:
                    item.set_completed(True)
                    self.data_store.save_item(item)
                restored["items"] += 1

        for name, category in plan["preferences"].items():
            self.preferences.save_preference(name, category)
            restored["preferences"] += 1

        if plan["order"]:
            self.categories.save_category_order(plan["order"])
