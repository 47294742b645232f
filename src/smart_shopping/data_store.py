"""Data persistence for Smart Shopping.

This module provides data persistence with support for JSON (default) or SQLite backends.
Use create_data_store() to get the appropriate backend based on configuration.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Protocol
from uuid import UUID

from .models import Category, CategoryOrigin, CategoryPreference, Product, ShoppingItem, ShoppingList

logger = logging.getLogger(__name__)


def _upsert_rows(rows: list[dict], updates: list[dict]) -> list[dict]:
    """Replace rows by id in place, appending ids not yet present."""
    pending = {row["id"]: row for row in updates}
    merged = [pending.pop(row["id"], row) for row in rows]
    merged.extend(pending.values())
    return merged


class BackendType(str, Enum):
    """Data storage backend types."""

    JSON = "json"
    SQLITE = "sqlite"


class DataStoreProtocol(Protocol):
    """Protocol defining the data store interface."""

    def load_lists(self) -> list[ShoppingList]: ...
    def get_list(self, list_id: UUID) -> ShoppingList | None: ...
    def save_list(self, shopping_list: ShoppingList) -> None: ...
    def delete_list(self, list_id: UUID) -> None: ...
    def load_items(self, list_id: UUID | None = None) -> list[ShoppingItem]: ...
    def get_item(self, item_id: UUID) -> ShoppingItem | None: ...
    def save_item(self, item: ShoppingItem) -> None: ...
    def save_items(self, items: list[ShoppingItem]) -> None: ...
    def delete_item(self, item_id: UUID) -> None: ...
    def delete_completed(self, list_id: UUID) -> int: ...
    def update_category_by_name(self, normalized_name: str, category: str) -> int: ...
    def load_custom_categories(self) -> list[Category]: ...
    def save_category(self, category: Category) -> None: ...
    def delete_category(self, category_id: str) -> None: ...
    def load_products(self) -> list[Product]: ...
    def get_product(self, barcode: str) -> Product | None: ...
    def save_product(self, product: Product) -> None: ...
    def delete_product(self, barcode: str) -> None: ...
    def clear_products(self) -> None: ...
    def load_preferences(self) -> dict[str, CategoryPreference]: ...
    def get_preference(self, item_name: str) -> CategoryPreference | None: ...
    def save_preference(self, preference: CategoryPreference) -> None: ...
    def delete_preference(self, item_name: str) -> None: ...
    def clear_preferences(self) -> None: ...
    def load_category_order(self) -> list[str]: ...
    def save_category_order(self, order: list[str]) -> None: ...


class DataStore:
    """Manages JSON file persistence for shopping data.

    Each collection lives in its own file and every operation is a whole-file
    read followed by at most one write.
    """

    LISTS_FILE = "lists.json"
    ITEMS_FILE = "items.json"
    CATEGORIES_FILE = "categories.json"
    PRODUCTS_FILE = "products.json"
    PREFERENCES_FILE = "category_preferences.json"
    SETTINGS_FILE = "settings.json"

    def __init__(self, data_dir: Path | None = None):
        """Initialize data store.

        Args:
            data_dir: Directory for data files. Defaults to ./data
        """
        self.data_dir = data_dir or Path.cwd() / "data"
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _read(self, filename: str, default: Any) -> Any:
        path = self.data_dir / filename
        if not path.exists():
            return default

        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def _write(self, filename: str, data: Any) -> None:
        path = self.data_dir / filename
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.debug("Wrote %s", path)

    # --- List Operations ---

    def load_lists(self) -> list[ShoppingList]:
        """Load all shopping lists, oldest first."""
        lists = [ShoppingList.model_validate(row) for row in self._read(self.LISTS_FILE, [])]
        return sorted(lists, key=lambda lst: lst.created_at)

    def get_list(self, list_id: UUID) -> ShoppingList | None:
        """Get a list by ID.

        Returns:
            ShoppingList if found, None otherwise
        """
        for shopping_list in self.load_lists():
            if shopping_list.id == list_id:
                return shopping_list
        return None

    def save_list(self, shopping_list: ShoppingList) -> None:
        """Insert or replace a list."""
        rows = _upsert_rows(self._read(self.LISTS_FILE, []), [shopping_list.to_wire()])
        self._write(self.LISTS_FILE, rows)

    def delete_list(self, list_id: UUID) -> None:
        """Delete a list and all of its items."""
        rows = [row for row in self._read(self.LISTS_FILE, []) if row["id"] != str(list_id)]
        self._write(self.LISTS_FILE, rows)

        items = [row for row in self._read(self.ITEMS_FILE, []) if row["listId"] != str(list_id)]
        self._write(self.ITEMS_FILE, items)

    # --- Item Operations ---

    def load_items(self, list_id: UUID | None = None) -> list[ShoppingItem]:
        """Load items, optionally restricted to one list, in insertion order."""
        items = [ShoppingItem.model_validate(row) for row in self._read(self.ITEMS_FILE, [])]
        if list_id is not None:
            items = [item for item in items if item.list_id == list_id]
        return sorted(items, key=lambda item: item.added_at)

    def get_item(self, item_id: UUID) -> ShoppingItem | None:
        """Get a specific item by ID.

        Args:
            item_id: UUID of the item

        Returns:
            ShoppingItem if found, None otherwise
        """
        for item in self.load_items():
            if item.id == item_id:
                return item
        return None

    def save_item(self, item: ShoppingItem) -> None:
        """Insert or replace an item."""
        self.save_items([item])

    def save_items(self, items: list[ShoppingItem]) -> None:
        """Insert or replace several items in a single write."""
        rows = _upsert_rows(
            self._read(self.ITEMS_FILE, []), [item.to_wire() for item in items]
        )
        self._write(self.ITEMS_FILE, rows)

    def delete_item(self, item_id: UUID) -> None:
        """Delete an item."""
        rows = [row for row in self._read(self.ITEMS_FILE, []) if row["id"] != str(item_id)]
        self._write(self.ITEMS_FILE, rows)

    def delete_completed(self, list_id: UUID) -> int:
        """Delete the completed items of a list.

        Returns:
            Number of items removed
        """
        rows = self._read(self.ITEMS_FILE, [])
        kept = [
            row for row in rows if not (row["listId"] == str(list_id) and row.get("completed"))
        ]
        self._write(self.ITEMS_FILE, kept)
        return len(rows) - len(kept)

    def update_category_by_name(self, normalized_name: str, category: str) -> int:
        """Set the category of every item whose normalized name matches.

        All matching rows across all lists are rewritten in one file write.

        Returns:
            Number of items updated
        """
        rows = self._read(self.ITEMS_FILE, [])
        count = 0
        for row in rows:
            if row["name"].lower().strip() == normalized_name:
                row["category"] = category
                count += 1

        if count:
            self._write(self.ITEMS_FILE, rows)
        return count

    # --- Custom Category Operations ---

    def load_custom_categories(self) -> list[Category]:
        """Load user-created categories ordered by sort order."""
        categories = [
            Category.model_validate({**row, "origin": CategoryOrigin.CUSTOM})
            for row in self._read(self.CATEGORIES_FILE, [])
        ]
        return sorted(categories, key=lambda c: c.sort_order)

    def save_category(self, category: Category) -> None:
        """Insert or replace a custom category."""
        rows = _upsert_rows(self._read(self.CATEGORIES_FILE, []), [category.to_wire()])
        self._write(self.CATEGORIES_FILE, rows)

    def delete_category(self, category_id: str) -> None:
        """Delete a custom category."""
        rows = [row for row in self._read(self.CATEGORIES_FILE, []) if row["id"] != category_id]
        self._write(self.CATEGORIES_FILE, rows)

    # --- Product Operations ---

    def load_products(self) -> list[Product]:
        """Load all cached products."""
        return [Product.model_validate(row) for row in self._read(self.PRODUCTS_FILE, {}).values()]

    def get_product(self, barcode: str) -> Product | None:
        """Get a product by barcode.

        Returns:
            Product if cached, None otherwise
        """
        row = self._read(self.PRODUCTS_FILE, {}).get(barcode)
        return Product.model_validate(row) if row else None

    def save_product(self, product: Product) -> None:
        """Insert or replace the product stored under its barcode."""
        products = self._read(self.PRODUCTS_FILE, {})
        products[product.barcode] = product.to_wire()
        self._write(self.PRODUCTS_FILE, products)

    def delete_product(self, barcode: str) -> None:
        """Delete a product by barcode."""
        products = self._read(self.PRODUCTS_FILE, {})
        if products.pop(barcode, None) is not None:
            self._write(self.PRODUCTS_FILE, products)

    def clear_products(self) -> None:
        """Delete every cached product."""
        self._write(self.PRODUCTS_FILE, {})

    # --- Category Preference Operations ---

    def load_preferences(self) -> dict[str, CategoryPreference]:
        """Load all preferences keyed by normalized item name."""
        return {
            name: CategoryPreference.model_validate(row)
            for name, row in self._read(self.PREFERENCES_FILE, {}).items()
        }

    def get_preference(self, item_name: str) -> CategoryPreference | None:
        """Get the preference for a normalized item name."""
        row = self._read(self.PREFERENCES_FILE, {}).get(item_name)
        return CategoryPreference.model_validate(row) if row else None

    def save_preference(self, preference: CategoryPreference) -> None:
        """Insert or replace a preference."""
        prefs = self._read(self.PREFERENCES_FILE, {})
        prefs[preference.item_name] = preference.to_wire()
        self._write(self.PREFERENCES_FILE, prefs)

    def delete_preference(self, item_name: str) -> None:
        """Delete a preference."""
        prefs = self._read(self.PREFERENCES_FILE, {})
        if prefs.pop(item_name, None) is not None:
            self._write(self.PREFERENCES_FILE, prefs)

    def clear_preferences(self) -> None:
        """Delete every preference."""
        self._write(self.PREFERENCES_FILE, {})

    # --- Settings ---

    def load_category_order(self) -> list[str]:
        """Load the custom category display order, empty when unset."""
        order = self._read(self.SETTINGS_FILE, {}).get("categoryOrder", [])
        if not isinstance(order, list):
            logger.warning("Ignoring malformed category order in %s", self.SETTINGS_FILE)
            return []
        return [str(category_id) for category_id in order]

    def save_category_order(self, order: list[str]) -> None:
        """Save the category display order; an empty list resets it."""
        settings = self._read(self.SETTINGS_FILE, {})
        settings["categoryOrder"] = list(order)
        self._write(self.SETTINGS_FILE, settings)


def create_data_store(
    backend: BackendType = BackendType.JSON,
    data_dir: Path | None = None,
    db_path: Path | None = None,
) -> DataStoreProtocol:
    """Create a data store with the specified backend.

    Args:
        backend: Which backend to use (json or sqlite)
        data_dir: Directory for data files (used by JSON backend, also used
                  as base path for SQLite if db_path not specified)
        db_path: Path to SQLite database file (only used by SQLite backend)

    Returns:
        A DataStore or SQLiteStore instance

    Example:
        # Use JSON backend (default)
        store = create_data_store()

        # Use SQLite with custom path
        store = create_data_store(
            BackendType.SQLITE,
            db_path=Path("./my_data/shopping.db")
        )
    """
    if backend == BackendType.SQLITE:
        from .sqlite_store import SQLiteStore

        if db_path is None and data_dir is not None:
            db_path = data_dir / "shopping.db"

        return SQLiteStore(db_path=db_path)
    else:
        return DataStore(data_dir=data_dir)
