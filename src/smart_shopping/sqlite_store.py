"""SQLite-based data persistence for Smart Shopping.

This module provides SQLite database storage as an alternative to JSON files.
It implements the same interface as DataStore for seamless switching.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from uuid import UUID

from .models import Category, CategoryOrigin, CategoryPreference, Product, ShoppingItem, ShoppingList

logger = logging.getLogger(__name__)


class SQLiteStore:
    """Manages SQLite database persistence for shopping data."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | None = None):
        """Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file. Defaults to ./data/shopping.db
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "shopping.db"
        self.db_path = db_path
        self._ensure_directories()
        self._init_database()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper cleanup.

        Everything executed inside one ``with`` block is a single transaction.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database schema if not exists."""
        with self._get_connection() as conn:
            conn.executescript("""
                -- Schema version tracking
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                );

                -- Shopping lists
                CREATE TABLE IF NOT EXISTS lists (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL,
                    archived INTEGER NOT NULL DEFAULT 0,
                    color TEXT
                );

                -- Shopping items
                CREATE TABLE IF NOT EXISTS items (
                    id TEXT PRIMARY KEY,
                    list_id TEXT NOT NULL REFERENCES lists(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    quantity REAL NOT NULL DEFAULT 1,
                    unit TEXT,
                    category TEXT NOT NULL DEFAULT 'other',
                    completed INTEGER NOT NULL DEFAULT 0,
                    added_at INTEGER NOT NULL,
                    completed_at INTEGER,
                    barcode TEXT,
                    notes TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_items_list_id ON items(list_id);

                -- User-created categories
                CREATE TABLE IF NOT EXISTS categories (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    icon TEXT,
                    sort_order INTEGER NOT NULL DEFAULT 0
                );

                -- Barcode product cache
                CREATE TABLE IF NOT EXISTS products (
                    barcode TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    last_used INTEGER NOT NULL
                );

                -- Learned category preferences
                CREATE TABLE IF NOT EXISTS category_preferences (
                    item_name TEXT PRIMARY KEY,
                    category TEXT NOT NULL,
                    learned_at INTEGER NOT NULL
                );

                -- Key/value settings (category order)
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );

                -- Record schema version
                INSERT OR IGNORE INTO schema_version (version) VALUES (1);
            """)

    # --- List Operations ---

    def _row_to_list(self, row: sqlite3.Row) -> ShoppingList:
        return ShoppingList(
            id=UUID(row["id"]),
            name=row["name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            archived=bool(row["archived"]),
            color=row["color"],
        )

    def load_lists(self) -> list[ShoppingList]:
        """Load all shopping lists, oldest first."""
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM lists ORDER BY created_at, rowid").fetchall()
            return [self._row_to_list(row) for row in rows]

    def get_list(self, list_id: UUID) -> ShoppingList | None:
        """Get a list by ID.

        Returns:
            ShoppingList if found, None otherwise
        """
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM lists WHERE id = ?", (str(list_id),)).fetchone()
            return self._row_to_list(row) if row else None

    def save_list(self, shopping_list: ShoppingList) -> None:
        """Insert or update a list."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO lists (id, name, created_at, updated_at, archived, color)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    updated_at = excluded.updated_at,
                    archived = excluded.archived,
                    color = excluded.color
                """,
                (
                    str(shopping_list.id),
                    shopping_list.name,
                    shopping_list.created_at,
                    shopping_list.updated_at,
                    int(shopping_list.archived),
                    shopping_list.color,
                ),
            )

    def delete_list(self, list_id: UUID) -> None:
        """Delete a list; its items go with it via ON DELETE CASCADE."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM lists WHERE id = ?", (str(list_id),))

    # --- Item Operations ---

    def _row_to_item(self, row: sqlite3.Row) -> ShoppingItem:
        quantity = row["quantity"]
        if isinstance(quantity, float) and quantity.is_integer():
            quantity = int(quantity)

        return ShoppingItem(
            id=UUID(row["id"]),
            list_id=UUID(row["list_id"]),
            name=row["name"],
            quantity=quantity,
            unit=row["unit"],
            category=row["category"],
            completed=bool(row["completed"]),
            added_at=row["added_at"],
            completed_at=row["completed_at"],
            barcode=row["barcode"],
            notes=row["notes"],
        )

    def load_items(self, list_id: UUID | None = None) -> list[ShoppingItem]:
        """Load items, optionally restricted to one list, in insertion order."""
        with self._get_connection() as conn:
            if list_id is None:
                rows = conn.execute("SELECT * FROM items ORDER BY added_at, rowid").fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM items WHERE list_id = ? ORDER BY added_at, rowid",
                    (str(list_id),),
                ).fetchall()
            return [self._row_to_item(row) for row in rows]

    def get_item(self, item_id: UUID) -> ShoppingItem | None:
        """Get a specific item by ID.

        Args:
            item_id: UUID of the item

        Returns:
            ShoppingItem if found, None otherwise
        """
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM items WHERE id = ?", (str(item_id),)).fetchone()
            return self._row_to_item(row) if row else None

    def save_item(self, item: ShoppingItem) -> None:
        """Insert or update an item."""
        self.save_items([item])

    def save_items(self, items: list[ShoppingItem]) -> None:
        """Insert or update several items in one transaction."""
        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT INTO items
                (id, list_id, name, quantity, unit, category, completed,
                 added_at, completed_at, barcode, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    list_id = excluded.list_id,
                    name = excluded.name,
                    quantity = excluded.quantity,
                    unit = excluded.unit,
                    category = excluded.category,
                    completed = excluded.completed,
                    completed_at = excluded.completed_at,
                    barcode = excluded.barcode,
                    notes = excluded.notes
                """,
                [
                    (
                        str(item.id),
                        str(item.list_id),
                        item.name,
                        item.quantity,
                        item.unit,
                        item.category,
                        int(item.completed),
                        item.added_at,
                        item.completed_at,
                        item.barcode,
                        item.notes,
                    )
                    for item in items
                ],
            )

    def delete_item(self, item_id: UUID) -> None:
        """Delete an item."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM items WHERE id = ?", (str(item_id),))

    def delete_completed(self, list_id: UUID) -> int:
        """Delete the completed items of a list.

        Returns:
            Number of items removed
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM items WHERE list_id = ? AND completed = 1", (str(list_id),)
            )
            return cursor.rowcount

    def update_category_by_name(self, normalized_name: str, category: str) -> int:
        """Set the category of every item whose normalized name matches.

        Names are compared with Python's lower()/strip() rather than SQLite's
        ASCII-only lower(); the update runs in one transaction.

        Returns:
            Number of items updated
        """
        with self._get_connection() as conn:
            rows = conn.execute("SELECT id, name FROM items").fetchall()
            matching = [
                (category, row["id"])
                for row in rows
                if row["name"].lower().strip() == normalized_name
            ]
            conn.executemany("UPDATE items SET category = ? WHERE id = ?", matching)
            return len(matching)

    # --- Custom Category Operations ---

    def load_custom_categories(self) -> list[Category]:
        """Load user-created categories ordered by sort order."""
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM categories ORDER BY sort_order, rowid").fetchall()
            return [
                Category(
                    id=row["id"],
                    name=row["name"],
                    icon=row["icon"],
                    sort_order=row["sort_order"],
                    origin=CategoryOrigin.CUSTOM,
                )
                for row in rows
            ]

    def save_category(self, category: Category) -> None:
        """Insert or update a custom category."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO categories (id, name, icon, sort_order) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    icon = excluded.icon,
                    sort_order = excluded.sort_order
                """,
                (category.id, category.name, category.icon, category.sort_order),
            )

    def delete_category(self, category_id: str) -> None:
        """Delete a custom category."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))

    # --- Product Operations ---

    def _row_to_product(self, row: sqlite3.Row) -> Product:
        return Product(
            barcode=row["barcode"],
            name=row["name"],
            category=row["category"],
            last_used=row["last_used"],
        )

    def load_products(self) -> list[Product]:
        """Load all cached products."""
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM products").fetchall()
            return [self._row_to_product(row) for row in rows]

    def get_product(self, barcode: str) -> Product | None:
        """Get a product by barcode.

        Returns:
            Product if cached, None otherwise
        """
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM products WHERE barcode = ?", (barcode,)).fetchone()
            return self._row_to_product(row) if row else None

    def save_product(self, product: Product) -> None:
        """Insert or replace the product stored under its barcode."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO products (barcode, name, category, last_used)
                VALUES (?, ?, ?, ?)
                """,
                (product.barcode, product.name, product.category, product.last_used),
            )

    def delete_product(self, barcode: str) -> None:
        """Delete a product by barcode."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM products WHERE barcode = ?", (barcode,))

    def clear_products(self) -> None:
        """Delete every cached product."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM products")

    # --- Category Preference Operations ---

    def _row_to_preference(self, row: sqlite3.Row) -> CategoryPreference:
        return CategoryPreference(
            item_name=row["item_name"],
            category=row["category"],
            learned_at=row["learned_at"],
        )

    def load_preferences(self) -> dict[str, CategoryPreference]:
        """Load all preferences keyed by normalized item name."""
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM category_preferences").fetchall()
            return {row["item_name"]: self._row_to_preference(row) for row in rows}

    def get_preference(self, item_name: str) -> CategoryPreference | None:
        """Get the preference for a normalized item name."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM category_preferences WHERE item_name = ?", (item_name,)
            ).fetchone()
            return self._row_to_preference(row) if row else None

    def save_preference(self, preference: CategoryPreference) -> None:
        """Insert or replace a preference."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO category_preferences (item_name, category, learned_at)
                VALUES (?, ?, ?)
                """,
                (preference.item_name, preference.category, preference.learned_at),
            )

    def delete_preference(self, item_name: str) -> None:
        """Delete a preference."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM category_preferences WHERE item_name = ?", (item_name,))

    def clear_preferences(self) -> None:
        """Delete every preference."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM category_preferences")

    # --- Settings ---

    def load_category_order(self) -> list[str]:
        """Load the custom category display order, empty when unset."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM settings WHERE key = 'category_order'"
            ).fetchone()

        if row is None:
            return []

        try:
            order = json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed category order setting")
            return []
        return [str(category_id) for category_id in order] if isinstance(order, list) else []

    def save_category_order(self, order: list[str]) -> None:
        """Save the category display order; an empty list resets it."""
        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES ('category_order', ?)",
                (json.dumps(list(order)),),
            )
