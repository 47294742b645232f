"""Built-in and custom categories, and their display order."""

import logging
import re

from .categories import (
    BUILTIN_CATEGORIES,
    BUILTIN_CATEGORY_IDS,
    OTHER_CATEGORY,
    get_builtin_category,
    sort_categories,
)
from .data_store import DataStoreProtocol
from .models import Category, CategoryOrigin, now_ms

logger = logging.getLogger(__name__)


class CategoryError(Exception):
    """Raised for invalid category changes."""


class CategoryManager:
    """Manages the merged set of built-in and user-created categories."""

    def __init__(self, data_store: DataStoreProtocol):
        self.data_store = data_store

    def custom_categories(self) -> list[Category]:
        """User-created categories ordered by sort order."""
        return self.data_store.load_custom_categories()

    def all_categories(self) -> list[Category]:
        """Built-in categories followed by custom ones."""
        return [*BUILTIN_CATEGORIES, *self.custom_categories()]

    def sorted_categories(self) -> list[Category]:
        """All categories in display order."""
        return sort_categories(self.all_categories(), self.data_store.load_category_order())

    def get_category(self, category_id: str) -> Category | None:
        """Find a category by id, None when unknown."""
        builtin = get_builtin_category(category_id)
        if builtin is not None:
            return builtin

        for category in self.custom_categories():
            if category.id == category_id:
                return category
        return None

    def get_category_display(self, category_id: str) -> str:
        """Icon and name for a category, falling back to Other."""
        category = self.get_category(category_id) or get_builtin_category(OTHER_CATEGORY)
        return category.display

    def create_category(self, name: str, icon: str = "📦") -> Category:
        """Create a custom category.

        The id is derived from the name plus a millisecond timestamp and the
        new category sorts after every existing one.

        Raises:
            CategoryError: If the name is blank or the id is already taken
        """
        name = name.strip()
        if not name:
            raise CategoryError("Category name cannot be empty")

        slug = re.sub(r"\s+", "_", name.lower())
        category_id = f"custom_{slug}_{now_ms()}"
        existing = self.all_categories()
        if any(category.id == category_id for category in existing):
            raise CategoryError(f"Category '{category_id}' already exists")

        max_sort_order = max(
            [category.sort_order for category in existing] + [len(BUILTIN_CATEGORIES)]
        )
        category = Category(
            id=category_id,
            name=name,
            icon=icon,
            sort_order=max_sort_order + 1,
            origin=CategoryOrigin.CUSTOM,
        )
        self.data_store.save_category(category)
        logger.info("Created category %s", category_id)
        return category

    def restore_category(self, category: Category) -> Category:
        """Store a custom category under its existing id (used by backups).

        Raises:
            CategoryError: If the id belongs to a built-in category
        """
        if category.id in BUILTIN_CATEGORY_IDS:
            raise CategoryError(f"Cannot overwrite built-in category '{category.id}'")

        restored = category.model_copy(update={"origin": CategoryOrigin.CUSTOM})
        self.data_store.save_category(restored)
        return restored

    def update_category(
        self,
        category_id: str,
        name: str | None = None,
        icon: str | None = None,
        sort_order: int | None = None,
    ) -> Category:
        """Update a custom category.

        Raises:
            CategoryError: If the category is built-in or unknown
        """
        if category_id in BUILTIN_CATEGORY_IDS:
            raise CategoryError(f"Built-in category '{category_id}' cannot be changed")

        category = self.get_category(category_id)
        if category is None:
            raise CategoryError(f"Category '{category_id}' not found")

        if name is not None:
            category.name = name
        if icon is not None:
            category.icon = icon
        if sort_order is not None:
            category.sort_order = sort_order

        self.data_store.save_category(category)
        return category

    def delete_category(self, category_id: str) -> None:
        """Delete a custom category.

        Raises:
            CategoryError: If the category is built-in
        """
        if category_id in BUILTIN_CATEGORY_IDS:
            raise CategoryError(f"Built-in category '{category_id}' cannot be deleted")
        self.data_store.delete_category(category_id)

    def get_category_order(self) -> list[str]:
        """The explicit display order, empty when using default sort order."""
        return self.data_store.load_category_order()

    def save_category_order(self, order: list[str]) -> None:
        """Set an explicit display order of category ids."""
        self.data_store.save_category_order(order)

    def reset_category_order(self) -> None:
        """Return to default sort order."""
        self.data_store.save_category_order([])
