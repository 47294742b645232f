"""Shopping list and item operations."""

import logging
from uuid import UUID, uuid4

from .categories import OTHER_CATEGORY, categorize
from .data_store import DataStoreProtocol
from .models import ListExport, ShoppingItem, ShoppingList, now_ms
from .preferences import PreferenceStore
from .product_cache import ProductCache
from .text_parser import normalize_item_name, parse_items, sanitize_item_name

logger = logging.getLogger(__name__)


class ListNotFoundError(Exception):
    """Raised when a list is not found."""

    def __init__(self, list_id: UUID | str):
        self.list_id = list_id
        super().__init__(f"List with ID '{list_id}' not found")


class ItemNotFoundError(Exception):
    """Raised when an item is not found."""

    def __init__(self, item_id: UUID | str):
        self.item_id = item_id
        super().__init__(f"Item with ID '{item_id}' not found")


class ProductNotFoundError(Exception):
    """Raised when a scanned barcode is not in the product cache."""

    def __init__(self, barcode: str):
        self.barcode = barcode
        super().__init__(f"No product cached for barcode '{barcode}'")


def _as_uuid(value: UUID | str) -> UUID:
    return value if isinstance(value, UUID) else UUID(value)


class ListManager:
    """Manages shopping lists and their items."""

    def __init__(
        self,
        data_store: DataStoreProtocol,
        preferences: PreferenceStore | None = None,
        products: ProductCache | None = None,
        default_category: str = OTHER_CATEGORY,
    ):
        """Initialize list manager.

        Args:
            data_store: Backend holding lists and items
            preferences: Preference store; built on data_store if not provided
            products: Product cache; built on data_store if not provided
            default_category: Category for names no keyword matches
        """
        self.data_store = data_store
        self.preferences = preferences or PreferenceStore(data_store)
        self.products = products or ProductCache(data_store, self.preferences)
        self.default_category = default_category

    # --- Lists ---

    def _require_list(self, list_id: UUID | str) -> ShoppingList:
        try:
            list_id = _as_uuid(list_id)
        except ValueError:
            raise ListNotFoundError(list_id) from None

        shopping_list = self.data_store.get_list(list_id)
        if shopping_list is None:
            raise ListNotFoundError(list_id)
        return shopping_list

    def _touch(self, shopping_list: ShoppingList) -> None:
        shopping_list.updated_at = now_ms()
        self.data_store.save_list(shopping_list)

    def create_list(self, name: str, color: str | None = None) -> dict:
        """Create a new, empty list.

        Returns:
            Dict with success status and list data
        """
        shopping_list = ShoppingList(name=sanitize_item_name(name), color=color)
        self.data_store.save_list(shopping_list)
        logger.info("Created list %s", shopping_list.id)

        return {
            "success": True,
            "message": f"Created list {shopping_list.name}",
            "data": {"shopping_list": shopping_list.to_wire()},
        }

    def get_lists(self, include_archived: bool = False) -> dict:
        """Get lists with item counts.

        Args:
            include_archived: Whether archived lists are included

        Returns:
            Dict with list summaries
        """
        summaries = []
        for shopping_list in self.data_store.load_lists():
            if shopping_list.archived and not include_archived:
                continue
            items = self.data_store.load_items(shopping_list.id)
            summaries.append(
                {
                    **shopping_list.to_wire(),
                    "total_items": len(items),
                    "completed_items": sum(1 for item in items if item.completed),
                }
            )

        return {"success": True, "data": {"lists": summaries}}

    def get_list(self, list_id: UUID | str) -> ShoppingList:
        """Get a list by ID.

        Raises:
            ListNotFoundError: If list not found
        """
        return self._require_list(list_id)

    def rename_list(self, list_id: UUID | str, name: str, color: str | None = None) -> dict:
        """Rename a list, optionally changing its color."""
        shopping_list = self._require_list(list_id)
        shopping_list.name = sanitize_item_name(name)
        if color:
            shopping_list.color = color
        self._touch(shopping_list)

        return {
            "success": True,
            "message": f"Renamed list to {shopping_list.name}",
            "data": {"shopping_list": shopping_list.to_wire()},
        }

    def archive_list(self, list_id: UUID | str) -> dict:
        """Archive a list."""
        return self._set_archived(list_id, True)

    def unarchive_list(self, list_id: UUID | str) -> dict:
        """Restore an archived list."""
        return self._set_archived(list_id, False)

    def _set_archived(self, list_id: UUID | str, archived: bool) -> dict:
        shopping_list = self._require_list(list_id)
        shopping_list.archived = archived
        self._touch(shopping_list)

        verb = "Archived" if archived else "Unarchived"
        return {
            "success": True,
            "message": f"{verb} list {shopping_list.name}",
            "data": {"shopping_list": shopping_list.to_wire()},
        }

    def delete_list(self, list_id: UUID | str) -> dict:
        """Delete a list and all of its items."""
        shopping_list = self._require_list(list_id)
        self.data_store.delete_list(shopping_list.id)
        logger.info("Deleted list %s", shopping_list.id)

        return {
            "success": True,
            "message": f"Deleted list {shopping_list.name}",
            "data": {"shopping_list": shopping_list.to_wire()},
        }

    def duplicate_list(self, list_id: UUID | str) -> dict:
        """Copy a list and its items; copied items start uncompleted."""
        original = self._require_list(list_id)
        copy = ShoppingList(name=f"{original.name} (copy)", color=original.color)
        self.data_store.save_list(copy)

        added_at = now_ms()
        items = [
            item.model_copy(
                update={
                    "id": uuid4(),
                    "list_id": copy.id,
                    "completed": False,
                    "completed_at": None,
                    "added_at": added_at,
                }
            )
            for item in self.data_store.load_items(original.id)
        ]
        if items:
            self.data_store.save_items(items)

        return {
            "success": True,
            "message": f"Duplicated {original.name} as {copy.name}",
            "data": {"shopping_list": copy.to_wire(), "copied_items": len(items)},
        }

    def import_list(self, export: ListExport) -> dict:
        """Create a new list from a single-list export.

        The list and its items get fresh ids; completed state is kept.
        """
        shopping_list = ShoppingList(name=export.list_.name, color=export.list_.color)
        self.data_store.save_list(shopping_list)

        items = [
            item.model_copy(update={"id": uuid4(), "list_id": shopping_list.id})
            for item in export.items
        ]
        if items:
            self.data_store.save_items(items)

        logger.info("Imported list %s with %d item(s)", shopping_list.id, len(items))
        return {
            "success": True,
            "message": f"Imported {shopping_list.name} ({len(items)} items)",
            "data": {"shopping_list": shopping_list.to_wire(), "copied_items": len(items)},
        }

    # --- Items ---

    def resolve_category(self, name: str) -> str:
        """Category for a new item: learned preference first, then keywords."""
        preferred = self.preferences.get_preferred_category(name)
        if preferred:
            return preferred

        category = categorize(name)
        return self.default_category if category == OTHER_CATEGORY else category

    def add_item(
        self,
        list_id: UUID | str,
        name: str,
        category: str | None = None,
        quantity: int | float = 1,
        unit: str | None = None,
        notes: str | None = None,
        barcode: str | None = None,
    ) -> dict:
        """Add an item to a list.

        Args:
            list_id: Target list
            name: Item name, sanitized before saving
            category: Explicit category; resolved from preferences and
                      keywords when omitted
            quantity: Amount to buy
            unit: Unit of measurement
            notes: Additional notes
            barcode: Barcode the item was scanned from

        Returns:
            Dict with success status and item data

        Raises:
            ListNotFoundError: If list not found
        """
        shopping_list = self._require_list(list_id)
        name = sanitize_item_name(name)

        item = ShoppingItem(
            list_id=shopping_list.id,
            name=name,
            category=category or self.resolve_category(name),
            quantity=quantity,
            unit=unit,
            notes=notes,
            barcode=barcode,
        )
        self.data_store.save_item(item)
        self._touch(shopping_list)

        return {
            "success": True,
            "message": f"Added {name} to {shopping_list.name}",
            "data": {"item": item.to_wire()},
        }

    def add_items_from_text(self, list_id: UUID | str, text: str) -> dict:
        """Parse free text or a voice transcript and add every item found."""
        shopping_list = self._require_list(list_id)
        names = parse_items(text)

        items = [
            ShoppingItem(list_id=shopping_list.id, name=name, category=self.resolve_category(name))
            for name in names
        ]
        if items:
            self.data_store.save_items(items)
            self._touch(shopping_list)

        return {
            "success": True,
            "message": f"Added {len(items)} item(s) to {shopping_list.name}",
            "data": {"items": [item.to_wire() for item in items]},
        }

    def add_scanned_item(
        self, list_id: UUID | str, barcode: str, decoded_format: str | None = None
    ) -> dict:
        """Add the cached product for a scanned barcode.

        Raises:
            ProductNotFoundError: If the barcode is unknown; the caller should
                                  fall back to add_manual_product
        """
        self._require_list(list_id)
        product = self.products.resolve_scan(barcode)
        if product is None:
            raise ProductNotFoundError(barcode)

        logger.debug("Scanned %s (%s)", barcode, decoded_format or "unknown format")
        return self.add_item(list_id, product.name, category=product.category, barcode=barcode)

    def add_manual_product(
        self,
        list_id: UUID | str,
        barcode: str,
        name: str,
        category: str | None = None,
    ) -> dict:
        """Add a manually identified product and cache it for future scans."""
        self._require_list(list_id)
        name = sanitize_item_name(name)
        category = category or self.resolve_category(name)

        self.products.save_product(barcode, name, category)
        return self.add_item(list_id, name, category=category, barcode=barcode)

    def get_items(self, list_id: UUID | str) -> dict:
        """Get a list with its items.

        Returns:
            Dict with list and item data
        """
        shopping_list = self._require_list(list_id)
        items = self.data_store.load_items(shopping_list.id)

        return {
            "success": True,
            "data": {
                "list": {
                    **shopping_list.to_wire(),
                    "items": [item.to_wire() for item in items],
                    "total_items": len(items),
                    "completed_items": sum(1 for item in items if item.completed),
                }
            },
        }

    def get_item(self, item_id: UUID | str) -> ShoppingItem:
        """Get a specific item by ID.

        Raises:
            ItemNotFoundError: If item not found
        """
        try:
            item_id = _as_uuid(item_id)
        except ValueError:
            raise ItemNotFoundError(item_id) from None

        item = self.data_store.get_item(item_id)
        if not item:
            raise ItemNotFoundError(item_id)
        return item

    def update_item(
        self,
        item_id: UUID | str,
        name: str | None = None,
        quantity: int | float | None = None,
        unit: str | None = None,
        notes: str | None = None,
    ) -> dict:
        """Update an existing item.

        Category changes go through change_category so that they are learned.

        Raises:
            ItemNotFoundError: If item not found
        """
        item = self.get_item(item_id)
        if name is not None:
            item.name = sanitize_item_name(name)
        if quantity is not None:
            item.quantity = quantity
        if unit is not None:
            item.unit = unit
        if notes is not None:
            item.notes = notes

        self.data_store.save_item(item)
        return {
            "success": True,
            "message": f"Updated {item.name}",
            "data": {"item": item.to_wire()},
        }

    def toggle_complete(self, item_id: UUID | str) -> dict:
        """Flip an item between completed and not completed."""
        item = self.get_item(item_id)
        item.set_completed(not item.completed)
        self.data_store.save_item(item)

        state = "completed" if item.completed else "not completed"
        return {
            "success": True,
            "message": f"Marked {item.name} as {state}",
            "data": {"item": item.to_wire()},
        }

    def set_completed(self, item_id: UUID | str, completed: bool) -> ShoppingItem:
        """Set an item's completion state explicitly."""
        item = self.get_item(item_id)
        if item.completed != completed:
            item.set_completed(completed)
            self.data_store.save_item(item)
        return item

    def remove_item(self, item_id: UUID | str) -> dict:
        """Remove an item from its list.

        Raises:
            ItemNotFoundError: If item not found
        """
        item = self.get_item(item_id)
        self.data_store.delete_item(item.id)

        return {
            "success": True,
            "message": f"Removed {item.name}",
            "data": {"item": item.to_wire()},
        }

    def remove_completed(self, list_id: UUID | str) -> dict:
        """Remove every completed item from a list."""
        shopping_list = self._require_list(list_id)
        removed_count = self.data_store.delete_completed(shopping_list.id)

        return {
            "success": True,
            "message": f"Cleared {removed_count} completed items",
            "data": {"removed_count": removed_count},
        }

    def change_category(self, item_id: UUID | str, category: str) -> dict:
        """Change an item's category and learn it for every same-named item.

        The preference is saved first, then every item in every list whose
        normalized name matches is moved to the new category in one backend
        operation.

        Returns:
            Dict with the updated item and how many items changed
        """
        item = self.get_item(item_id)
        self.preferences.save_preference(item.name, category)
        updated_count = self.data_store.update_category_by_name(
            normalize_item_name(item.name), category
        )
        item.category = category
        logger.info("Moved %d item(s) named %r to %s", updated_count, item.name, category)

        return {
            "success": True,
            "message": f'Will remember "{item.name}" -> {category} ({updated_count} items updated)',
            "data": {"item": item.to_wire(), "updated_count": updated_count},
        }

    def get_by_category(self, list_id: UUID | str) -> dict:
        """Get a list's items grouped by category id."""
        shopping_list = self._require_list(list_id)

        by_category: dict[str, list[dict]] = {}
        for item in self.data_store.load_items(shopping_list.id):
            by_category.setdefault(item.category, []).append(item.to_wire())

        return {
            "success": True,
            "data": {"by_category": by_category},
        }
