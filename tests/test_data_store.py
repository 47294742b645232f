"""Tests for the persistence backends.

Tests taking the ``store`` fixture run against both the JSON and the SQLite store.
"""

import json
from uuid import uuid4

import pytest

from smart_shopping.data_store import BackendType, DataStore, create_data_store
from smart_shopping.models import (
    Category,
    CategoryPreference,
    Product,
    ShoppingItem,
    ShoppingList,
)
from smart_shopping.sqlite_store import SQLiteStore


@pytest.fixture
def saved_list(store):
    """A saved, empty list."""
    shopping_list = ShoppingList(name="Groceries")
    store.save_list(shopping_list)
    return shopping_list


class TestListOperations:
    """Tests for list persistence."""

    def test_save_and_get(self, store, saved_list):
        """Saved list is found by id."""
        loaded = store.get_list(saved_list.id)
        assert loaded is not None
        assert loaded.name == "Groceries"

    def test_get_missing(self, store):
        """Unknown ids return None."""
        assert store.get_list(uuid4()) is None

    def test_upsert_keeps_one_row(self, store, saved_list):
        """Saving the same list twice updates it in place."""
        saved_list.name = "Weekly"
        saved_list.archived = True
        store.save_list(saved_list)

        lists = store.load_lists()
        assert len(lists) == 1
        assert lists[0].name == "Weekly"
        assert lists[0].archived is True

    def test_delete_cascades_to_items(self, store, saved_list):
        """Deleting a list deletes its items and nothing else."""
        other = ShoppingList(name="Other")
        store.save_list(other)
        store.save_item(ShoppingItem(list_id=saved_list.id, name="Milk"))
        store.save_item(ShoppingItem(list_id=other.id, name="Eggs"))

        store.delete_list(saved_list.id)

        assert store.get_list(saved_list.id) is None
        assert store.load_items(saved_list.id) == []
        assert [item.name for item in store.load_items()] == ["Eggs"]


class TestItemOperations:
    """Tests for item persistence."""

    def test_items_in_insertion_order(self, store, saved_list):
        """Items saved together come back in the order given."""
        items = [ShoppingItem(list_id=saved_list.id, name=n, added_at=1) for n in "abc"]
        store.save_items(items)
        assert [item.name for item in store.load_items(saved_list.id)] == ["a", "b", "c"]

    def test_fields_round_trip(self, store, saved_list):
        """Optional fields survive storage."""
        item = ShoppingItem(
            list_id=saved_list.id,
            name="Flour",
            quantity=2.5,
            unit="kg",
            category="pantry",
            barcode="4006381333931",
            notes="unbleached",
        )
        store.save_item(item)

        loaded = store.get_item(item.id)
        assert loaded == item

    def test_integer_quantity_stays_int(self, store, saved_list):
        """Whole quantities are read back as ints."""
        item = ShoppingItem(list_id=saved_list.id, name="Eggs", quantity=12)
        store.save_item(item)
        quantity = store.get_item(item.id).quantity
        assert quantity == 12
        assert isinstance(quantity, int)

    def test_completed_state_round_trip(self, store, saved_list):
        """completed and completed_at are stored together."""
        item = ShoppingItem(list_id=saved_list.id, name="Milk")
        item.set_completed(True)
        store.save_item(item)

        loaded = store.get_item(item.id)
        assert loaded.completed is True
        assert loaded.completed_at == item.completed_at

    def test_delete_item(self, store, saved_list):
        """Deleted items are gone."""
        item = ShoppingItem(list_id=saved_list.id, name="Milk")
        store.save_item(item)
        store.delete_item(item.id)
        assert store.get_item(item.id) is None

    def test_delete_completed(self, store, saved_list):
        """Only completed items of the given list are removed."""
        done = ShoppingItem(list_id=saved_list.id, name="Milk", completed=True)
        open_item = ShoppingItem(list_id=saved_list.id, name="Eggs")
        store.save_items([done, open_item])

        assert store.delete_completed(saved_list.id) == 1
        assert [item.name for item in store.load_items(saved_list.id)] == ["Eggs"]

    def test_update_category_by_name_across_lists(self, store, saved_list):
        """Every item with the same normalized name moves, in all lists."""
        other = ShoppingList(name="Party")
        store.save_list(other)
        store.save_items(
            [
                ShoppingItem(list_id=saved_list.id, name="Milk", category="dairy"),
                ShoppingItem(list_id=other.id, name=" milk ", category="dairy"),
                ShoppingItem(list_id=other.id, name="Oat milk", category="dairy"),
            ]
        )

        assert store.update_category_by_name("milk", "beverages") == 2

        categories = {item.name: item.category for item in store.load_items()}
        assert categories["Milk"] == "beverages"
        assert categories[" milk "] == "beverages"
        assert categories["Oat milk"] == "dairy"

    def test_update_category_by_name_no_match(self, store):
        """No matching items updates nothing."""
        assert store.update_category_by_name("ghost", "dairy") == 0


class TestCategoryOperations:
    """Tests for custom category persistence."""

    def test_save_load_delete(self, store):
        """Custom categories are upserted, sorted and deleted."""
        store.save_category(Category(id="custom_b_2", name="B", sort_order=12))
        store.save_category(Category(id="custom_a_1", name="A", icon="🐶", sort_order=11))
        store.save_category(Category(id="custom_b_2", name="B2", sort_order=12))

        categories = store.load_custom_categories()
        assert [c.id for c in categories] == ["custom_a_1", "custom_b_2"]
        assert categories[1].name == "B2"
        assert categories[0].icon == "🐶"

        store.delete_category("custom_a_1")
        assert [c.id for c in store.load_custom_categories()] == ["custom_b_2"]

    def test_category_order(self, store):
        """Category order round-trips and an empty list resets it."""
        assert store.load_category_order() == []
        store.save_category_order(["dairy", "produce"])
        assert store.load_category_order() == ["dairy", "produce"]
        store.save_category_order([])
        assert store.load_category_order() == []


class TestProductOperations:
    """Tests for product persistence."""

    def test_upsert_by_barcode(self, store):
        """Saving the same barcode twice keeps one product."""
        store.save_product(Product(barcode="123", name="Milk", category="dairy"))
        store.save_product(Product(barcode="123", name="Whole Milk", category="dairy"))

        products = store.load_products()
        assert len(products) == 1
        assert store.get_product("123").name == "Whole Milk"

    def test_last_used_preserved(self, store):
        """Explicit last_used values are stored as given."""
        store.save_product(Product(barcode="123", name="Milk", category="dairy", last_used=42))
        assert store.get_product("123").last_used == 42

    def test_delete_and_clear(self, store):
        """Products can be removed one by one or all at once."""
        store.save_product(Product(barcode="1", name="A", category="other"))
        store.save_product(Product(barcode="2", name="B", category="other"))

        store.delete_product("1")
        assert store.get_product("1") is None

        store.clear_products()
        assert store.load_products() == []

    def test_missing_product(self, store):
        """Unknown barcodes return None."""
        assert store.get_product("nope") is None


class TestPreferenceOperations:
    """Tests for preference persistence."""

    def test_save_get_replace(self, store):
        """The latest preference for a name wins."""
        store.save_preference(CategoryPreference(item_name="milk", category="dairy"))
        store.save_preference(CategoryPreference(item_name="milk", category="beverages"))

        assert store.get_preference("milk").category == "beverages"
        assert list(store.load_preferences()) == ["milk"]

    def test_delete_and_clear(self, store):
        """Preferences can be removed one by one or all at once."""
        store.save_preference(CategoryPreference(item_name="milk", category="dairy"))
        store.save_preference(CategoryPreference(item_name="eggs", category="dairy"))

        store.delete_preference("milk")
        assert store.get_preference("milk") is None

        store.clear_preferences()
        assert store.load_preferences() == {}


class TestCreateDataStore:
    """Tests for the backend factory."""

    def test_json_backend(self, temp_data_dir):
        """JSON backend is the default."""
        assert isinstance(create_data_store(data_dir=temp_data_dir), DataStore)

    def test_sqlite_backend_default_path(self, temp_data_dir):
        """SQLite database lives in the data directory by default."""
        store = create_data_store(BackendType.SQLITE, data_dir=temp_data_dir)
        assert isinstance(store, SQLiteStore)
        assert store.db_path == temp_data_dir / "shopping.db"

    def test_sqlite_backend_explicit_path(self, tmp_path):
        """An explicit db_path wins."""
        db_path = tmp_path / "custom" / "my.db"
        store = create_data_store(BackendType.SQLITE, db_path=db_path)
        assert store.db_path == db_path
        assert db_path.exists()


class TestJsonFiles:
    """Tests for the JSON backend's on-disk format."""

    def test_items_written_in_camel_case(self, data_store, temp_data_dir):
        """Item files use the camelCase wire format."""
        shopping_list = ShoppingList(name="Groceries")
        data_store.save_list(shopping_list)
        data_store.save_item(ShoppingItem(list_id=shopping_list.id, name="Milk"))

        rows = json.loads((temp_data_dir / "items.json").read_text())
        assert rows[0]["listId"] == str(shopping_list.id)
        assert "addedAt" in rows[0]

    def test_malformed_category_order_ignored(self, data_store, temp_data_dir):
        """A non-list category order reads as empty."""
        (temp_data_dir / "settings.json").write_text('{"categoryOrder": "dairy"}')
        assert data_store.load_category_order() == []
