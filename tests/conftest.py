"""Shared test fixtures for Smart Shopping."""

import pytest

from smart_shopping.backup import BackupManager
from smart_shopping.category_manager import CategoryManager
from smart_shopping.data_store import BackendType, DataStore, create_data_store
from smart_shopping.list_manager import ListManager


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config lookups away from the real home and working directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture(params=[BackendType.JSON, BackendType.SQLITE], ids=["json", "sqlite"])
def store(request, temp_data_dir):
    """A data store for each backend."""
    return create_data_store(backend=request.param, data_dir=temp_data_dir)


@pytest.fixture
def data_store(temp_data_dir):
    """Create a JSON DataStore with temporary directory."""
    return DataStore(data_dir=temp_data_dir)


@pytest.fixture
def list_manager(store):
    """Create a ListManager on each backend."""
    return ListManager(data_store=store)


@pytest.fixture
def category_manager(store):
    """Create a CategoryManager on each backend."""
    return CategoryManager(store)


@pytest.fixture
def backup_manager(store, list_manager, category_manager):
    """Create a BackupManager sharing the list manager's preferences."""
    return BackupManager(
        store, preferences=list_manager.preferences, categories=category_manager
    )


@pytest.fixture
def groceries(list_manager):
    """A list holding milk, bread and a completed bunch of bananas."""
    shopping_list = list_manager.create_list("Groceries")["data"]["shopping_list"]
    list_id = shopping_list["id"]

    milk = list_manager.add_item(list_id, "Milk", quantity=2)["data"]["item"]
    bread = list_manager.add_item(list_id, "Bread")["data"]["item"]
    bananas = list_manager.add_item(list_id, "Bananas", unit="bunch")["data"]["item"]
    list_manager.toggle_complete(bananas["id"])

    return {"list_id": list_id, "milk": milk, "bread": bread, "bananas": bananas}
