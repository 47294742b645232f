"""Tests for CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from smart_shopping.main import app

runner = CliRunner()


@pytest.fixture
def shop(temp_data_dir):
    """Invoke the CLI in JSON mode against the temp data directory."""

    def invoke(*args: str):
        return runner.invoke(app, ["--json", "--data-dir", str(temp_data_dir), *args])

    return invoke


@pytest.fixture
def list_id(shop):
    """Create a list and return its id."""
    result = shop("lists", "new", "Groceries")
    return json.loads(result.stdout)["data"]["shopping_list"]["id"]


def _items(shop, list_id):
    return json.loads(shop("items", "ls", list_id).stdout)["data"]["list"]["items"]


class TestListsCommands:
    """Tests for the lists command group."""

    def test_new_and_ls(self, shop, list_id):
        """Created lists show up with counts."""
        result = shop("lists", "ls")
        assert result.exit_code == 0

        lists = json.loads(result.stdout)["data"]["lists"]
        assert [entry["id"] for entry in lists] == [list_id]
        assert lists[0]["total_items"] == 0

    def test_rename(self, shop, list_id):
        """Lists can be renamed."""
        result = shop("lists", "rename", list_id, "Costco")
        assert json.loads(result.stdout)["data"]["shopping_list"]["name"] == "Costco"

    def test_archive_and_undo(self, shop, list_id):
        """Archived lists need --all to show."""
        shop("lists", "archive", list_id)
        assert json.loads(shop("lists", "ls").stdout)["data"]["lists"] == []
        assert len(json.loads(shop("lists", "ls", "--all").stdout)["data"]["lists"]) == 1

        shop("lists", "archive", list_id, "--undo")
        assert len(json.loads(shop("lists", "ls").stdout)["data"]["lists"]) == 1

    def test_duplicate(self, shop, list_id):
        """Duplicating copies items."""
        shop("add", list_id, "milk, eggs")
        result = shop("lists", "duplicate", list_id)

        data = json.loads(result.stdout)["data"]
        assert data["shopping_list"]["name"] == "Groceries (copy)"
        assert data["copied_items"] == 2

    def test_delete(self, shop, list_id):
        """Deleted lists are gone."""
        result = shop("lists", "delete", list_id)
        assert result.exit_code == 0
        assert json.loads(shop("lists", "ls").stdout)["data"]["lists"] == []

    def test_unknown_list(self, shop):
        """Unknown ids fail with an error code."""
        result = shop("lists", "delete", "nope")
        assert result.exit_code == 1

        data = json.loads(result.stdout)
        assert data["success"] is False
        assert data["error_code"] == "LIST_NOT_FOUND"

    def test_share_and_import(self, shop, list_id, tmp_path):
        """A shared JSON export imports as a new list."""
        shop("add", list_id, "milk and bread")
        export_path = tmp_path / "groceries.json"

        result = shop("share", list_id, "--export", "--output", str(export_path))
        assert result.exit_code == 0

        result = shop("lists", "import", str(export_path))
        assert result.exit_code == 0
        new_id = json.loads(result.stdout)["data"]["shopping_list"]["id"]
        assert [item["name"] for item in _items(shop, new_id)] == ["milk", "bread"]

    def test_import_bad_export(self, shop, tmp_path):
        """Invalid exports are rejected."""
        path = tmp_path / "bad.json"
        path.write_text('{"version": "1.0"}')

        result = shop("lists", "import", str(path))
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_LIST_EXPORT"

    def test_import_binary_file(self, shop, tmp_path):
        """Files that are not UTF-8 text are rejected cleanly."""
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        result = shop("lists", "import", str(path))
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_LIST_EXPORT"


class TestAddCommand:
    """Tests for the add command."""

    def test_add_free_text(self, shop, list_id):
        """Free text becomes several categorized items."""
        result = shop("add", list_id, "2 bottles of milk, a dozen eggs and bread")
        assert result.exit_code == 0

        items = json.loads(result.stdout)["data"]["items"]
        assert [(i["name"], i["category"]) for i in items] == [
            ("milk", "dairy"),
            ("eggs", "dairy"),
            ("bread", "bakery"),
        ]

    def test_add_single_with_options(self, shop, list_id):
        """Options add one item as typed."""
        result = shop(
            "add", list_id, "Flour, plain", "--quantity", "2", "--unit", "kg", "--notes", "00"
        )
        assert result.exit_code == 0

        item = json.loads(result.stdout)["data"]["item"]
        assert item["name"] == "Flour, plain"
        assert item["quantity"] == 2
        assert item["unit"] == "kg"
        assert item["category"] == "pantry"

    def test_add_to_unknown_list(self, shop):
        """Adding to a missing list fails."""
        result = shop("add", "missing", "milk")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "LIST_NOT_FOUND"


class TestItemsCommands:
    """Tests for the items command group."""

    def test_check_and_clear_completed(self, shop, list_id):
        """Checked items are removed by clear-completed."""
        shop("add", list_id, "milk, eggs")
        milk = _items(shop, list_id)[0]

        result = shop("items", "check", milk["id"])
        assert json.loads(result.stdout)["data"]["item"]["completed"] is True

        result = shop("items", "clear-completed", list_id)
        assert json.loads(result.stdout)["data"]["removed_count"] == 1
        assert [i["name"] for i in _items(shop, list_id)] == ["eggs"]

    def test_edit(self, shop, list_id):
        """Items can be edited."""
        shop("add", list_id, "milk")
        milk = _items(shop, list_id)[0]

        result = shop("items", "edit", milk["id"], "--quantity", "3", "--name", "Oat milk")
        item = json.loads(result.stdout)["data"]["item"]
        assert item["name"] == "Oat milk"
        assert item["quantity"] == 3

    def test_remove(self, shop, list_id):
        """Removed items are gone."""
        shop("add", list_id, "milk")
        milk = _items(shop, list_id)[0]

        assert shop("items", "remove", milk["id"]).exit_code == 0
        assert _items(shop, list_id) == []

    def test_set_category_learns(self, shop, list_id):
        """Changing a category updates same-named items and is remembered."""
        shop("add", list_id, "milk")
        other = json.loads(shop("lists", "new", "Party").stdout)["data"]["shopping_list"]["id"]
        shop("add", other, "Milk")
        milk = _items(shop, list_id)[0]

        result = shop("items", "set-category", milk["id"], "beverages")
        assert json.loads(result.stdout)["data"]["updated_count"] == 2

        prefs = json.loads(shop("prefs", "ls").stdout)["data"]["preferences"]
        assert prefs == {"milk": "beverages"}

        parsed = json.loads(shop("parse", "milk").stdout)["data"]["parsed"]
        assert parsed == [{"name": "milk", "category": "beverages"}]

    def test_set_unknown_category(self, shop, list_id):
        """Unknown categories are rejected."""
        shop("add", list_id, "milk")
        milk = _items(shop, list_id)[0]

        result = shop("items", "set-category", milk["id"], "ghost")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "CATEGORY_NOT_FOUND"

    def test_by_category(self, shop, list_id):
        """Items can be grouped by category."""
        shop("add", list_id, "milk, bread")
        result = shop("items", "ls", list_id, "--by-category")
        assert set(json.loads(result.stdout)["data"]["by_category"]) == {"dairy", "bakery"}

    def test_unknown_item(self, shop):
        """Unknown items fail with an error code."""
        result = shop("items", "check", "nope")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "ITEM_NOT_FOUND"


class TestScanCommand:
    """Tests for the scan command."""

    def test_unknown_barcode_needs_name(self, shop, list_id):
        """Unknown barcodes fail until a name is given."""
        result = shop("scan", list_id, "5000112548167")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "PRODUCT_NOT_FOUND"

    def test_manual_entry_then_scan(self, shop, list_id):
        """A named scan caches the product for next time."""
        result = shop("scan", list_id, "5000112548167", "--name", "Cola")
        assert json.loads(result.stdout)["data"]["item"]["category"] == "beverages"

        result = shop("scan", list_id, "5000112548167", "--format", "EAN_13")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["item"]["name"] == "Cola"

        products = json.loads(shop("products", "ls").stdout)["data"]["products"]
        assert [p["barcode"] for p in products] == ["5000112548167"]


class TestCategoriesCommands:
    """Tests for the categories command group."""

    def test_ls_default_order(self, shop):
        """Built-ins list in default order."""
        categories = json.loads(shop("categories", "ls").stdout)["data"]["categories"]
        assert categories[0]["id"] == "produce"
        assert categories[0]["builtin"] is True
        assert categories[-1]["id"] == "other"

    def test_create_and_delete(self, shop):
        """Custom categories can be created and deleted."""
        result = shop("categories", "create", "Pets", "--icon", "🐶")
        category = json.loads(result.stdout)["data"]["category"]
        assert category["id"].startswith("custom_pets_")
        assert category["builtin"] is False

        assert shop("categories", "delete", category["id"]).exit_code == 0
        ids = [c["id"] for c in json.loads(shop("categories", "ls").stdout)["data"]["categories"]]
        assert category["id"] not in ids

    def test_delete_builtin_fails(self, shop):
        """Built-ins cannot be deleted."""
        result = shop("categories", "delete", "dairy")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_CATEGORY"

    def test_order_preset_reset(self, shop):
        """Order, preset and reset change the listing order."""
        shop("categories", "order", "snacks", "dairy")
        ids = [c["id"] for c in json.loads(shop("categories", "ls").stdout)["data"]["categories"]]
        assert ids[:2] == ["snacks", "dairy"]

        shop("categories", "preset", "reverse")
        ids = [c["id"] for c in json.loads(shop("categories", "ls").stdout)["data"]["categories"]]
        assert ids[0] == "household"

        shop("categories", "reset")
        ids = [c["id"] for c in json.loads(shop("categories", "ls").stdout)["data"]["categories"]]
        assert ids[0] == "produce"

    def test_unknown_preset(self, shop):
        """Unknown presets fail."""
        result = shop("categories", "preset", "chaos")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "UNKNOWN_PRESET"


class TestProductsAndPrefs:
    """Tests for the products and prefs command groups."""

    def test_products_add_delete_clear(self, shop):
        """Products can be cached and removed."""
        result = shop("products", "add", "123", "Whole milk")
        assert json.loads(result.stdout)["data"]["product"]["category"] == "dairy"
        shop("products", "add", "456", "Bread")

        assert shop("products", "delete", "123").exit_code == 0
        assert shop("products", "delete", "123").exit_code == 1

        shop("products", "clear")
        assert json.loads(shop("products", "ls").stdout)["data"]["products"] == []

    def test_prefs_remove_and_clear(self, shop, list_id):
        """Preferences can be forgotten."""
        shop("add", list_id, "milk, eggs")
        for item in _items(shop, list_id):
            shop("items", "set-category", item["id"], "snacks")

        shop("prefs", "remove", "MILK")
        prefs = json.loads(shop("prefs", "ls").stdout)["data"]["preferences"]
        assert prefs == {"eggs": "snacks"}

        shop("prefs", "clear")
        assert json.loads(shop("prefs", "ls").stdout)["data"]["preferences"] == {}


class TestBackupCommands:
    """Tests for the backup command group."""

    def test_export_validate_import(self, shop, list_id, temp_data_dir):
        """A written backup validates and restores."""
        shop("add", list_id, "milk, bread")

        result = shop("backup", "export")
        assert result.exit_code == 0
        path = json.loads(result.stdout)["data"]["path"]
        assert path.startswith(str(temp_data_dir / "backups"))

        assert shop("backup", "validate", path).exit_code == 0

        shop("lists", "new", "Extra")
        result = shop("backup", "import", path)
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["restored"]["items"] == 2

        names = [entry["name"] for entry in json.loads(shop("lists", "ls").stdout)["data"]["lists"]]
        assert names == ["Groceries"]

    def test_import_merge(self, shop, list_id, tmp_path):
        """--merge keeps existing lists."""
        path = json.loads(shop("backup", "export", "--dir", str(tmp_path)).stdout)["data"]["path"]

        shop("backup", "import", path, "--merge")
        assert len(json.loads(shop("lists", "ls").stdout)["data"]["lists"]) == 2

    def test_validate_incompatible(self, shop, tmp_path):
        """Incompatible backups fail validation with reasons."""
        path = tmp_path / "old.json"
        path.write_text(json.dumps({"version": "2.0.0"}))

        result = shop("backup", "validate", str(path))
        assert result.exit_code == 1
        errors = json.loads(result.stdout)["data"]["validation"]["errors"]
        assert "Incompatible backup version: 2.0.0" in errors

    def test_import_invalid(self, shop, list_id, tmp_path):
        """Invalid backups are rejected without touching data."""
        path = tmp_path / "bad.json"
        path.write_text("{oops")

        result = shop("backup", "import", str(path))
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_BACKUP"
        assert len(json.loads(shop("lists", "ls").stdout)["data"]["lists"]) == 1

    @pytest.mark.parametrize("command", ["validate", "import"])
    def test_binary_backup_file(self, shop, list_id, tmp_path, command):
        """Backup files that are not UTF-8 text are reported as invalid."""
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        result = shop("backup", command, str(path))
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_BACKUP"
        assert len(json.loads(shop("lists", "ls").stdout)["data"]["lists"]) == 1


class TestConfigErrors:
    """Tests for bad configuration."""

    def test_unknown_backend(self, shop, tmp_path):
        """An unknown storage backend is reported instead of crashing."""
        (tmp_path / "config.toml").write_text('[data]\nbackend = "mongo"\n')

        result = shop("lists", "ls")
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["error_code"] == "INVALID_CONFIG"
        assert "mongo" in data["error"]


class TestShareCommand:
    """Tests for the share command."""

    def test_share_text(self, shop, list_id):
        """Text sharing returns the formatted list."""
        shop("add", list_id, "milk")
        result = shop("share", list_id)

        text = json.loads(result.stdout)["data"]["text"]
        assert text.startswith("Groceries\n=========\n")
        assert "☐ milk" in text

    def test_share_export_to_stdout(self, shop, list_id):
        """JSON export is printed as-is in JSON mode."""
        data = json.loads(shop("share", list_id, "--export").stdout)
        assert data["version"] == "1.0"
        assert data["list"]["id"] == list_id


class TestRichOutput:
    """Tests for the default Rich output."""

    def test_lists_ls_rich(self, temp_data_dir):
        """Rich mode prints a table."""
        runner.invoke(app, ["--data-dir", str(temp_data_dir), "lists", "new", "Weekly"])
        result = runner.invoke(app, ["--data-dir", str(temp_data_dir), "lists", "ls"])
        assert result.exit_code == 0
        assert "Weekly" in result.stdout
