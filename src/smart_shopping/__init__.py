"""Smart Shopping - Local-first shopping lists with learned categorization."""

from .backup import BackupManager, BackupValidationError, RestoreError, validate_backup
from .categories import BUILTIN_CATEGORIES, CATEGORY_KEYWORDS, STORE_LAYOUT_PRESETS, categorize
from .category_manager import CategoryError, CategoryManager
from .config import ConfigManager
from .data_store import BackendType, create_data_store, DataStore
from .sqlite_store import SQLiteStore
from .list_manager import ItemNotFoundError, ListManager, ListNotFoundError, ProductNotFoundError
from .models import (
    BackupSnapshot,
    BackupValidationResult,
    Category,
    CategoryOrigin,
    CategoryPreference,
    ListExport,
    Product,
    ShoppingItem,
    ShoppingList,
)
from .output_formatter import OutputFormatter
from .preferences import PreferenceStore
from .product_cache import ProductCache
from .share import ListImportError, export_list_as_json, format_list_as_text, import_list_from_json
from .text_parser import normalize_item_name, parse_items, sanitize_item_name

__version__ = "0.1.0"

__all__ = [
    "BackendType",
    "BackupManager",
    "BackupSnapshot",
    "BackupValidationError",
    "BackupValidationResult",
    "BUILTIN_CATEGORIES",
    "categorize",
    "Category",
    "CategoryError",
    "CategoryManager",
    "CategoryOrigin",
    "CategoryPreference",
    "CATEGORY_KEYWORDS",
    "ConfigManager",
    "create_data_store",
    "DataStore",
    "export_list_as_json",
    "format_list_as_text",
    "import_list_from_json",
    "ItemNotFoundError",
    "ListExport",
    "ListImportError",
    "ListManager",
    "ListNotFoundError",
    "normalize_item_name",
    "OutputFormatter",
    "parse_items",
    "PreferenceStore",
    "Product",
    "ProductCache",
    "ProductNotFoundError",
    "RestoreError",
    "sanitize_item_name",
    "ShoppingItem",
    "ShoppingList",
    "SQLiteStore",
    "STORE_LAYOUT_PRESETS",
    "validate_backup",
]
