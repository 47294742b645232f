"""Core data models for Smart Shopping."""

import time
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump as JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CategoryOrigin(str, Enum):
    """Where a category comes from."""

    BUILTIN = "builtin"
    CUSTOM = "custom"


class ShoppingList(CamelModel):
    """A named shopping list."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    archived: bool = False
    color: str | None = None


class ShoppingItem(CamelModel):
    """An item on a shopping list."""

    id: UUID = Field(default_factory=uuid4)
    list_id: UUID
    name: str
    quantity: int | float = 1
    unit: str | None = None
    category: str = "other"
    completed: bool = False
    added_at: int = Field(default_factory=now_ms)
    completed_at: int | None = None
    barcode: str | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _sync_completed_at(self) -> "ShoppingItem":
        # completed_at is present exactly when the item is completed
        if self.completed and self.completed_at is None:
            self.completed_at = now_ms()
        elif not self.completed:
            self.completed_at = None
        return self

    def set_completed(self, completed: bool) -> None:
        """Set completion state, keeping completed_at in step."""
        self.completed = completed
        self.completed_at = now_ms() if completed else None


class Category(CamelModel):
    """A shopping category, built-in or user-created."""

    id: str
    name: str
    icon: str | None = None
    sort_order: int = 0
    origin: CategoryOrigin = Field(default=CategoryOrigin.CUSTOM, exclude=True)

    @property
    def display(self) -> str:
        """Icon and name, as shown in list headers."""
        return f"{self.icon or '📦'} {self.name}"


class Product(CamelModel):
    """A cached product, keyed by barcode."""

    barcode: str
    name: str
    category: str
    last_used: int = Field(default_factory=now_ms)


class CategoryPreference(CamelModel):
    """A learned category override for a normalized item name."""

    item_name: str
    category: str
    learned_at: int = Field(default_factory=now_ms)


class BackupSnapshot(CamelModel):
    """Versioned export of every persisted entity."""

    version: str
    timestamp: int
    lists: list[ShoppingList] = Field(default_factory=list)
    items: list[ShoppingItem] = Field(default_factory=list)
    custom_categories: list[Category] = Field(default_factory=list)
    products: list[Product] = Field(default_factory=list)
    category_preferences: dict[str, str] = Field(default_factory=dict)
    category_order: list[str] = Field(default_factory=list)


class BackupValidationResult(BaseModel):
    """Outcome of validating a candidate backup."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class ListExport(CamelModel):
    """Single-list export, lighter than a full backup."""

    version: str
    exported_at: str
    list_: ShoppingList = Field(alias="list")
    items: list[ShoppingItem] = Field(default_factory=list)
