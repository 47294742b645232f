"""Learned category preferences."""

import logging

from .data_store import DataStoreProtocol
from .models import CategoryPreference
from .text_parser import normalize_item_name

logger = logging.getLogger(__name__)


class PreferenceStore:
    """Remembers which category the user picked for an item name.

    Keys are normalized names, so "Milk", " milk " and "MILK" share one
    preference. A preference overrides keyword categorization everywhere.
    """

    def __init__(self, data_store: DataStoreProtocol):
        self.data_store = data_store

    def get_preferred_category(self, item_name: str) -> str | None:
        """Get the learned category for an item name, or None."""
        preference = self.data_store.get_preference(normalize_item_name(item_name))
        return preference.category if preference else None

    def save_preference(self, item_name: str, category: str) -> CategoryPreference:
        """Remember a category for an item name, replacing any earlier choice."""
        preference = CategoryPreference(item_name=normalize_item_name(item_name), category=category)
        self.data_store.save_preference(preference)
        logger.info("Learned preference %r -> %s", preference.item_name, category)
        return preference

    def remove_preference(self, item_name: str) -> None:
        """Forget the preference for an item name."""
        self.data_store.delete_preference(normalize_item_name(item_name))

    def clear_all(self) -> None:
        """Forget every preference."""
        self.data_store.clear_preferences()

    def as_dict(self) -> dict[str, str]:
        """All preferences as a normalized name -> category mapping."""
        return {
            name: preference.category
            for name, preference in self.data_store.load_preferences().items()
        }
