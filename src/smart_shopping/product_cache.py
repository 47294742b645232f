"""Barcode product cache.

Scanning a known barcode adds the product instantly; an unknown barcode falls
back to manual entry, after which the product is cached for next time.
"""

import logging

from .data_store import DataStoreProtocol
from .models import Product, now_ms
from .preferences import PreferenceStore

logger = logging.getLogger(__name__)


class ProductCache:
    """Local product database keyed by barcode."""

    def __init__(self, data_store: DataStoreProtocol, preferences: PreferenceStore):
        """Initialize product cache.

        Args:
            data_store: Backend holding the products
            preferences: Preference store consulted when resolving scans
        """
        self.data_store = data_store
        self.preferences = preferences

    def get_by_barcode(self, barcode: str) -> Product | None:
        """Look up a product; None when the barcode is unknown."""
        return self.data_store.get_product(barcode)

    def list_products(self) -> list[Product]:
        """All cached products, most recently used first."""
        return sorted(self.data_store.load_products(), key=lambda p: p.last_used, reverse=True)

    def save_product(self, barcode: str, name: str, category: str) -> Product:
        """Save a product, overwriting any product with the same barcode.

        Returns:
            The stored product with a fresh last_used timestamp
        """
        product = Product(barcode=barcode, name=name, category=category)
        self.data_store.save_product(product)
        logger.debug("Cached product %s (%s)", barcode, name)
        return product

    def update_last_used(self, barcode: str) -> None:
        """Refresh last_used for a cached product; unknown barcodes are ignored."""
        product = self.data_store.get_product(barcode)
        if product is None:
            return

        self.data_store.save_product(product.model_copy(update={"last_used": now_ms()}))

    def delete(self, barcode: str) -> None:
        """Remove a product from the cache."""
        self.data_store.delete_product(barcode)

    def clear(self) -> None:
        """Remove every product from the cache."""
        self.data_store.clear_products()

    def resolve_scan(self, barcode: str) -> Product | None:
        """Resolve a scanned barcode to the product to add.

        A learned preference for the product's name overrides its cached
        category, and the cache is updated to match so later scans agree.

        Args:
            barcode: Decoded barcode value

        Returns:
            The resolved product, or None when the caller must fall back to
            manual entry
        """
        product = self.data_store.get_product(barcode)
        if product is None:
            logger.info("Unknown barcode %s", barcode)
            return None

        updates: dict = {"last_used": now_ms()}
        preferred = self.preferences.get_preferred_category(product.name)
        if preferred and preferred != product.category:
            logger.info(
                "Preference for %r overrides cached category %s -> %s",
                product.name,
                product.category,
                preferred,
            )
            updates["category"] = preferred

        resolved = product.model_copy(update=updates)
        self.data_store.save_product(resolved)
        return resolved
