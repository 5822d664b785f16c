"""Exception hierarchy for catalog imports, syncs and exports."""

from __future__ import annotations


class CatalogError(Exception):
    """Base exception for all catalog round-trip errors."""


class ParseError(CatalogError):
    """The source file could not be opened or decoded. Aborts the whole run."""


class EmptySourceError(CatalogError):
    """The source file has no data rows (empty or header-only). Aborts the whole run."""


class StoreError(CatalogError):
    """The record store or taxonomy failed to read or persist. `product_id` is `None` when no product was involved."""

    def __init__(self, product_id: int | None, message: str) -> None:
        self.product_id = product_id
        self.message = message
        super().__init__(f"product {product_id}: {message}" if product_id is not None else message)


class NothingToExportError(CatalogError):
    """The catalog holds no exportable products."""
