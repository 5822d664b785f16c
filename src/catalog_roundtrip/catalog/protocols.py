"""Collaborator contracts the import engine talks to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Protocol

from catalog_roundtrip.catalog.models import Product, Term


class RecordStore(Protocol):
    """
    Product persistence.

    `get_product` only returns live records; trashed ones are reported through
    `is_trashed`. `save` commits one product at a time and raises `StoreError`
    on failure, leaving the stored record unchanged. `create` inserts a new
    product and returns its id. Any method may raise `StoreError` when the
    backing store is unavailable.
    """

    def get_product(self, product_id: int) -> Product | None: ...

    def is_trashed(self, product_id: int) -> bool: ...

    def find_id_by_sku(self, sku: str) -> int | None: ...

    def find_id_by_slug(self, slug: str) -> int | None: ...

    def can_edit(self, product_id: int) -> bool: ...

    def list_tax_classes(self) -> list[str]: ...

    def iter_products(self) -> Iterator[Product]: ...

    def save(self, product: Product) -> None: ...

    def create(self, product: Product) -> int: ...


class TaxonomyRepository(Protocol):
    """Term lookups for categories, tags and attribute vocabularies."""

    def get_term_by_name(self, taxonomy: str, name: str) -> Term | None: ...

    def get_term_by_slug(self, taxonomy: str, slug: str) -> Term | None: ...

    def get_term(self, taxonomy: str, term_id: int) -> Term | None: ...

    def ensure_term(self, taxonomy: str, name: str, slug: str) -> Term: ...

    def get_attribute_taxonomy(self, name: str) -> str | None: ...

    def list_attribute_taxonomies(self) -> dict[str, str]: ...


@dataclass(frozen=True)
class Catalog:
    """The pair of collaborators an import or export run works against."""
    store: RecordStore
    taxonomy: TaxonomyRepository
