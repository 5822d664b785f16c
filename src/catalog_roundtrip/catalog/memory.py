"""In-memory record store and taxonomy: dict-backed, used by tests and local runs."""

from __future__ import annotations

from copy import deepcopy
from typing import Iterator

from catalog_roundtrip.catalog.models import Product, Term
from catalog_roundtrip.core.errors import StoreError
from catalog_roundtrip.parsing.primitives import slugify


class MemoryProductStore:
    """
    Dict-backed `RecordStore`.

    Products are copied in and out, so callers never share state with the store.
    `locked` ids can't be edited, `failing_ids` make `save` raise `StoreError`,
    `failing_reads` make the per-id lookups raise it and `failing_skus` make
    `create` raise it.
    """

    def __init__(self, products: list[Product] | None = None, *, tax_classes: list[str] | None = None) -> None:
        self._products: dict[int, Product] = {}
        self._trashed: set[int] = set()
        self.locked: set[int] = set()
        self.failing_ids: set[int] = set()
        self.failing_reads: set[int] = set()
        self.failing_skus: set[str] = set()
        self.tax_classes: list[str] = list(tax_classes or [])
        self.saves: list[int] = []
        self.created: list[int] = []
        for p in products or []:
            self.add(p)

    def add(self, product: Product, *, trashed: bool = False) -> None:
        self._products[product.id] = deepcopy(product)
        if trashed:
            self._trashed.add(product.id)
        else:
            self._trashed.discard(product.id)

    def _check_read(self, product_id: int) -> None:
        if product_id in self.failing_reads:
            raise StoreError(product_id, "simulated read failure")

    def get_product(self, product_id: int) -> Product | None:
        self._check_read(product_id)
        if product_id in self._trashed:
            return None
        p = self._products.get(product_id)
        return deepcopy(p) if p is not None else None

    def is_trashed(self, product_id: int) -> bool:
        self._check_read(product_id)
        return product_id in self._trashed

    def find_id_by_sku(self, sku: str) -> int | None:
        for p in self._products.values():
            if sku and p.sku == sku:
                return p.id
        return None

    def find_id_by_slug(self, slug: str) -> int | None:
        for p in self._products.values():
            if slug and p.slug == slug:
                return p.id
        return None

    def can_edit(self, product_id: int) -> bool:
        self._check_read(product_id)
        return product_id not in self.locked

    def list_tax_classes(self) -> list[str]:
        return list(self.tax_classes)

    def iter_products(self) -> Iterator[Product]:
        for product_id in sorted(self._products):
            if product_id not in self._trashed:
                yield deepcopy(self._products[product_id])

    def save(self, product: Product) -> None:
        if product.id in self.failing_ids:
            raise StoreError(product.id, "simulated write failure")
        if product.id not in self._products or product.id in self._trashed:
            raise StoreError(product.id, "no such product")
        self._products[product.id] = deepcopy(product)
        self.saves.append(product.id)

    def create(self, product: Product) -> int:
        if product.sku in self.failing_skus:
            raise StoreError(None, "simulated insert failure")
        new_id = max(self._products, default=0) + 1
        stored = deepcopy(product)
        stored.id = new_id
        self._products[new_id] = stored
        self.created.append(new_id)
        return new_id


class MemoryTaxonomy:
    """Dict-backed `TaxonomyRepository`."""

    def __init__(self) -> None:
        self._terms: dict[str, dict[int, Term]] = {}
        self._attributes: dict[str, str] = {}     # label -> taxonomy name
        self._next_id = 1

    def add_term(self, taxonomy: str, name: str, slug: str | None = None) -> Term:
        term = Term(term_id=self._next_id, name=name, slug=slug or slugify(name))
        self._next_id += 1
        self._terms.setdefault(taxonomy, {})[term.term_id] = term
        return term

    def add_attribute(self, label: str, terms: list[str] | None = None) -> str:
        """Define an attribute vocabulary, returns its taxonomy name (`pa_<slug>`)."""
        taxonomy = f"pa_{slugify(label)}"
        self._attributes[label] = taxonomy
        for name in terms or []:
            self.add_term(taxonomy, name)
        return taxonomy

    def get_term_by_name(self, taxonomy: str, name: str) -> Term | None:
        for term in self._terms.get(taxonomy, {}).values():
            if term.name == name:
                return term
        return None

    def get_term_by_slug(self, taxonomy: str, slug: str) -> Term | None:
        for term in self._terms.get(taxonomy, {}).values():
            if term.slug == slug:
                return term
        return None

    def get_term(self, taxonomy: str, term_id: int) -> Term | None:
        return self._terms.get(taxonomy, {}).get(term_id)

    def ensure_term(self, taxonomy: str, name: str, slug: str) -> Term:
        return self.get_term_by_slug(taxonomy, slug) or self.add_term(taxonomy, name, slug)

    def get_attribute_taxonomy(self, name: str) -> str | None:
        wanted = slugify(name)
        for label, taxonomy in self._attributes.items():
            if label.lower() == name.strip().lower() or slugify(label) == wanted:
                return taxonomy
        return None

    def list_attribute_taxonomies(self) -> dict[str, str]:
        return dict(self._attributes)
