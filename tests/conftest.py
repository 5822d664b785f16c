from __future__ import annotations

import csv
from datetime import date
from pathlib import Path
from typing import Callable, Sequence

import pytest

from catalog_roundtrip.catalog.memory import MemoryProductStore, MemoryTaxonomy
from catalog_roundtrip.catalog.models import CATEGORY_TAXONOMY, TAG_TAXONOMY, Product, ProductAttribute
from catalog_roundtrip.catalog.protocols import Catalog


def _find_repo_root(start: Path) -> Path:
    marker = "pyproject.toml"
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / marker).exists():
            return p
    raise RuntimeError(f"Could not find repo root from: {start}")


@pytest.fixture(scope="session")
def repo_root() -> Path:
    """The absolute path to the repo root (finds by walking up to `pyproject.toml`)."""
    return _find_repo_root(Path(__file__))


@pytest.fixture
def taxonomy() -> MemoryTaxonomy:
    """Categories Shoes/Clothing, tags new/sale, attribute Color {Red, Blue}."""
    tax = MemoryTaxonomy()
    tax.add_term(CATEGORY_TAXONOMY, "Shoes")
    tax.add_term(CATEGORY_TAXONOMY, "Clothing")
    tax.add_term(TAG_TAXONOMY, "new")
    tax.add_term(TAG_TAXONOMY, "sale")
    tax.add_attribute("Color", ["Red", "Blue"])
    return tax


def _products(taxonomy: MemoryTaxonomy) -> list[Product]:
    shoes = taxonomy.get_term_by_name(CATEGORY_TAXONOMY, "Shoes")
    assert shoes is not None
    return [
        Product(
            id=42,
            name="Trail Runner",
            sku="RUN-42",
            slug="trail-runner",
            regular_price="100",
            manage_stock=True,
            stock_quantity=3,
            category_ids=[shoes.term_id],
            image_id=501,
            gallery_image_ids=[502, 503],
        ),
        Product(id=7, name="Canvas Tote", sku="TOTE-7", slug="canvas-tote", regular_price="20"),
        Product(id=9, name="Leather Boot", sku="BOOT-9", slug="leather-boot", regular_price="150"),
        Product(
            id=10,
            type="variable",
            name="Tee",
            sku="TEE",
            slug="tee",
            attributes=[ProductAttribute(name="Color", options=("Red", "Blue"), taxonomy="pa_color", variation=True)],
        ),
        Product(
            id=11,
            type="variation",
            parent_id=10,
            name="Tee - Red",
            sku="TEE-RED",
            slug="tee-red",
            regular_price="25",
            sale_date_from=date(2026, 1, 1),
            sale_date_to=date(2026, 1, 31),
        ),
    ]


@pytest.fixture
def store(taxonomy: MemoryTaxonomy) -> MemoryProductStore:
    """Live products 42, 7, 9, 10 (variable), 11 (variation of 10); 99 is in the trash."""
    s = MemoryProductStore(_products(taxonomy), tax_classes=["Reduced rate", "Zero rate"])
    s.add(Product(id=99, name="Old Sandal", sku="OLD-99", slug="old-sandal"), trashed=True)
    return s


@pytest.fixture
def catalog(store: MemoryProductStore, taxonomy: MemoryTaxonomy) -> Catalog:
    return Catalog(store=store, taxonomy=taxonomy)


@pytest.fixture
def make_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write `header` + `rows` as a delimited file (quoted where needed) and return its path."""
    def _make(header: Sequence[str], rows: Sequence[Sequence[str]], *, delimiter: str = ",", name: str = "import.csv") -> Path:
        path = tmp_path / name
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, delimiter=delimiter, lineterminator="\n")
            writer.writerow(header)
            writer.writerows(rows)
        return path
    return _make
