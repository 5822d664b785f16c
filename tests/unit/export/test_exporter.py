from __future__ import annotations

import csv
import io
import json
from pathlib import Path

import pytest

from catalog_roundtrip.catalog.memory import MemoryProductStore, MemoryTaxonomy
from catalog_roundtrip.catalog.models import Product
from catalog_roundtrip.catalog.protocols import Catalog
from catalog_roundtrip.core.errors import NothingToExportError
from catalog_roundtrip.export.exporter import (
    EXPORT_COLUMNS,
    export_row,
    export_statistics,
    order_for_export,
    render_export,
    write_export,
)


def _read(content: bytes) -> list[dict[str, str]]:
    return list(csv.DictReader(io.StringIO(content.decode("utf-8-sig"))))


def test_variations_follow_their_parent_and_trash_is_excluded(catalog: Catalog) -> None:
    rows = _read(render_export(catalog))
    assert [r["id"] for r in rows] == ["7", "9", "10", "11", "42"]
    assert list(rows[0]) == list(EXPORT_COLUMNS)


def test_orphan_variations_go_last() -> None:
    products = [
        Product(id=5, type="variation", parent_id=3),
        Product(id=1),
        Product(id=2, type="variable"),
        Product(id=4, type="variation", parent_id=2),
    ]
    assert [p.id for p in order_for_export(products)] == [1, 2, 4, 5]


def test_row_rendering(catalog: Catalog) -> None:
    product = catalog.store.get_product(42)
    row = export_row(product, catalog.taxonomy)

    assert row["id"] == "42"
    assert row["type"] == "simple"
    assert row["parent_id"] == ""
    assert row["manage_stock"] == "yes"
    assert row["featured"] == "no"
    assert row["stock_quantity"] == "3"
    assert row["low_stock_amount"] == ""
    assert row["categories"] == "Shoes"
    assert "image_id" not in row

    variation = export_row(catalog.store.get_product(11), catalog.taxonomy)
    assert variation["parent_id"] == "10"
    assert variation["sale_date_from"] == "2026-01-01"

    variable = export_row(catalog.store.get_product(10), catalog.taxonomy)
    assert json.loads(variable["attributes"]) == {"Color": "Red|Blue"}


def test_statistics(catalog: Catalog) -> None:
    assert export_statistics(catalog) == {"total": 5, "simple": 3, "variable": 1, "variation": 1}


def test_write_export_has_bom(catalog: Catalog, tmp_path: Path) -> None:
    path = write_export(catalog, tmp_path / "out" / "catalog.csv")
    assert path.read_bytes().startswith(b"\xef\xbb\xbf")


def test_empty_catalog_has_nothing_to_export() -> None:
    empty = Catalog(store=MemoryProductStore(), taxonomy=MemoryTaxonomy())
    with pytest.raises(NothingToExportError):
        render_export(empty)
