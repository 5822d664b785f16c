from __future__ import annotations

import csv
import io
from collections import Counter
from pathlib import Path
from typing import Iterable

from loguru import logger

from catalog_roundtrip.catalog.models import Product
from catalog_roundtrip.catalog.protocols import Catalog, TaxonomyRepository
from catalog_roundtrip.core.errors import NothingToExportError
from catalog_roundtrip.parsing.registry import get_field_spec

EXPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "sku",
    "name",
    "slug",
    "type",
    "status",
    "description",
    "short_description",
    "regular_price",
    "sale_price",
    "sale_date_from",
    "sale_date_to",
    "tax_status",
    "tax_class",
    "stock_status",
    "stock_quantity",
    "manage_stock",
    "backorders",
    "low_stock_amount",
    "weight",
    "length",
    "width",
    "height",
    "categories",
    "tags",
    "attributes",
    "parent_id",
    "menu_order",
    "virtual",
    "downloadable",
    "purchase_note",
    "catalog_visibility",
    "featured",
    "sold_individually",
    "upsell_ids",
    "cross_sell_ids",
)


def order_for_export(products: Iterable[Product]) -> list[Product]:
    """By id, each variable product directly followed by its variations."""
    ordered = sorted(products, key=lambda p: p.id)
    variations: dict[int, list[Product]] = {}
    for p in ordered:
        if p.is_type("variation"):
            variations.setdefault(p.parent_id, []).append(p)

    out: list[Product] = []
    for p in ordered:
        if p.is_type("variation"):
            continue
        out.append(p)
        out.extend(variations.pop(p.id, []))
    # variations whose parent isn't in the catalog go last, still by id.
    for orphans in variations.values():
        out.extend(orphans)
    return out


def export_row(product: Product, taxonomy: TaxonomyRepository) -> dict[str, str]:
    """
    One export line. Updatable columns go through the same renderer the
    change detector compares against.
    """
    row: dict[str, str] = {}
    for column in EXPORT_COLUMNS:
        if column == "id":
            row[column] = str(product.id)
        elif column == "type":
            row[column] = product.type
        elif column == "parent_id":
            row[column] = str(product.parent_id) if product.parent_id else ""
        else:
            spec = get_field_spec(column)
            row[column] = spec.read_current(product, taxonomy) if spec is not None else ""
    return row


def export_statistics(catalog: Catalog) -> dict[str, int]:
    """`{"total": n, "simple": n, ...}` over every exportable product."""
    counts = Counter(p.type for p in catalog.store.iter_products())
    return {"total": sum(counts.values()), **dict(sorted(counts.items()))}


def render_products(products: Iterable[Product], taxonomy: TaxonomyRepository) -> bytes:
    """`products` in the given order, as comma-delimited UTF-8 with a BOM under the export header."""
    buf = io.StringIO(newline="")
    writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for product in products:
        writer.writerow(export_row(product, taxonomy))
    return buf.getvalue().encode("utf-8-sig")


def render_export(catalog: Catalog) -> bytes:
    """
    The whole catalog in export order.

    Raises `NothingToExportError` on an empty catalog.
    """
    products = order_for_export(catalog.store.iter_products())
    if not products:
        raise NothingToExportError("no products to export")

    logger.info(f"exported {len(products)} products")
    return render_products(products, catalog.taxonomy)


def write_export(catalog: Catalog, path: Path) -> Path:
    content = render_export(catalog)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path
