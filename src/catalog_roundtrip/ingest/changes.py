from __future__ import annotations

from typing import Mapping

from catalog_roundtrip.catalog.models import Product
from catalog_roundtrip.catalog.protocols import TaxonomyRepository
from catalog_roundtrip.parsing.primitives import normalize_cell
from catalog_roundtrip.parsing.registry import iter_field_specs


def detect_changes(row: Mapping[str, str], product: Product, taxonomy: TaxonomyRepository) -> dict[str, str]:
    """
    Changed cells of `row`, keyed by field name, in registry order.

    Only registered fields that apply to the product's type are looked at, so
    read-only, blacklisted and unknown columns never show up. The incoming cell
    is compared to the current value rendered the way the export writes it.
    """
    changes: dict[str, str] = {}
    for spec in iter_field_specs(product.type):
        if spec.name not in row:
            continue
        incoming = normalize_cell(row[spec.name])
        current = normalize_cell(spec.read_current(product, taxonomy))
        if incoming != current:
            changes[spec.name] = incoming
    return changes
