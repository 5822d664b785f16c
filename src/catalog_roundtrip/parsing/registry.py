from __future__ import annotations

from typing import Iterator

from .profiles.content import CONTENT_FIELDS
from .profiles.inventory import INVENTORY_FIELDS
from .profiles.pricing import PRICING_FIELDS
from .profiles.relations import RELATION_FIELDS
from .schema import FieldSpec

# never read, diffed, validated or applied by an import.
BLACKLISTED_FIELDS: frozenset[str] = frozenset({
    "image",
    "image_id",
    "images",
    "gallery_image_ids",
    "gallery_images",
    "featured_image",
    "product_image",
    "thumbnail",
    "thumbnail_id",
})

# identify the record, never updated.
READONLY_FIELDS: frozenset[str] = frozenset({"id", "type", "parent_id"})

# Validation order. A field listed in `depends_on` always comes before its dependent.
FIELD_ORDER: tuple[str, ...] = (
    "sku",
    "name",
    "slug",
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
    "manage_stock",
    "stock_quantity",
    "backorders",
    "low_stock_amount",
    "weight",
    "length",
    "width",
    "height",
    "categories",
    "tags",
    "attributes",
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


def _build_registry() -> dict[str, FieldSpec]:
    specs = {s.name: s for s in (*CONTENT_FIELDS, *PRICING_FIELDS, *INVENTORY_FIELDS, *RELATION_FIELDS)}
    if set(specs) != set(FIELD_ORDER):
        raise RuntimeError(f"field registry mismatch: {sorted(set(specs) ^ set(FIELD_ORDER))}")

    registry = {name: specs[name] for name in FIELD_ORDER}
    for spec in registry.values():
        if spec.name in BLACKLISTED_FIELDS or spec.name in READONLY_FIELDS:
            raise RuntimeError(f"field {spec.name!r} must not be registered")
        if spec.depends_on is not None and FIELD_ORDER.index(spec.depends_on) > FIELD_ORDER.index(spec.name):
            raise RuntimeError(f"field {spec.name!r} is ordered before its dependency {spec.depends_on!r}")
    return registry


FIELD_REGISTRY: dict[str, FieldSpec] = _build_registry()

# every column an import understands (anything else is ignored with a warning).
KNOWN_COLUMNS: frozenset[str] = frozenset(FIELD_REGISTRY) | READONLY_FIELDS | BLACKLISTED_FIELDS


def get_field_spec(name: str) -> FieldSpec | None:
    """Registered spec for column `name`, `None` for read-only, blacklisted and unknown columns."""
    return FIELD_REGISTRY.get(name)


def iter_field_specs(product_type: str | None = None) -> Iterator[FieldSpec]:
    """Registered specs in validation order, optionally only those applying to `product_type`."""
    for spec in FIELD_REGISTRY.values():
        if product_type is None or spec.applies(product_type):
            yield spec
