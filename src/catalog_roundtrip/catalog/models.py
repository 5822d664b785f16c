from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

ProductType = Literal["simple", "variable", "variation", "grouped", "external"]

PRODUCT_TYPES: tuple[str, ...] = ("simple", "variable", "variation", "grouped", "external")

# taxonomy names used for category/tag lookups
CATEGORY_TAXONOMY = "product_cat"
TAG_TAXONOMY = "product_tag"


@dataclass(frozen=True, slots=True)
class Term:
    """A taxonomy term (category, tag, or attribute value)."""
    term_id: int
    name: str
    slug: str


@dataclass(frozen=True, slots=True)
class ProductAttribute:
    """
    One attribute on a product.

    `taxonomy` is set (e.g. `pa_color`) for attributes backed by a shared vocabulary,
    and `None` for free-form custom attributes.
    """
    name: str                       # display name, the key used in the attributes JSON cell.
    options: tuple[str, ...]        # term names (taxonomy) or raw values (custom).
    taxonomy: str | None = None
    position: int = 0
    visible: bool = True
    variation: bool = False


@dataclass(slots=True)
class Product:
    """
    A catalog record as owned by the record store.

    `id`, `type` and `parent_id` are never changed by an import.
    Prices and dimensions are decimal strings, `""` meaning unset.
    """
    id: int
    type: ProductType = "simple"
    parent_id: int = 0
    name: str = ""
    sku: str = ""
    slug: str = ""
    status: str = "publish"
    description: str = ""
    short_description: str = ""
    regular_price: str = ""
    sale_price: str = ""
    sale_date_from: date | None = None
    sale_date_to: date | None = None
    tax_status: str = "taxable"
    tax_class: str = ""
    stock_status: str = "instock"
    stock_quantity: int | None = None
    manage_stock: bool = False
    backorders: str = "no"
    low_stock_amount: int | None = None
    weight: str = ""
    length: str = ""
    width: str = ""
    height: str = ""
    category_ids: list[int] = field(default_factory=list)
    tag_ids: list[int] = field(default_factory=list)
    attributes: list[ProductAttribute] = field(default_factory=list)
    menu_order: int = 0
    virtual: bool = False
    downloadable: bool = False
    purchase_note: str = ""
    catalog_visibility: str = "visible"
    featured: bool = False
    sold_individually: bool = False
    upsell_ids: list[int] = field(default_factory=list)
    cross_sell_ids: list[int] = field(default_factory=list)
    # images are never touched by imports.
    image_id: int | None = None
    gallery_image_ids: list[int] = field(default_factory=list)

    def is_type(self, product_type: str) -> bool:
        return self.type == product_type
