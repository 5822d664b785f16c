from __future__ import annotations

import re
from typing import Any, Iterable

from catalog_roundtrip.parsing.primitives import (
    KEEP_CURRENT,
    FieldRejection,
    is_empty,
    normalize_cell,
    parse_choice,
    parse_int,
    parse_yes_no,
    sanitize_html,
    sanitize_slug,
    sanitize_text,
    slugify,
)
from catalog_roundtrip.parsing.render import render_yes_no
from catalog_roundtrip.parsing.schema import FieldSpec, RowContext, Validator, attr_field
from catalog_roundtrip.parsing.types import ErrorCode

VALID_STATUSES = ("publish", "draft", "pending", "private")
VALID_CATALOG_VISIBILITIES = ("visible", "catalog", "search", "hidden")
VALID_TAX_STATUSES = ("taxable", "shipping", "none")

_SKU_RE = re.compile(r"^[A-Za-z0-9_\-]+$")
_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


## -- reusable validator builders

def choice_validator(allowed: Iterable[str], code: ErrorCode) -> Validator:
    """Enumerated field: case-insensitive match, `""` leaves the field alone."""
    allowed = tuple(allowed)

    def _validate(raw: str, ctx: RowContext) -> Any:
        if is_empty(raw):
            return KEEP_CURRENT
        return parse_choice(raw, allowed=allowed, code=code)
    return _validate


def yes_no_validator(field: str) -> Validator:
    """Boolean-like field stored as `bool`, `""` leaves the field alone."""
    def _validate(raw: str, ctx: RowContext) -> Any:
        if is_empty(raw):
            return KEEP_CURRENT
        return parse_yes_no(raw, field=field)
    return _validate


## -- identity-ish text fields

def validate_sku(raw: str, ctx: RowContext) -> str:
    """Safe character set, and not already owned by another product. `""` clears the SKU."""
    sku = normalize_cell(raw)
    if sku == "":
        return ""
    if not _SKU_RE.match(sku):
        raise FieldRejection(ErrorCode.INVALID_SKU_FORMAT, sku)

    existing = ctx.store.find_id_by_sku(sku)
    if existing is not None and existing != ctx.product.id:
        raise FieldRejection(ErrorCode.DUPLICATE_SKU, sku, (sku, existing))
    return sku


def validate_slug(raw: str, ctx: RowContext) -> Any:
    """Lower-case dashed slug, unique across products. A product always keeps some slug."""
    slug = sanitize_slug(normalize_cell(raw))
    if slug == "":
        return KEEP_CURRENT
    if not _SLUG_RE.match(slug):
        raise FieldRejection(ErrorCode.INVALID_SLUG, slug)

    existing = ctx.store.find_id_by_slug(slug)
    if existing is not None and existing != ctx.product.id:
        raise FieldRejection(ErrorCode.DUPLICATE_SLUG, slug, (slug,))
    return slug


def validate_name(raw: str, ctx: RowContext) -> Any:
    name = sanitize_text(normalize_cell(raw))
    if name == "":
        return KEEP_CURRENT
    return name


def validate_rich_text(raw: str, ctx: RowContext) -> str:
    return sanitize_html(normalize_cell(raw))


def validate_menu_order(raw: str, ctx: RowContext) -> Any:
    if is_empty(raw):
        return KEEP_CURRENT
    return parse_int(raw, code=ErrorCode.INVALID_MENU_ORDER)


def validate_tax_class(raw: str, ctx: RowContext) -> str:
    """
    `""` is the standard class. Anything else must match one of the store's
    tax classes by slug, and is stored as that slug.
    """
    value = sanitize_text(normalize_cell(raw))
    if value == "":
        return ""
    wanted = slugify(value)
    for tax_class in ctx.store.list_tax_classes():
        if slugify(tax_class) == wanted:
            return wanted
    raise FieldRejection(ErrorCode.INVALID_TAX_CLASS, value, (value,))


CONTENT_FIELDS: tuple[FieldSpec, ...] = (
    attr_field("sku", validate_sku),
    attr_field("name", validate_name),
    attr_field("slug", validate_slug),
    attr_field("status", choice_validator(VALID_STATUSES, ErrorCode.INVALID_STATUS)),
    attr_field("description", validate_rich_text),
    attr_field("short_description", validate_rich_text),
    attr_field("tax_status", choice_validator(VALID_TAX_STATUSES, ErrorCode.INVALID_TAX_STATUS)),
    attr_field("tax_class", validate_tax_class),
    attr_field("menu_order", validate_menu_order),
    attr_field("virtual", yes_no_validator("virtual"), render=render_yes_no),
    attr_field("downloadable", yes_no_validator("downloadable"), render=render_yes_no),
    attr_field("purchase_note", validate_rich_text),
    attr_field(
        "catalog_visibility",
        choice_validator(VALID_CATALOG_VISIBILITIES, ErrorCode.INVALID_CATALOG_VISIBILITY),
    ),
    attr_field("featured", yes_no_validator("featured"), render=render_yes_no),
    attr_field("sold_individually", yes_no_validator("sold_individually"), render=render_yes_no),
)
