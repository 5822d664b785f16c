"""
Fields that point at other things: taxonomy terms, attribute vocabularies,
other products.

These validators resolve element by element. An element that doesn't resolve
is reported on the row context and dropped; the rest still applies.
"""

from __future__ import annotations

import json
from typing import Any

from catalog_roundtrip.catalog.models import (
    CATEGORY_TAXONOMY,
    PRODUCT_TYPES,
    TAG_TAXONOMY,
    ProductAttribute,
    Term,
)
from catalog_roundtrip.catalog.protocols import TaxonomyRepository
from catalog_roundtrip.parsing.primitives import (
    KEEP_CURRENT,
    FieldRejection,
    dedupe,
    normalize_cell,
    parse_positive_id,
    slugify,
    split_pipe,
)
from catalog_roundtrip.parsing.render import render_attributes, render_ids, term_names_renderer
from catalog_roundtrip.parsing.schema import FieldSpec, RowContext, Validator, attr_field
from catalog_roundtrip.parsing.types import ErrorCode

# variations inherit categories and tags from their parent.
NOT_VARIATION = frozenset(t for t in PRODUCT_TYPES if t != "variation")


def lookup_term(taxonomy: TaxonomyRepository, taxonomy_name: str, name: str) -> Term | None:
    """Exact name first, then slug."""
    term = taxonomy.get_term_by_name(taxonomy_name, name)
    if term is None:
        term = taxonomy.get_term_by_slug(taxonomy_name, slugify(name))
    return term


## -- categories / tags

def _terms_validator(
    field: str,
    taxonomy_name: str,
    *,
    format_code: ErrorCode,
    not_found_code: ErrorCode,
) -> Validator:
    def _validate(raw: str, ctx: RowContext) -> Any:
        s = normalize_cell(raw)
        if s == "":
            return []
        names = split_pipe(s)
        if not names:
            raise FieldRejection(format_code, s)

        ids: list[int] = []
        for name in names:
            term = lookup_term(ctx.taxonomy, taxonomy_name, name)
            if term is None:
                ctx.report(field, not_found_code, name, name)
                continue
            ids.append(term.term_id)

        if not ids:
            return KEEP_CURRENT
        return dedupe(ids)
    return _validate


validate_categories = _terms_validator(
    "categories",
    CATEGORY_TAXONOMY,
    format_code=ErrorCode.INVALID_CATEGORY_FORMAT,
    not_found_code=ErrorCode.CATEGORY_NOT_FOUND,
)
validate_tags = _terms_validator(
    "tags",
    TAG_TAXONOMY,
    format_code=ErrorCode.INVALID_TAG_FORMAT,
    not_found_code=ErrorCode.TAG_NOT_FOUND,
)


## -- attributes

def _attribute_values(v: Any) -> list[str]:
    """A JSON attribute value: list of scalars, or a pipe-delimited string."""
    if v is None:
        return []
    if isinstance(v, list):
        return [normalize_cell(x) for x in v if normalize_cell(x) != ""]
    if isinstance(v, bool):
        return ["yes" if v else "no"]
    return split_pipe(normalize_cell(v))


def validate_attributes(raw: str, ctx: RowContext) -> Any:
    """
    `{"Color": "Red|Blue", "Material": ["Cotton"]}`.

    Keys naming a defined attribute taxonomy must use its terms; other keys
    become custom attributes kept verbatim. The result replaces the whole set,
    positions follow the JSON key order.
    """
    s = normalize_cell(raw)
    if s == "":
        return KEEP_CURRENT
    try:
        decoded = json.loads(s)
    except ValueError:
        raise FieldRejection(ErrorCode.INVALID_ATTRIBUTE_JSON, s)
    if not isinstance(decoded, dict):
        raise FieldRejection(ErrorCode.INVALID_ATTRIBUTE_FORMAT, s)

    is_variable = ctx.product_type == "variable"
    out: list[ProductAttribute] = []
    for key, value in decoded.items():
        name = normalize_cell(key)
        values = _attribute_values(value)
        if name == "" or not values:
            continue

        taxonomy_name = ctx.taxonomy.get_attribute_taxonomy(name)
        if taxonomy_name is None:
            out.append(ProductAttribute(name=name, options=tuple(values), position=len(out)))
            continue

        options: list[str] = []
        for v in values:
            term = lookup_term(ctx.taxonomy, taxonomy_name, v)
            if term is None:
                ctx.report("attributes", ErrorCode.INVALID_ATTRIBUTE_TERM, v, v, name)
                continue
            options.append(term.name)
        if options:
            out.append(ProductAttribute(
                name=name,
                options=tuple(dedupe(options)),
                taxonomy=taxonomy_name,
                position=len(out),
                variation=is_variable,
            ))

    if not out:
        return KEEP_CURRENT
    return out


## -- linked products

def _linked_ids_validator(field: str, *, invalid_code: ErrorCode, not_found_code: ErrorCode) -> Validator:
    def _validate(raw: str, ctx: RowContext) -> Any:
        tokens = split_pipe(normalize_cell(raw))
        if not tokens:
            return []

        ids: list[int] = []
        for token in tokens:
            product_id = parse_positive_id(token)
            if product_id is None:
                ctx.report(field, invalid_code, token)
                continue
            if ctx.store.get_product(product_id) is None:
                ctx.report(field, not_found_code, token, product_id)
                continue
            ids.append(product_id)

        if not ids:
            return KEEP_CURRENT
        return dedupe(ids)
    return _validate


validate_upsell_ids = _linked_ids_validator(
    "upsell_ids",
    invalid_code=ErrorCode.INVALID_UPSELL_IDS,
    not_found_code=ErrorCode.UPSELL_PRODUCT_NOT_FOUND,
)
validate_cross_sell_ids = _linked_ids_validator(
    "cross_sell_ids",
    invalid_code=ErrorCode.INVALID_CROSS_SELL_IDS,
    not_found_code=ErrorCode.CROSS_SELL_PRODUCT_NOT_FOUND,
)


RELATION_FIELDS: tuple[FieldSpec, ...] = (
    attr_field(
        "categories",
        validate_categories,
        attr="category_ids",
        render=term_names_renderer(CATEGORY_TAXONOMY),
        applies_to=NOT_VARIATION,
    ),
    attr_field(
        "tags",
        validate_tags,
        attr="tag_ids",
        render=term_names_renderer(TAG_TAXONOMY),
        applies_to=NOT_VARIATION,
    ),
    attr_field("attributes", validate_attributes, render=render_attributes),
    attr_field("upsell_ids", validate_upsell_ids, render=render_ids),
    attr_field("cross_sell_ids", validate_cross_sell_ids, render=render_ids),
)
