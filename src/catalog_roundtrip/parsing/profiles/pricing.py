from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from catalog_roundtrip.parsing.primitives import (
    FieldRejection,
    is_empty,
    normalize_cell,
    parse_amount,
    parse_date_yyyy_mm_dd,
)
from catalog_roundtrip.parsing.render import render_date
from catalog_roundtrip.parsing.schema import FieldSpec, RowContext, Validator, attr_field
from catalog_roundtrip.parsing.types import ErrorCode


def _to_decimal(v: Any) -> Decimal | None:
    s = normalize_cell(v)
    if s == "":
        return None
    try:
        return Decimal(s)
    except (InvalidOperation, ValueError):
        return None


def _price_validator(code: ErrorCode) -> Validator:
    """Variable products carry no direct price: only `""` is accepted for them."""
    def _validate(raw: str, ctx: RowContext) -> str:
        if ctx.product_type == "variable" and not is_empty(raw):
            raise FieldRejection(ErrorCode.VARIABLE_PRODUCT_NO_PRICE, normalize_cell(raw))
        return parse_amount(raw, code=code)
    return _validate


validate_regular_price = _price_validator(ErrorCode.INVALID_REGULAR_PRICE)
_validate_sale_amount = _price_validator(ErrorCode.INVALID_SALE_PRICE)


def validate_sale_price(raw: str, ctx: RowContext) -> str:
    """Sale price may not exceed the row's regular price (new if accepted this row, else current)."""
    price = _validate_sale_amount(raw, ctx)
    if price == "":
        return price

    regular = _to_decimal(ctx.resolved("regular_price"))
    if regular is not None and Decimal(price) > regular:
        raise FieldRejection(ErrorCode.SALE_PRICE_EXCEEDS_REGULAR, normalize_cell(raw))
    return price


def validate_sale_date_from(raw: str, ctx: RowContext):
    return parse_date_yyyy_mm_dd(raw, code=ErrorCode.INVALID_SALE_DATE_FROM)


def validate_sale_date_to(raw: str, ctx: RowContext):
    return parse_date_yyyy_mm_dd(raw, code=ErrorCode.INVALID_SALE_DATE_TO)


def check_sale_dates(ctx: RowContext) -> None:
    """
    Cross-field check once both dates are known for the row.

    When the end ends up before the start, the date changed by this row is
    refused (the end date if it changed, else the start date) and reported.
    """
    changed = [n for n in ("sale_date_to", "sale_date_from") if n in ctx.accepted]
    if not changed:
        return

    date_from = ctx.resolved("sale_date_from")
    date_to = ctx.resolved("sale_date_to")
    if date_from is None or date_to is None or date_to >= date_from:
        return

    offending = changed[0]
    value = ctx.accepted.pop(offending)
    ctx.report(
        offending,
        ErrorCode.SALE_DATE_CONFLICT,
        value.isoformat(),
        date_to.isoformat(),
        date_from.isoformat(),
    )


PRICING_FIELDS: tuple[FieldSpec, ...] = (
    attr_field("regular_price", validate_regular_price),
    attr_field("sale_price", validate_sale_price, depends_on="regular_price"),
    attr_field("sale_date_from", validate_sale_date_from, render=render_date),
    attr_field("sale_date_to", validate_sale_date_to, render=render_date, depends_on="sale_date_from"),
)
