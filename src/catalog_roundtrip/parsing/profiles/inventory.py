from __future__ import annotations

from typing import Any

from catalog_roundtrip.parsing.primitives import (
    KEEP_CURRENT,
    FieldRejection,
    is_empty,
    normalize_cell,
    parse_amount,
    parse_non_negative_int,
)
from catalog_roundtrip.parsing.render import render_yes_no
from catalog_roundtrip.parsing.schema import FieldSpec, RowContext, Validator, attr_field
from catalog_roundtrip.parsing.types import ErrorCode

from .content import choice_validator, yes_no_validator

VALID_STOCK_STATUSES = ("instock", "outofstock", "onbackorder")
VALID_BACKORDERS = ("no", "notify", "yes")


def validate_stock_quantity(raw: str, ctx: RowContext) -> Any:
    """
    Non-negative integer, only when stock is managed.

    `manage_stock` is validated first, so a row switching it on and setting a
    quantity in the same go is accepted.
    """
    if is_empty(raw):
        return KEEP_CURRENT
    qty = parse_non_negative_int(
        raw,
        code=ErrorCode.INVALID_STOCK_QUANTITY,
        negative_code=ErrorCode.NEGATIVE_STOCK,
    )
    if not ctx.resolved("manage_stock"):
        raise FieldRejection(ErrorCode.STOCK_WITHOUT_MANAGE, normalize_cell(raw))
    return qty


def validate_low_stock_amount(raw: str, ctx: RowContext) -> Any:
    if is_empty(raw):
        return KEEP_CURRENT
    return parse_non_negative_int(raw, code=ErrorCode.INVALID_LOW_STOCK)


def _dimension_validator(code: ErrorCode) -> Validator:
    def _validate(raw: str, ctx: RowContext) -> str:
        return parse_amount(raw, code=code)
    return _validate


INVENTORY_FIELDS: tuple[FieldSpec, ...] = (
    attr_field(
        "stock_status",
        choice_validator(VALID_STOCK_STATUSES, ErrorCode.INVALID_STOCK_STATUS),
    ),
    attr_field("manage_stock", yes_no_validator("manage_stock"), render=render_yes_no),
    attr_field("stock_quantity", validate_stock_quantity, depends_on="manage_stock"),
    attr_field("backorders", choice_validator(VALID_BACKORDERS, ErrorCode.INVALID_BACKORDERS)),
    attr_field("low_stock_amount", validate_low_stock_amount),
    attr_field("weight", _dimension_validator(ErrorCode.INVALID_WEIGHT)),
    attr_field("length", _dimension_validator(ErrorCode.INVALID_LENGTH)),
    attr_field("width", _dimension_validator(ErrorCode.INVALID_WIDTH)),
    attr_field("height", _dimension_validator(ErrorCode.INVALID_HEIGHT)),
)
