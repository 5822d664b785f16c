from __future__ import annotations

from datetime import date

import pytest

from catalog_roundtrip.catalog.protocols import Catalog
from catalog_roundtrip.parsing.primitives import FieldRejection
from catalog_roundtrip.parsing.profiles.pricing import (
    check_sale_dates,
    validate_regular_price,
    validate_sale_date_from,
    validate_sale_date_to,
    validate_sale_price,
)
from catalog_roundtrip.parsing.schema import RowContext
from catalog_roundtrip.parsing.types import ErrorCode


def _ctx(catalog: Catalog, product_id: int) -> RowContext:
    product = catalog.store.get_product(product_id)
    assert product is not None
    return RowContext(product=product, store=catalog.store, taxonomy=catalog.taxonomy)


def test_prices_parse_and_clear(catalog: Catalog) -> None:
    ctx = _ctx(catalog, 42)
    assert validate_regular_price("120.50", ctx) == "120.50"
    assert validate_regular_price("", ctx) == ""

    with pytest.raises(FieldRejection) as e:
        validate_regular_price("-10", ctx)
    assert e.value.code is ErrorCode.INVALID_REGULAR_PRICE

    with pytest.raises(FieldRejection) as e:
        validate_sale_price("cheap", ctx)
    assert e.value.code is ErrorCode.INVALID_SALE_PRICE


def test_variable_products_take_no_direct_price(catalog: Catalog) -> None:
    ctx = _ctx(catalog, 10)
    with pytest.raises(FieldRejection) as e:
        validate_regular_price("30", ctx)
    assert e.value.code is ErrorCode.VARIABLE_PRODUCT_NO_PRICE
    assert validate_regular_price("", ctx) == ""


def test_sale_price_checked_against_current_regular_price(catalog: Catalog) -> None:
    ctx = _ctx(catalog, 42)     # regular 100
    assert validate_sale_price("80", ctx) == "80"
    with pytest.raises(FieldRejection) as e:
        validate_sale_price("150", ctx)
    assert e.value.code is ErrorCode.SALE_PRICE_EXCEEDS_REGULAR
    assert e.value.value == "150"


def test_sale_price_checked_against_regular_price_accepted_this_row(catalog: Catalog) -> None:
    ctx = _ctx(catalog, 42)
    ctx.accepted["regular_price"] = "200"
    assert validate_sale_price("150", ctx) == "150"


def test_sale_dates_parse(catalog: Catalog) -> None:
    ctx = _ctx(catalog, 42)
    assert validate_sale_date_from("2026-05-01", ctx) == date(2026, 5, 1)
    assert validate_sale_date_to("", ctx) is None
    with pytest.raises(FieldRejection) as e:
        validate_sale_date_to("31/05/2026", ctx)
    assert e.value.code is ErrorCode.INVALID_SALE_DATE_TO


def test_sale_date_conflict_drops_the_changed_end_date(catalog: Catalog) -> None:
    ctx = _ctx(catalog, 11)     # current window 2026-01-01 .. 2026-01-31
    ctx.accepted["sale_date_to"] = date(2025, 12, 1)
    check_sale_dates(ctx)

    assert "sale_date_to" not in ctx.accepted
    (issue,) = ctx.issues
    assert issue.field_name == "sale_date_to"
    assert issue.code is ErrorCode.SALE_DATE_CONFLICT
    assert issue.value == "2025-12-01"
    assert issue.params == ("2025-12-01", "2026-01-01")


def test_sale_date_conflict_drops_start_date_when_only_it_changed(catalog: Catalog) -> None:
    ctx = _ctx(catalog, 11)
    ctx.accepted["sale_date_from"] = date(2026, 2, 15)
    check_sale_dates(ctx)

    assert "sale_date_from" not in ctx.accepted
    assert [i.field_name for i in ctx.issues] == ["sale_date_from"]


def test_sale_dates_in_order_pass(catalog: Catalog) -> None:
    ctx = _ctx(catalog, 11)
    ctx.accepted["sale_date_from"] = date(2026, 1, 10)
    ctx.accepted["sale_date_to"] = date(2026, 1, 20)
    check_sale_dates(ctx)
    assert ctx.issues == []
    assert set(ctx.accepted) == {"sale_date_from", "sale_date_to"}
