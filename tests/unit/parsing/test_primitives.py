from __future__ import annotations

from datetime import date

import pytest

from catalog_roundtrip.parsing.primitives import (
    KEEP_CURRENT,
    FieldRejection,
    dedupe,
    parse_amount,
    parse_date_yyyy_mm_dd,
    parse_int,
    parse_non_negative_int,
    parse_positive_id,
    parse_yes_no,
    sanitize_html,
    sanitize_slug,
    sanitize_text,
    slugify,
    split_pipe,
)
from catalog_roundtrip.parsing.types import ErrorCode


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("100", "100"),
        (" 99.50 ", "99.50"),
        ("$1,250.00", "1250.00"),
        ("", ""),
    ],
)
def test_parse_amount_accepts_and_cleans(raw: str, expected: str) -> None:
    assert parse_amount(raw, code=ErrorCode.INVALID_REGULAR_PRICE) == expected


@pytest.mark.parametrize("raw", ["-5", "abc", "1.2.3", ".", "١٠٠"])
def test_parse_amount_rejects(raw: str) -> None:
    with pytest.raises(FieldRejection) as e:
        parse_amount(raw, code=ErrorCode.INVALID_WEIGHT)
    assert e.value.code is ErrorCode.INVALID_WEIGHT
    assert e.value.value == raw


def test_parse_int_rejects_decimals_and_empty() -> None:
    assert parse_int(" 12 ", code=ErrorCode.INVALID_MENU_ORDER) == 12
    assert parse_int("-3", code=ErrorCode.INVALID_MENU_ORDER) == -3
    for raw in ("", "1.5", "1e3", "x", "1_000", "٣"):
        with pytest.raises(FieldRejection):
            parse_int(raw, code=ErrorCode.INVALID_MENU_ORDER)


def test_parse_non_negative_int_uses_negative_code() -> None:
    with pytest.raises(FieldRejection) as e:
        parse_non_negative_int("-1", code=ErrorCode.INVALID_STOCK_QUANTITY, negative_code=ErrorCode.NEGATIVE_STOCK)
    assert e.value.code is ErrorCode.NEGATIVE_STOCK

    with pytest.raises(FieldRejection) as e:
        parse_non_negative_int("-1", code=ErrorCode.INVALID_LOW_STOCK)
    assert e.value.code is ErrorCode.INVALID_LOW_STOCK


@pytest.mark.parametrize(("raw", "expected"), [("42", 42), (" 7 ", 7), ("0", None), ("-1", None), ("1.0", None), ("", None), ("٣", None)])
def test_parse_positive_id(raw: str, expected: int | None) -> None:
    assert parse_positive_id(raw) == expected


def test_parse_yes_no_is_case_insensitive() -> None:
    assert parse_yes_no("YES", field="featured") is True
    assert parse_yes_no("1", field="featured") is True
    assert parse_yes_no("False", field="featured") is False

    with pytest.raises(FieldRejection) as e:
        parse_yes_no("maybe", field="featured")
    assert e.value.code is ErrorCode.INVALID_BOOLEAN
    assert e.value.params == ("maybe", "featured")


def test_parse_date_is_strict_and_calendar_checked() -> None:
    code = ErrorCode.INVALID_SALE_DATE_FROM
    assert parse_date_yyyy_mm_dd("2026-03-01", code=code) == date(2026, 3, 1)
    assert parse_date_yyyy_mm_dd("", code=code) is None
    for raw in ("2024-02-30", "2026/03/01", "01-03-2026", "2026-3-1", "٢٠٢٦-٠١-٠١"):
        with pytest.raises(FieldRejection):
            parse_date_yyyy_mm_dd(raw, code=code)


def test_text_helpers() -> None:
    assert slugify("Running Shoes!") == "running-shoes"
    assert sanitize_slug("  My Slug ") == "my-slug"
    assert sanitize_text("<b>Big</b>   <script>x()</script>Shoe") == "Big Shoe"
    assert sanitize_html("<p>ok</p><style>p{}</style>") == "<p>ok</p>"
    assert split_pipe(" a | |b|") == ["a", "b"]
    assert dedupe([3, 1, 3, 2, 1]) == [3, 1, 2]


def test_keep_current_marker_is_falsy_singleton() -> None:
    assert not KEEP_CURRENT
    assert repr(KEEP_CURRENT) == "KEEP_CURRENT"
