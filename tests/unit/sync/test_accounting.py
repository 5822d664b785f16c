from __future__ import annotations

import csv
import io
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable

import pytest
from openpyxl import Workbook

from catalog_roundtrip.catalog.memory import MemoryProductStore, MemoryTaxonomy
from catalog_roundtrip.catalog.models import CATEGORY_TAXONOMY
from catalog_roundtrip.catalog.protocols import Catalog
from catalog_roundtrip.core.errors import EmptySourceError
from catalog_roundtrip.ingest.readers import RawRow
from catalog_roundtrip.parsing.primitives import FieldRejection
from catalog_roundtrip.parsing.types import ErrorCode
from catalog_roundtrip.sync.accounting import (
    DEFAULT_CATEGORY_SLUG,
    DISCOUNT_COLUMN,
    NAME_COLUMN,
    PRICE_COLUMN,
    SKU_COLUMN,
    STOCK_COLUMN,
    SYNC_COLUMNS,
    read_sheet_line,
    render_sync_output,
    rials_to_tomans,
    run_sync,
    write_sync_output,
)

MakeCsv = Callable[..., Path]

# header order of the accounting export.
HEADER = [NAME_COLUMN, SKU_COLUMN, PRICE_COLUMN, STOCK_COLUMN, DISCOUNT_COLUMN]


def _codes(result) -> list[str]:
    return [e.error_code for e in result.errors]


def _row(**cells: str) -> RawRow:
    columns = {"name": NAME_COLUMN, "sku": SKU_COLUMN, "price": PRICE_COLUMN, "stock": STOCK_COLUMN, "discount": DISCOUNT_COLUMN}
    return RawRow(line_number=2, values={columns[k]: v for k, v in cells.items()})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1,250,000", Decimal(125000)),
        ("125005", Decimal(12500)),     # rounded down
        (" 90 ", Decimal(9)),
        ("", None),
    ],
)
def test_rials_to_tomans(raw: str, expected: Decimal | None) -> None:
    assert rials_to_tomans(raw, code=ErrorCode.INVALID_REGULAR_PRICE) == expected


@pytest.mark.parametrize("raw", ["-500", "n/a", "١٠٠٠"])
def test_rials_to_tomans_rejects(raw: str) -> None:
    with pytest.raises(FieldRejection) as e:
        rials_to_tomans(raw, code=ErrorCode.INVALID_REGULAR_PRICE)
    assert e.value.code is ErrorCode.INVALID_REGULAR_PRICE


def test_sale_price_is_price_minus_discount() -> None:
    line, issues = read_sheet_line(_row(sku="A-1", price="1200000", stock="4", discount="200000"))
    assert issues == []
    assert line.regular_price == "120000"
    assert line.sale_price == "100000"
    assert line.stock_quantity == 4


@pytest.mark.parametrize("discount", ["", "0", "1200000", "5000000"])
def test_no_or_full_discount_clears_sale_price(discount: str) -> None:
    line, _ = read_sheet_line(_row(sku="A-1", price="1200000", discount=discount))
    assert line.sale_price == ""


def test_missing_price_and_stock_cells() -> None:
    line, issues = read_sheet_line(_row(sku="A-1", discount="1000"))
    assert issues == []
    assert line.regular_price is None
    assert line.sale_price == ""
    assert line.stock_quantity == 0


def test_every_bad_cell_is_reported() -> None:
    line, issues = read_sheet_line(_row(sku="A-1", price="abc", stock="2.5", discount="-1"))
    assert line is None
    assert [(i.field_name, i.code) for i in issues] == [
        (PRICE_COLUMN, ErrorCode.INVALID_REGULAR_PRICE),
        (DISCOUNT_COLUMN, ErrorCode.INVALID_SALE_PRICE),
        (STOCK_COLUMN, ErrorCode.INVALID_STOCK_QUANTITY),
    ]


def test_known_sku_updates_price_sale_and_stock(catalog: Catalog, store: MemoryProductStore, make_csv: MakeCsv) -> None:
    path = make_csv(HEADER, [["Other name", "RUN-42", "1,200,000", "5", "200000"]])
    result = run_sync(path, catalog=catalog)

    assert (result.total_rows, result.updated_count, result.created_count) == (1, 1, 0)
    assert result.errors == ()
    assert result.touched_ids == (42,)

    saved = store.get_product(42)
    assert saved.name == "Trail Runner"         # names are never overwritten
    assert saved.regular_price == "120000"
    assert saved.sale_price == "100000"
    assert saved.manage_stock is True
    assert saved.stock_quantity == 5
    assert saved.stock_status == "instock"
    assert saved.image_id == 501
    assert saved.gallery_image_ids == [502, 503]


def test_zero_stock_and_no_discount(catalog: Catalog, store: MemoryProductStore, make_csv: MakeCsv) -> None:
    product = store.get_product(7)
    product.sale_price = "15"
    store.save(product)

    result = run_sync(make_csv(HEADER, [["", "TOTE-7", "", "0", ""]]), catalog=catalog)

    assert result.updated_count == 1
    saved = store.get_product(7)
    assert saved.regular_price == "20"          # empty price cell leaves it alone
    assert saved.sale_price == ""
    assert saved.stock_quantity == 0
    assert saved.stock_status == "outofstock"


def test_unknown_sku_creates_a_product_in_the_default_category(
    catalog: Catalog, store: MemoryProductStore, taxonomy: MemoryTaxonomy, make_csv: MakeCsv
) -> None:
    result = run_sync(make_csv(HEADER, [["لامپ میز", "LAMP-1", "450000", "2", "50000"]]), catalog=catalog)

    assert result.created_count == 1
    (new_id,) = result.touched_ids
    created = store.get_product(new_id)
    assert created.type == "simple"
    assert created.name == "لامپ میز"
    assert created.sku == "LAMP-1"
    assert created.slug == "لامپ-میز"
    assert created.status == "publish"
    assert created.regular_price == "45000"
    assert created.sale_price == "40000"
    assert (created.manage_stock, created.stock_quantity, created.stock_status) == (True, 2, "instock")

    uncat = taxonomy.get_term_by_slug(CATEGORY_TAXONOMY, DEFAULT_CATEGORY_SLUG)
    assert uncat is not None
    assert created.category_ids == [uncat.term_id]


def test_default_category_is_created_once(catalog: Catalog, make_csv: MakeCsv) -> None:
    rows = [["Lamp", "LAMP-1", "10", "1", ""], ["Desk", "DESK-1", "10", "1", ""]]
    result = run_sync(make_csv(HEADER, rows), catalog=catalog)

    assert result.created_count == 2
    products = [catalog.store.get_product(i) for i in result.touched_ids]
    assert products[0].category_ids == products[1].category_ids


def test_new_slug_that_is_taken_gets_the_sku_appended(catalog: Catalog, store: MemoryProductStore, make_csv: MakeCsv) -> None:
    result = run_sync(make_csv(HEADER, [["Canvas Tote", "TOTE-8", "10", "1", ""]]), catalog=catalog)
    assert store.get_product(result.touched_ids[0]).slug == "canvas-tote-tote-8"


def test_row_problems_are_classified(catalog: Catalog, store: MemoryProductStore, make_csv: MakeCsv) -> None:
    store.locked.add(9)
    store.failing_skus.add("BAD-1")
    rows = [
        ["No serial", "", "10", "1", ""],           # skipped
        ["", "NEW-1", "10", "1", ""],               # failed: a new product needs a name
        ["Bad", "BAD-1", "10", "1", ""],            # failed: insert refused
        ["", "BOOT-9", "10", "1", ""],              # failed: locked
        ["", "TEE", "10", "1", ""],                 # failed: variable product price
        ["", "RUN-42", "x", "1", ""],               # failed: bad price
        ["", "TOTE-7", "", "1", ""],                # updated
    ]
    result = run_sync(make_csv(HEADER, rows), catalog=catalog)

    assert result.total_rows == 7
    assert (result.created_count, result.updated_count, result.skipped_count, result.failed_count) == (0, 1, 1, 5)
    assert _codes(result) == [
        "EMPTY_SKU",
        "EMPTY_NAME",
        "CREATE_FAILED",
        "PERMISSION_DENIED",
        "VARIABLE_PRODUCT_NO_PRICE",
        "INVALID_REGULAR_PRICE",
    ]
    assert [e.row_number for e in result.errors] == [2, 3, 4, 5, 6, 7]
    assert "simulated insert failure" in result.errors[2].rendered_message
    assert result.errors[3].record_id == "9"
    assert result.errors[3].record_name == "Leather Boot"
    assert store.saves == [7]


def test_store_read_failure_fails_the_row_and_the_run_goes_on(
    catalog: Catalog, store: MemoryProductStore, make_csv: MakeCsv
) -> None:
    store.failing_reads.add(42)
    rows = [["", "RUN-42", "10", "1", ""], ["", "TOTE-7", "10", "1", ""]]
    result = run_sync(make_csv(HEADER, rows), catalog=catalog)

    assert (result.failed_count, result.updated_count) == (1, 1)
    assert _codes(result) == ["DATABASE_ERROR"]


def test_save_failure_is_database_error(catalog: Catalog, store: MemoryProductStore, make_csv: MakeCsv) -> None:
    store.failing_ids.add(42)
    result = run_sync(make_csv(HEADER, [["", "RUN-42", "10", "1", ""]]), catalog=catalog)

    assert result.failed_count == 1
    assert _codes(result) == ["DATABASE_ERROR"]
    assert result.touched_ids == ()


def test_empty_sheet_is_run_fatal(catalog: Catalog, make_csv: MakeCsv) -> None:
    with pytest.raises(EmptySourceError):
        run_sync(make_csv(HEADER, []), catalog=catalog)


def test_xlsx_sheet(catalog: Catalog, store: MemoryProductStore, tmp_path: Path) -> None:
    wb = Workbook()
    ws = wb.active
    ws.append(HEADER)
    ws.append(["Trail Runner", "RUN-42", 1500000, 7, None])
    ws.append(["Desk", "DESK-1", 990000.0, 1, 90000])
    path = tmp_path / "accounting.xlsx"
    wb.save(path)

    result = run_sync(path, catalog=catalog)

    assert (result.updated_count, result.created_count) == (1, 1)
    assert store.get_product(42).regular_price == "150000"
    assert store.get_product(42).stock_quantity == 7
    desk = store.get_product(result.touched_ids[1])
    assert (desk.regular_price, desk.sale_price) == ("99000", "90000")


def test_output_lists_touched_products_in_export_format(catalog: Catalog, make_csv: MakeCsv, tmp_path: Path) -> None:
    rows = [["", "RUN-42", "10", "1", ""], ["", "", "", "", ""], ["Lamp", "LAMP-1", "20", "1", ""], ["", "RUN-42", "30", "1", ""]]
    result = run_sync(make_csv(HEADER, rows), catalog=catalog)

    content = render_sync_output(result, catalog)
    assert content is not None
    assert content.startswith(b"\xef\xbb\xbf")
    out = list(csv.DictReader(io.StringIO(content.decode("utf-8-sig"))))
    assert [r["sku"] for r in out] == ["RUN-42", "LAMP-1"]
    assert out[0]["regular_price"] == "3"
    assert out[1]["categories"] == "دسته بندی نشده"

    path = write_sync_output(result, catalog, tmp_path / "out", now=datetime(2026, 3, 1, 9, 30, 0))
    assert path == tmp_path / "out" / "catalog-sync-2026-03-01-09-30-00.csv"
    assert path.read_bytes() == content


def test_output_is_none_when_nothing_was_touched(catalog: Catalog, make_csv: MakeCsv, tmp_path: Path) -> None:
    result = run_sync(make_csv(HEADER, [["", "", "", "", ""], ["x", "", "1", "", ""]]), catalog=catalog)
    assert result.touched_ids == ()
    assert render_sync_output(result, catalog) is None
    assert write_sync_output(result, catalog, tmp_path / "out") is None
    assert not (tmp_path / "out").exists()


def test_sync_columns_are_the_accounting_headers() -> None:
    assert set(HEADER) == set(SYNC_COLUMNS)
