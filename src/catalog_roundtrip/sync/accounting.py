"""
SKU-keyed sync from an accounting package's product sheet.

Each row names a product by its serial (the SKU). A known serial gets its
price, discount-derived sale price and stock overwritten; an unknown one
becomes a new simple product in the default category. Amounts in the sheet
are rials and are stored as whole tomans.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_FLOOR, Decimal
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from catalog_roundtrip.catalog.models import CATEGORY_TAXONOMY, Product
from catalog_roundtrip.catalog.protocols import Catalog
from catalog_roundtrip.core.errors import EmptySourceError, StoreError
from catalog_roundtrip.export.exporter import render_products
from catalog_roundtrip.ingest.readers import RawRow, load_rows
from catalog_roundtrip.ingest.reconciler import to_error
from catalog_roundtrip.ingest.summary import SyncRunResult
from catalog_roundtrip.parsing.primitives import FieldRejection, dedupe, normalize_cell, parse_amount, parse_int, slugify
from catalog_roundtrip.parsing.types import ErrorCode, FieldIssue, ValidationError

# sheet headers as the accounting package writes them.
NAME_COLUMN = "نام کالا"
SKU_COLUMN = "سریال"
PRICE_COLUMN = "قیمت فروش"
STOCK_COLUMN = "موجودی اولیه"
DISCOUNT_COLUMN = "تخفیف فروش"

SYNC_COLUMNS: tuple[str, ...] = (NAME_COLUMN, SKU_COLUMN, PRICE_COLUMN, STOCK_COLUMN, DISCOUNT_COLUMN)

DEFAULT_CATEGORY_NAME = "دسته بندی نشده"
DEFAULT_CATEGORY_SLUG = "uncat"

RIALS_PER_TOMAN = 10

OUTPUT_FILENAME_PREFIX = "catalog-sync"


class SyncStatus(str, Enum):
    created = "created"
    updated = "updated"
    skipped = "skipped"
    failed = "failed"


@dataclass(frozen=True, slots=True)
class SheetLine:
    """One accounting row, converted to catalog units."""
    sku: str
    name: str
    regular_price: str | None       # tomans; `None` leaves the stored price alone.
    sale_price: str                 # tomans; "" clears it.
    stock_quantity: int


def rials_to_tomans(v: str, *, code: ErrorCode) -> Decimal | None:
    """Rial amount cell -> whole tomans, rounded down. `None` for an empty cell."""
    cleaned = parse_amount(v, code=code)
    if cleaned == "":
        return None
    return (Decimal(cleaned) / RIALS_PER_TOMAN).to_integral_value(rounding=ROUND_FLOOR)


def _toman_text(d: Decimal) -> str:
    return format(d, "f")


def read_sheet_line(row: RawRow) -> tuple[SheetLine | None, list[FieldIssue]]:
    """
    Convert the row's cells, collecting every rejected cell.

    The sale price is the regular price minus the discount, floored at zero;
    zero or no discount clears it. An empty stock cell counts as zero.
    """
    issues: list[FieldIssue] = []

    def convert(column: str, code: ErrorCode) -> Decimal | None:
        try:
            return rials_to_tomans(row.get(column), code=code)
        except FieldRejection as e:
            issues.append(FieldIssue(column, e.code, e.value))
            return None

    regular = convert(PRICE_COLUMN, ErrorCode.INVALID_REGULAR_PRICE)
    discount = convert(DISCOUNT_COLUMN, ErrorCode.INVALID_SALE_PRICE)

    stock = 0
    if normalize_cell(row.get(STOCK_COLUMN)) != "":
        try:
            stock = parse_int(row.get(STOCK_COLUMN), code=ErrorCode.INVALID_STOCK_QUANTITY)
        except FieldRejection as e:
            issues.append(FieldIssue(STOCK_COLUMN, e.code, e.value))

    if issues:
        return None, issues

    sale = ""
    if regular is not None and discount is not None and discount > 0:
        discounted = max(Decimal(0), regular - discount)
        sale = _toman_text(discounted) if discounted > 0 else ""

    return SheetLine(
        sku=normalize_cell(row.get(SKU_COLUMN)),
        name=normalize_cell(row.get(NAME_COLUMN)),
        regular_price=_toman_text(regular) if regular is not None else None,
        sale_price=sale,
        stock_quantity=stock,
    ), []


def _stock_status(quantity: int) -> str:
    return "instock" if quantity > 0 else "outofstock"


class AccountingSync:
    """
    Applies accounting rows one at a time and keeps the run counters.

    Per row: require a serial, convert the cells, then update the product
    holding that SKU or create a new one. Every row ends in exactly one of
    created/updated/skipped/failed; a row without a serial is skipped with an
    error.
    """

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog
        self.total = 0
        self.counts = {status: 0 for status in SyncStatus}
        self.errors: list[ValidationError] = []
        self.touched: list[int] = []
        self._default_category: int | None = None

    def sync(self, row: RawRow) -> SyncStatus:
        try:
            status, errors = self._sync(row)
        except StoreError as e:
            logger.warning(f"row {row.line_number}: store unavailable: {e}")
            issue = FieldIssue("", ErrorCode.DATABASE_ERROR, "", (e.message,))
            status, errors = SyncStatus.failed, [self._error(row, "", issue)]

        self.total += 1
        self.counts[status] += 1
        self.errors.extend(errors)
        logger.debug(f"row {row.line_number}: {status.value} ({len(errors)} errors)")
        return status

    def result(self) -> SyncRunResult:
        return SyncRunResult(
            total_rows=self.total,
            created_count=self.counts[SyncStatus.created],
            updated_count=self.counts[SyncStatus.updated],
            skipped_count=self.counts[SyncStatus.skipped],
            failed_count=self.counts[SyncStatus.failed],
            errors=tuple(self.errors),
            touched_ids=tuple(self.touched),
        )

    def _error(self, row: RawRow, record_id: str, issue: FieldIssue, record_name: str | None = None) -> ValidationError:
        name = record_name if record_name is not None else normalize_cell(row.get(NAME_COLUMN))
        return to_error(row, record_id, name, issue)

    def _sync(self, row: RawRow) -> tuple[SyncStatus, list[ValidationError]]:
        if normalize_cell(row.get(SKU_COLUMN)) == "":
            return SyncStatus.skipped, [self._error(row, "", FieldIssue(SKU_COLUMN, ErrorCode.EMPTY_SKU))]

        line, issues = read_sheet_line(row)
        if line is None:
            return SyncStatus.failed, [self._error(row, "", i) for i in issues]

        product_id = self.catalog.store.find_id_by_sku(line.sku)
        if product_id is None:
            return self._create(row, line)
        return self._update(row, product_id, line)

    def _update(self, row: RawRow, product_id: int, line: SheetLine) -> tuple[SyncStatus, list[ValidationError]]:
        store = self.catalog.store
        record_id = str(product_id)

        def fail(code: ErrorCode, *params: str, record_name: str | None = None) -> tuple[SyncStatus, list[ValidationError]]:
            issue = FieldIssue("sku", code, line.sku, params)
            return SyncStatus.failed, [self._error(row, record_id, issue, record_name)]

        product = store.get_product(product_id)
        if product is None:
            return fail(ErrorCode.PRODUCT_NOT_FOUND)
        if not store.can_edit(product_id):
            return fail(ErrorCode.PERMISSION_DENIED, record_name=product.name)
        if product.is_type("variable") and (line.regular_price is not None or line.sale_price):
            return fail(ErrorCode.VARIABLE_PRODUCT_NO_PRICE, record_name=product.name)

        # the name stays as the catalog has it.
        if line.regular_price is not None:
            product.regular_price = line.regular_price
        product.sale_price = line.sale_price
        product.manage_stock = True
        product.stock_quantity = line.stock_quantity
        product.stock_status = _stock_status(line.stock_quantity)

        try:
            store.save(product)
        except StoreError as e:
            logger.warning(f"row {row.line_number}: save failed for product {product_id}: {e.message}")
            return fail(ErrorCode.DATABASE_ERROR, e.message, record_name=product.name)

        self.touched.append(product_id)
        return SyncStatus.updated, []

    def _create(self, row: RawRow, line: SheetLine) -> tuple[SyncStatus, list[ValidationError]]:
        store = self.catalog.store
        if line.name == "":
            return SyncStatus.failed, [self._error(row, "", FieldIssue(NAME_COLUMN, ErrorCode.EMPTY_NAME))]

        slug = slugify(line.name) or slugify(line.sku)
        if store.find_id_by_slug(slug) is not None:
            slug = f"{slug}-{slugify(line.sku)}"

        product = Product(
            id=0,
            type="simple",
            name=line.name,
            sku=line.sku,
            slug=slug,
            status="publish",
            catalog_visibility="visible",
            regular_price=line.regular_price or "",
            sale_price=line.sale_price,
            manage_stock=True,
            stock_quantity=line.stock_quantity,
            stock_status=_stock_status(line.stock_quantity),
            category_ids=[self._default_category_id()],
        )
        try:
            new_id = store.create(product)
        except StoreError as e:
            logger.warning(f"row {row.line_number}: create failed for sku {line.sku!r}: {e.message}")
            issue = FieldIssue("sku", ErrorCode.CREATE_FAILED, line.sku, (e.message,))
            return SyncStatus.failed, [self._error(row, "", issue)]

        self.touched.append(new_id)
        return SyncStatus.created, []

    def _default_category_id(self) -> int:
        if self._default_category is None:
            term = self.catalog.taxonomy.ensure_term(CATEGORY_TAXONOMY, DEFAULT_CATEGORY_NAME, DEFAULT_CATEGORY_SLUG)
            self._default_category = term.term_id
        return self._default_category


def run_sync(source: str | Path | BinaryIO, *, catalog: Catalog) -> SyncRunResult:
    """
    End-to-end sync of one accounting sheet (CSV or XLSX):
      - read every row up front (`ParseError` if the source can't be read),
      - refuse a sheet with no data rows (`EmptySourceError`),
      - create or update one product per row, in sheet order.

    Per-row problems never abort the run; they end up in `errors`.
    """
    rows = load_rows(source)
    if not rows:
        raise EmptySourceError(f"no data rows in {getattr(source, 'name', source)}")

    logger.info(f"sync started: {getattr(source, 'name', source)} ({len(rows)} rows)")
    for column in SYNC_COLUMNS:
        if column not in rows[0]:
            logger.warning(f"sheet has no {column!r} column")

    syncer = AccountingSync(catalog)
    for row in rows:
        syncer.sync(row)

    result = syncer.result()
    logger.info(result.render_one_line())
    return result


def render_sync_output(result: SyncRunResult, catalog: Catalog) -> bytes | None:
    """
    The created and updated products as they are now stored, in export format.

    `None` when the run touched nothing.
    """
    products: list[Product] = []
    for product_id in dedupe(result.touched_ids):
        product = catalog.store.get_product(product_id)
        if product is not None:
            products.append(product)
    if not products:
        return None
    return render_products(products, catalog.taxonomy)


def write_sync_output(
    result: SyncRunResult,
    catalog: Catalog,
    directory: Path,
    *,
    now: datetime | None = None,
) -> Path | None:
    """Write the output file into `directory` (created if missing). `None` when nothing was touched."""
    content = render_sync_output(result, catalog)
    if content is None:
        return None

    stamp = (now or datetime.now()).strftime("%Y-%m-%d-%H-%M-%S")
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{OUTPUT_FILENAME_PREFIX}-{stamp}.csv"
    path.write_bytes(content)
    logger.info(f"sync output written: {path}")
    return path
