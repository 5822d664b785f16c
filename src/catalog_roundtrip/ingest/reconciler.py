from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Iterable

from loguru import logger

from catalog_roundtrip.catalog.protocols import Catalog
from catalog_roundtrip.core.errors import EmptySourceError, StoreError
from catalog_roundtrip.parsing.messages import get_suggestion, render_message
from catalog_roundtrip.parsing.primitives import is_empty, normalize_cell, parse_positive_id
from catalog_roundtrip.parsing.registry import KNOWN_COLUMNS
from catalog_roundtrip.parsing.types import ROW_FATAL_CODES, ErrorCode, FieldIssue, ValidationError
from catalog_roundtrip.parsing.validator import validate_changes

from .applier import apply_changes
from .changes import detect_changes
from .readers import RawRow, load_rows
from .summary import ImportRunResult


class RowStatus(str, Enum):
    updated = "updated"
    skipped = "skipped"
    failed = "failed"


@dataclass(frozen=True, slots=True)
class RowOutcome:
    status: RowStatus
    errors: tuple[ValidationError, ...] = ()


def to_error(row: RawRow, record_id: str, record_name: str, issue: FieldIssue) -> ValidationError:
    return ValidationError(
        row_number=row.line_number,
        record_id=record_id,
        record_name=record_name,
        field_name=issue.field_name,
        offending_value=normalize_cell(issue.value),
        error_code=issue.code.value,
        rendered_message=render_message(issue.code, issue.params),
        suggestion=get_suggestion(issue.code),
    )


class RowReconciler:
    """
    Reconciles rows one at a time against the catalog and keeps the run counters.

    Per row: identify the record, check permission, diff, validate the changed
    fields, apply. Every row ends in exactly one of updated/skipped/failed.
    """

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog
        self.total = 0
        self.updated = 0
        self.skipped = 0
        self.failed = 0
        self.errors: list[ValidationError] = []

    def reconcile(self, row: RawRow) -> RowOutcome:
        try:
            outcome = self._reconcile(row)
        except StoreError as e:
            # a failed store read loses this row only.
            logger.warning(f"row {row.line_number}: store unavailable: {e}")
            issue = FieldIssue("", ErrorCode.DATABASE_ERROR, "", (e.message,))
            error = to_error(row, normalize_cell(row.get("id")), normalize_cell(row.get("name")), issue)
            outcome = RowOutcome(RowStatus.failed, (error,))
        self.total += 1
        if outcome.status is RowStatus.updated:
            self.updated += 1
        elif outcome.status is RowStatus.skipped:
            self.skipped += 1
        else:
            self.failed += 1
        self.errors.extend(outcome.errors)

        logger.debug(f"row {row.line_number}: {outcome.status.value} ({len(outcome.errors)} errors)")
        return outcome

    def result(self) -> ImportRunResult:
        return ImportRunResult(
            total_rows=self.total,
            updated_count=self.updated,
            skipped_count=self.skipped,
            failed_count=self.failed,
            errors=tuple(self.errors),
        )

    def _reconcile(self, row: RawRow) -> RowOutcome:
        store, taxonomy = self.catalog.store, self.catalog.taxonomy
        raw_id = normalize_cell(row.get("id"))
        row_name = normalize_cell(row.get("name"))

        def fail(code: ErrorCode, field_name: str = "", value: Any = "", *params: Any) -> RowOutcome:
            issue = FieldIssue(field_name=field_name, code=code, value=value, params=params)
            return RowOutcome(RowStatus.failed, (to_error(row, raw_id, row_name, issue),))

        ## -- identification
        if is_empty(raw_id):
            return fail(ErrorCode.EMPTY_REQUIRED_FIELD, "id", "", "id")
        product_id = parse_positive_id(raw_id)
        if product_id is None:
            return fail(ErrorCode.INVALID_PRODUCT_ID, "id", raw_id)

        product = store.get_product(product_id)
        if product is None:
            code = ErrorCode.PRODUCT_TRASHED if store.is_trashed(product_id) else ErrorCode.PRODUCT_NOT_FOUND
            return fail(code, "id", raw_id)

        record_name = row_name or product.name

        ## -- permission
        if not store.can_edit(product_id):
            return RowOutcome(RowStatus.failed, (
                to_error(row, raw_id, record_name, FieldIssue("id", ErrorCode.PERMISSION_DENIED, raw_id)),
            ))

        ## -- diff
        changes = detect_changes(row.values, product, taxonomy)
        if not changes:
            return RowOutcome(RowStatus.skipped)

        ## -- validate
        validation = validate_changes(product, changes, catalog=self.catalog)
        issues = list(validation.issues)

        type_cell = normalize_cell(row.get("type")).lower()
        if type_cell and type_cell != product.type:
            issues.append(FieldIssue("type", ErrorCode.PRODUCT_TYPE_MISMATCH, normalize_cell(row.get("type"))))

        errors = [to_error(row, raw_id, record_name, i) for i in issues]

        if any(i.code in ROW_FATAL_CODES for i in issues):
            return RowOutcome(RowStatus.failed, tuple(errors))
        if not validation.accepted:
            status = RowStatus.failed if errors else RowStatus.skipped
            return RowOutcome(status, tuple(errors))

        ## -- apply
        try:
            apply_changes(product, validation.accepted, store=store)
        except StoreError as e:
            logger.warning(f"row {row.line_number}: save failed for product {product_id}: {e.message}")
            errors.append(to_error(row, raw_id, record_name, FieldIssue("", ErrorCode.DATABASE_ERROR, "", (e.message,))))
            return RowOutcome(RowStatus.failed, tuple(errors))

        return RowOutcome(RowStatus.updated, tuple(errors))


def _warn_unknown_columns(columns: Iterable[str]) -> None:
    for column in sorted(c for c in columns if c and c not in KNOWN_COLUMNS):
        logger.warning(f"ignoring unknown column {column!r}")


def run_import(source: str | Path | BinaryIO, *, catalog: Catalog) -> ImportRunResult:
    """
    End-to-end import of one file:
      - read every row up front (`ParseError` if any part of the source can't be read),
      - refuse a file with no data rows (`EmptySourceError`),
      - reconcile each row in file order,
      - return the counters and every error collected.

    Nothing is written before the whole source has parsed. Per-row problems,
    store failures included, never abort the run; they end up in `errors`.
    """
    rows = load_rows(source)
    if not rows:
        raise EmptySourceError(f"no data rows in {getattr(source, 'name', source)}")

    logger.info(f"import started: {getattr(source, 'name', source)} ({len(rows)} rows)")
    _warn_unknown_columns(rows[0].values.keys())

    reconciler = RowReconciler(catalog)
    for row in rows:
        reconciler.reconcile(row)

    result = reconciler.result()
    logger.info(result.render_one_line())
    return result
