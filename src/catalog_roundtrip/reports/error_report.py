from __future__ import annotations

import base64
import csv
import io
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Sequence

from loguru import logger

from catalog_roundtrip.parsing.types import ValidationError

REPORT_COLUMNS: tuple[str, ...] = (
    "row_number",
    "product_id",
    "product_name",
    "field_name",
    "current_value",
    "error_code",
    "error_message",
    "suggestion",
)

REPORT_FILENAME_PREFIX = "catalog-errors"


@dataclass(frozen=True, slots=True)
class ReportArtifact:
    """An error report handed back inline rather than written to disk."""
    filename: str
    content: str        # base64 of the report bytes.


def report_filename(now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%d-%H-%M-%S")
    return f"{REPORT_FILENAME_PREFIX}-{stamp}.csv"


def render_error_report(errors: Sequence[ValidationError]) -> bytes | None:
    """
    Report as UTF-8 bytes with a BOM, one line per error in collection order.

    Returns `None` when there is nothing to report.
    """
    if not errors:
        return None

    buf = io.StringIO(newline="")
    writer = csv.writer(buf)
    writer.writerow(REPORT_COLUMNS)
    for e in errors:
        writer.writerow([
            e.row_number,
            e.record_id,
            e.record_name,
            e.field_name,
            e.offending_value,
            e.error_code,
            e.rendered_message,
            e.suggestion,
        ])
    return buf.getvalue().encode("utf-8-sig")


def write_error_report(
    errors: Sequence[ValidationError],
    directory: Path,
    *,
    now: datetime | None = None,
) -> Path | None:
    """Write the report into `directory` (created if missing). `None` when there are no errors."""
    content = render_error_report(errors)
    if content is None:
        return None

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / report_filename(now)
    path.write_bytes(content)
    logger.info(f"error report written: {path} ({len(errors)} errors)")
    return path


def encode_error_report(
    errors: Sequence[ValidationError],
    *,
    now: datetime | None = None,
) -> ReportArtifact | None:
    """The report as an inline `{filename, base64 content}` artifact, `None` when there are no errors."""
    content = render_error_report(errors)
    if content is None:
        return None
    return ReportArtifact(
        filename=report_filename(now),
        content=base64.b64encode(content).decode("ascii"),
    )
