from __future__ import annotations

from dataclasses import dataclass

from catalog_roundtrip.parsing.types import ValidationError


@dataclass(frozen=True)
class ImportRunResult:
    """Counters and errors of one import run."""
    total_rows: int
    updated_count: int
    skipped_count: int
    failed_count: int
    errors: tuple[ValidationError, ...]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def render_one_line(self) -> str:
        """How a run summary is formatted for the terminal."""
        return (
            f"import: total={self.total_rows} updated={self.updated_count} "
            f"skipped={self.skipped_count} failed={self.failed_count} errors={len(self.errors)}"
        )


@dataclass(frozen=True)
class SyncRunResult:
    """Counters, errors and touched product ids of one accounting sync run."""
    total_rows: int
    created_count: int
    updated_count: int
    skipped_count: int
    failed_count: int
    errors: tuple[ValidationError, ...]
    touched_ids: tuple[int, ...]        # created or updated, in file order.

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def render_one_line(self) -> str:
        return (
            f"sync: total={self.total_rows} created={self.created_count} updated={self.updated_count} "
            f"skipped={self.skipped_count} failed={self.failed_count} errors={len(self.errors)}"
        )
