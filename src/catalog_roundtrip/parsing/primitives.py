from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .types import ErrorCode


@dataclass(frozen=True, slots=True)
class FieldRejection(Exception):
    """A field's incoming value was refused. Carries what the error report needs."""
    code: ErrorCode             # classifies the rejection.
    value: Any = ""             # the offending value, as shown in the report.
    params: tuple[Any, ...] = ()  # positional values for the message template.


class _KeepCurrent:
    """Marker returned by a validator when the input means "leave this field alone"."""
    __slots__ = ()

    def __repr__(self) -> str:
        return "KEEP_CURRENT"

    def __bool__(self) -> bool:
        return False


KEEP_CURRENT = _KeepCurrent()


def normalize_cell(v: Any) -> str:
    """Transform a raw cell into a trimmed `str`, `None` becoming `""`."""
    if v is None:
        return ""
    return str(v).strip()


def is_empty(v: Any) -> bool:
    """Empty string and `None` are the same "no value" sentinel."""
    return normalize_cell(v) == ""


## -- slugs / text

_SLUG_DROP = re.compile(r"[^\w\-]+", re.UNICODE)
_SLUG_DASHES = re.compile(r"-{2,}")
_WS = re.compile(r"\s+")


def slugify(s: str) -> str:
    """
    Lookup slug for a term name: lower-cased, whitespace to `-`,
    punctuation dropped, repeated dashes collapsed.
    """
    out = _WS.sub("-", s.strip().lower()).replace("_", "-")
    out = _SLUG_DROP.sub("", out)
    return _SLUG_DASHES.sub("-", out).strip("-")


def sanitize_slug(s: str) -> str:
    """Light slug cleanup before validation (format problems are left for the validator to catch)."""
    return _WS.sub("-", s.strip().lower())


_TAG_RE = re.compile(r"(?is)<[^>]+>")
_SCRIPT_RE = re.compile(r"(?is)<(script|style)[^>]*>.*?</\1>")


def sanitize_text(s: str) -> str:
    """Plain single-line text: markup removed, whitespace collapsed."""
    s = _SCRIPT_RE.sub("", s)
    s = _TAG_RE.sub("", s)
    return _WS.sub(" ", s).strip()


def sanitize_html(s: str) -> str:
    """Rich text: keeps markup, drops `<script>`/`<style>` blocks."""
    return _SCRIPT_RE.sub("", s).strip()


def split_pipe(v: str) -> list[str]:
    """Split a multi-valued cell on `|`, dropping empty pieces."""
    return [p.strip() for p in v.split("|") if p.strip()]


def dedupe(items: Iterable[Any]) -> list[Any]:
    """Drop repeats, keep first-seen order."""
    seen: set[Any] = set()
    out: list[Any] = []
    for it in items:
        if it in seen:
            continue
        seen.add(it)
        out.append(it)
    return out


## -- numbers

_NON_AMOUNT = re.compile(r"[^0-9.]")


def parse_amount(v: Any, *, code: ErrorCode) -> str:
    """
    Parse a currency amount or a dimension into a decimal string.

    - `""` is valid and means "clear this value".
    - currency signs, spaces and thousands separators are stripped.
    - raises on a minus sign, or on anything that isn't a decimal once stripped.
    """
    s = normalize_cell(v)
    if s == "":
        return ""
    if s.startswith("-"):
        raise FieldRejection(code, s)

    cleaned = _NON_AMOUNT.sub("", s)
    if cleaned == "":
        raise FieldRejection(code, s)
    try:
        d = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        raise FieldRejection(code, s)
    if not d.is_finite() or d < 0:
        raise FieldRejection(code, s)
    return cleaned


_INT_RE = re.compile(r"^[+-]?[0-9]+$")


def parse_int(v: Any, *, code: ErrorCode) -> int:
    """Parse an integer. Raise on anything else, including `""`."""
    s = normalize_cell(v)
    # ASCII digits with an optional sign only: `int()` alone would also take "1_000" and "٣".
    if not _INT_RE.match(s):
        raise FieldRejection(code, s)
    return int(s)


def parse_non_negative_int(v: Any, *, code: ErrorCode, negative_code: ErrorCode | None = None) -> int:
    """Parse an integer >= 0. A negative number raises `negative_code` when given, else `code`."""
    n = parse_int(v, code=code)
    if n < 0:
        raise FieldRejection(negative_code or code, normalize_cell(v))
    return n


def parse_positive_id(v: Any) -> int | None:
    """Positive integer id, or `None` if `v` isn't one (no error raised)."""
    s = normalize_cell(v)
    if not (s.isascii() and s.isdigit()):
        return None
    n = int(s)
    return n if n > 0 else None


## -- booleans / enums

_TRUE = {"yes", "1", "true"}
_FALSE = {"no", "0", "false"}


def parse_yes_no(v: Any, *, field: str) -> bool:
    """`yes`/`1`/`true` -> `True`, `no`/`0`/`false` -> `False`, case-insensitive."""
    s = normalize_cell(v).lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise FieldRejection(ErrorCode.INVALID_BOOLEAN, normalize_cell(v), (normalize_cell(v), field))


def parse_choice(v: Any, *, allowed: Iterable[str], code: ErrorCode) -> str:
    """Case-insensitive match against a fixed set. Returns the lower-cased value."""
    s = normalize_cell(v).lower()
    if s not in set(allowed):
        raise FieldRejection(code, s)
    return s


## -- dates

_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


def parse_date_yyyy_mm_dd(v: Any, *, code: ErrorCode) -> date | None:
    """
    Strict `YYYY-MM-DD` calendar date. `""` returns `None` (clears the date).
    Raises on other shapes and on impossible dates such as `2024-02-30`.
    """
    s = normalize_cell(v)
    if s == "":
        return None
    if not _DATE_RE.match(s):
        raise FieldRejection(code, s)
    y, m, d = (int(p) for p in s.split("-"))
    try:
        return date(y, m, d)
    except ValueError:
        raise FieldRejection(code, s)
