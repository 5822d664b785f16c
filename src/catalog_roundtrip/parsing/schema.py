from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from catalog_roundtrip.catalog.models import Product
from catalog_roundtrip.catalog.protocols import RecordStore, TaxonomyRepository

from .render import Renderer, render_text
from .types import ErrorCode, FieldIssue

# Typing:
# Getter reads the typed current value off a product.
# Setter writes a validated typed value onto a product.
# Validator turns a raw cell into a typed value (or `KEEP_CURRENT`), raising `FieldRejection`.
Getter = Callable[[Product], Any]
Setter = Callable[[Product, Any], None]
Validator = Callable[[str, "RowContext"], Any]


@dataclass(slots=True)
class RowContext:
    """
    Everything a validator may look at while one row is being validated.

    `accepted` holds the values already validated for this row, in validation order,
    so a dependent field (e.g. `stock_quantity`) sees its sibling's new value.
    `issues` collects non-blocking problems (e.g. one unresolved category out of three).
    """
    product: Product
    store: RecordStore
    taxonomy: TaxonomyRepository
    accepted: dict[str, Any] = field(default_factory=dict)
    issues: list[FieldIssue] = field(default_factory=list)

    @property
    def product_type(self) -> str:
        return self.product.type

    def resolved(self, name: str) -> Any:
        """Value accepted this row for `name`, else the product's current value."""
        if name in self.accepted:
            return self.accepted[name]
        return getattr(self.product, name)

    def report(self, field_name: str, code: ErrorCode, value: Any = "", *params: Any) -> None:
        """Record a non-blocking issue; the field itself may still be applied."""
        self.issues.append(FieldIssue(field_name=field_name, code=code, value=value, params=params))


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """
    One updatable field: how to read it, validate it, and write it back.

    Read-only and blacklisted fields have no `FieldSpec` at all.
    """
    name: str                               # column name in the import/export file.
    getter: Getter                          # typed current value.
    setter: Setter                          # apply a validated value.
    validate: Validator                     # raw cell -> typed value.
    render: Renderer = render_text          # typed value -> cell text.
    applies_to: frozenset[str] | None = None  # product types, `None` for all.
    depends_on: str | None = None           # sibling field validated first.

    def applies(self, product_type: str) -> bool:
        return self.applies_to is None or product_type in self.applies_to

    def read_current(self, product: Product, taxonomy: TaxonomyRepository) -> str:
        """The current value in the same normalized form the export writes."""
        return self.render(self.getter(product), taxonomy)

    def apply(self, product: Product, value: Any) -> None:
        self.setter(product, value)


def attr_field(
    name: str,
    validate: Validator,
    *,
    attr: str | None = None,
    render: Renderer = render_text,
    applies_to: frozenset[str] | None = None,
    depends_on: str | None = None,
) -> FieldSpec:
    """`FieldSpec` for a field stored as a plain `Product` attribute (`attr` defaults to `name`)."""
    target = attr or name
    return FieldSpec(
        name=name,
        getter=lambda p: getattr(p, target),
        setter=lambda p, v: setattr(p, target, v),
        validate=validate,
        render=render,
        applies_to=applies_to,
        depends_on=depends_on,
    )
