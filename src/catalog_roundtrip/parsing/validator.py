from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from catalog_roundtrip.catalog.models import Product
from catalog_roundtrip.catalog.protocols import Catalog

from .primitives import KEEP_CURRENT, FieldRejection
from .profiles.pricing import check_sale_dates
from .registry import FIELD_REGISTRY, iter_field_specs
from .schema import RowContext
from .types import FieldIssue


@dataclass(frozen=True, slots=True)
class RowValidation:
    """Outcome of validating one row's changed fields."""
    accepted: dict[str, Any]        # field name -> typed value, differs from current.
    issues: tuple[FieldIssue, ...]  # in validation order.


def validate_changes(product: Product, changes: Mapping[str, str], *, catalog: Catalog) -> RowValidation:
    """
    Validate exactly the fields in `changes`, in registry order.

    Every field is validated (no short-circuit), so one row can report several
    problems. A field whose validated value equals the current value is dropped.
    """
    ctx = RowContext(product=product, store=catalog.store, taxonomy=catalog.taxonomy)

    for spec in iter_field_specs(product.type):
        if spec.name not in changes:
            continue
        try:
            value = spec.validate(changes[spec.name], ctx)
        except FieldRejection as e:
            ctx.issues.append(FieldIssue(field_name=spec.name, code=e.code, value=e.value, params=e.params))
            continue
        if value is KEEP_CURRENT:
            continue
        ctx.accepted[spec.name] = value

    check_sale_dates(ctx)

    accepted = {
        name: value
        for name, value in ctx.accepted.items()
        if value != FIELD_REGISTRY[name].getter(product)
    }
    return RowValidation(accepted=accepted, issues=tuple(ctx.issues))
