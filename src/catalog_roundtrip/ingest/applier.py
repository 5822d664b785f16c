from __future__ import annotations

from copy import deepcopy
from typing import Any, Mapping

from loguru import logger

from catalog_roundtrip.catalog.models import Product
from catalog_roundtrip.catalog.protocols import RecordStore
from catalog_roundtrip.parsing.registry import BLACKLISTED_FIELDS, get_field_spec


def apply_changes(product: Product, changes: Mapping[str, Any], *, store: RecordStore) -> Product:
    """
    Write validated `changes` onto a copy of `product` and save it in one commit.

    Blacklisted and unregistered names are refused (logged, never written).
    The caller's `product` is left as is. Raises `StoreError` when the save fails.
    """
    updated = deepcopy(product)
    for name, value in changes.items():
        if name in BLACKLISTED_FIELDS:
            logger.warning(f"refusing to write blacklisted field {name!r} on product {product.id}")
            continue
        spec = get_field_spec(name)
        if spec is None:
            logger.warning(f"refusing to write unregistered field {name!r} on product {product.id}")
            continue
        spec.apply(updated, value)

    store.save(updated)
    return updated
