"""
Render typed field values back into their cell form.

Used both by the change detector (comparing against incoming cells) and by the
exporter, so an unmodified export re-imports as "no change".
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Callable, Sequence

from catalog_roundtrip.catalog.models import ProductAttribute
from catalog_roundtrip.catalog.protocols import TaxonomyRepository

Renderer = Callable[[Any, TaxonomyRepository], str]


def render_text(v: Any, taxonomy: TaxonomyRepository) -> str:
    if v is None:
        return ""
    return str(v)


def render_yes_no(v: Any, taxonomy: TaxonomyRepository) -> str:
    return "yes" if v else "no"


def render_date(v: date | None, taxonomy: TaxonomyRepository) -> str:
    return v.isoformat() if v is not None else ""


def render_ids(v: Sequence[int], taxonomy: TaxonomyRepository) -> str:
    return "|".join(str(i) for i in v)


def term_names_renderer(taxonomy_name: str) -> Renderer:
    """Renderer for a list of term ids: pipe-joined term names (unknown ids are left out)."""
    def _render(v: Sequence[int], taxonomy: TaxonomyRepository) -> str:
        names: list[str] = []
        for term_id in v:
            term = taxonomy.get_term(taxonomy_name, term_id)
            if term is not None:
                names.append(term.name)
        return "|".join(names)
    return _render


def render_attributes(v: Sequence[ProductAttribute], taxonomy: TaxonomyRepository) -> str:
    """`{"Color": "Red|Blue", ...}` in position order, `""` when there are none."""
    if not v:
        return ""
    data = {a.name: "|".join(a.options) for a in sorted(v, key=lambda a: a.position)}
    return json.dumps(data, ensure_ascii=False)
