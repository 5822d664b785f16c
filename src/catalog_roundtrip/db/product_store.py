"""Postgres-backed record store and taxonomy (schema in `sql/000_init.sql`)."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping

import psycopg
from psycopg import Connection, sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from catalog_roundtrip.catalog.models import (
    CATEGORY_TAXONOMY,
    TAG_TAXONOMY,
    Product,
    ProductAttribute,
    Term,
)
from catalog_roundtrip.core.errors import StoreError
from catalog_roundtrip.parsing.primitives import slugify

# scalar columns, same names as the `Product` fields.
_PRODUCT_COLUMNS: tuple[str, ...] = (
    "id", "type", "parent_id", "name", "sku", "slug", "status",
    "description", "short_description", "regular_price", "sale_price",
    "sale_date_from", "sale_date_to", "tax_status", "tax_class",
    "stock_status", "stock_quantity", "manage_stock", "backorders", "low_stock_amount",
    "weight", "length", "width", "height", "attributes", "menu_order",
    "virtual", "downloadable", "purchase_note", "catalog_visibility",
    "featured", "sold_individually", "upsell_ids", "cross_sell_ids",
    "image_id", "gallery_image_ids",
)

# never written back by `save`.
_IMMUTABLE_COLUMNS = {"id", "type", "parent_id"}

_TERM_TAXONOMIES = {"category_ids": CATEGORY_TAXONOMY, "tag_ids": TAG_TAXONOMY}

_SELECT_PRODUCT = sql.SQL("SELECT {cols} FROM products WHERE NOT trashed").format(
    cols=sql.SQL(", ").join(sql.Identifier(c) for c in _PRODUCT_COLUMNS),
)

_UPDATE_PRODUCT = sql.SQL("UPDATE products SET {assignments} WHERE id = %s AND NOT trashed").format(
    assignments=sql.SQL(", ").join(
        sql.SQL("{} = %s").format(sql.Identifier(c))
        for c in _PRODUCT_COLUMNS
        if c not in _IMMUTABLE_COLUMNS
    ),
)

_INSERT_PRODUCT = sql.SQL("INSERT INTO products ({cols}) VALUES ({values}) RETURNING id").format(
    cols=sql.SQL(", ").join(sql.Identifier(c) for c in _PRODUCT_COLUMNS if c != "id"),
    values=sql.SQL(", ").join(sql.Placeholder() for c in _PRODUCT_COLUMNS if c != "id"),
)


def _attributes_from_json(data: Any) -> list[ProductAttribute]:
    out: list[ProductAttribute] = []
    for a in data or []:
        out.append(ProductAttribute(
            name=a["name"],
            options=tuple(a.get("options", ())),
            taxonomy=a.get("taxonomy"),
            position=int(a.get("position", 0)),
            visible=bool(a.get("visible", True)),
            variation=bool(a.get("variation", False)),
        ))
    return out


def _attributes_to_json(attributes: list[ProductAttribute]) -> Jsonb:
    return Jsonb([
        {
            "name": a.name,
            "options": list(a.options),
            "taxonomy": a.taxonomy,
            "position": a.position,
            "visible": a.visible,
            "variation": a.variation,
        }
        for a in attributes
    ])


@contextmanager
def _store_errors(conn: Connection, product_id: int | None = None) -> Iterator[None]:
    """Roll back and raise `StoreError` on any Postgres error inside the block."""
    try:
        yield
    except psycopg.Error as e:
        conn.rollback()
        raise StoreError(product_id, str(e).strip()) from e


def _adapt(col: str, value: Any) -> Any:
    """Adapt python values to DB types (e.g., `jsonb`, `bigint[]`)."""
    if col == "attributes":
        return _attributes_to_json(value)
    if col in {"upsell_ids", "cross_sell_ids", "gallery_image_ids"}:
        return list(value)
    return value


class PostgresProductStore:
    """
    `RecordStore` over the `products` table.

    `locked` rows can't be edited. `save` and `create` write the product row
    and its term links in one transaction. Any Postgres error, on reads too,
    rolls back and surfaces as `StoreError`.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def _term_ids(self, product_id: int, taxonomy: str) -> list[int]:
        rows = self.conn.execute(
            """
            SELECT pt.term_id
            FROM product_terms pt
            JOIN terms t ON t.term_id = pt.term_id
            WHERE pt.product_id = %s AND t.taxonomy = %s
            ORDER BY pt.position, pt.term_id
            """,
            (product_id, taxonomy),
        ).fetchall()
        return [r[0] for r in rows]

    def _to_product(self, row: Mapping[str, Any]) -> Product:
        values = dict(row)
        values["attributes"] = _attributes_from_json(values["attributes"])
        for key in ("upsell_ids", "cross_sell_ids", "gallery_image_ids"):
            values[key] = list(values[key] or [])
        for key, taxonomy in _TERM_TAXONOMIES.items():
            values[key] = self._term_ids(values["id"], taxonomy)
        return Product(**values)

    def _link_terms(self, cur: psycopg.Cursor, product: Product, product_id: int) -> None:
        cur.execute(
            """
            DELETE FROM product_terms pt
            USING terms t
            WHERE t.term_id = pt.term_id AND pt.product_id = %s AND t.taxonomy = ANY(%s)
            """,
            (product_id, list(_TERM_TAXONOMIES.values())),
        )
        links = [
            (product_id, term_id, position)
            for key in _TERM_TAXONOMIES
            for position, term_id in enumerate(getattr(product, key))
        ]
        if links:
            cur.executemany(
                "INSERT INTO product_terms (product_id, term_id, position) VALUES (%s, %s, %s)",
                links,
            )

    def get_product(self, product_id: int) -> Product | None:
        with _store_errors(self.conn, product_id):
            with self.conn.cursor(row_factory=dict_row) as cur:
                row = cur.execute(_SELECT_PRODUCT + sql.SQL(" AND id = %s"), (product_id,)).fetchone()
            return self._to_product(row) if row is not None else None

    def is_trashed(self, product_id: int) -> bool:
        with _store_errors(self.conn, product_id):
            row = self.conn.execute("SELECT trashed FROM products WHERE id = %s", (product_id,)).fetchone()
        return bool(row and row[0])

    def find_id_by_sku(self, sku: str) -> int | None:
        with _store_errors(self.conn):
            row = self.conn.execute(
                "SELECT id FROM products WHERE sku = %s AND sku <> '' ORDER BY id LIMIT 1",
                (sku,),
            ).fetchone()
        return row[0] if row else None

    def find_id_by_slug(self, slug: str) -> int | None:
        with _store_errors(self.conn):
            row = self.conn.execute(
                "SELECT id FROM products WHERE slug = %s AND slug <> '' ORDER BY id LIMIT 1",
                (slug,),
            ).fetchone()
        return row[0] if row else None

    def can_edit(self, product_id: int) -> bool:
        with _store_errors(self.conn, product_id):
            row = self.conn.execute("SELECT locked FROM products WHERE id = %s", (product_id,)).fetchone()
        return row is not None and not row[0]

    def list_tax_classes(self) -> list[str]:
        with _store_errors(self.conn):
            rows = self.conn.execute("SELECT name FROM tax_classes ORDER BY name").fetchall()
        return [r[0] for r in rows]

    def iter_products(self) -> Iterator[Product]:
        with _store_errors(self.conn):
            with self.conn.cursor(row_factory=dict_row) as cur:
                rows = cur.execute(_SELECT_PRODUCT + sql.SQL(" ORDER BY id")).fetchall()
            products = [self._to_product(row) for row in rows]
        yield from products

    def save(self, product: Product) -> None:
        params = [
            _adapt(c, getattr(product, c))
            for c in _PRODUCT_COLUMNS
            if c not in _IMMUTABLE_COLUMNS
        ]
        try:
            with _store_errors(self.conn, product.id):
                with self.conn.cursor() as cur:
                    cur.execute(_UPDATE_PRODUCT, (*params, product.id))
                    if cur.rowcount != 1:
                        raise StoreError(product.id, "no such product")
                    self._link_terms(cur, product, product.id)
                self.conn.commit()
        except StoreError:
            self.conn.rollback()
            raise

    def create(self, product: Product) -> int:
        """Insert `product` (its `id` is ignored) and return the id it was given."""
        params = [_adapt(c, getattr(product, c)) for c in _PRODUCT_COLUMNS if c != "id"]
        with _store_errors(self.conn):
            with self.conn.cursor() as cur:
                (new_id,) = cur.execute(_INSERT_PRODUCT, params).fetchone()
                self._link_terms(cur, product, new_id)
            self.conn.commit()
        return new_id


class PostgresTaxonomy:
    """`TaxonomyRepository` over the `terms` and `attribute_taxonomies` tables."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def _one_term(self, query: str, params: tuple[Any, ...]) -> Term | None:
        with _store_errors(self.conn):
            row = self.conn.execute(query, params).fetchone()
        return Term(term_id=row[0], name=row[1], slug=row[2]) if row else None

    def get_term_by_name(self, taxonomy: str, name: str) -> Term | None:
        return self._one_term(
            "SELECT term_id, name, slug FROM terms WHERE taxonomy = %s AND name = %s ORDER BY term_id LIMIT 1",
            (taxonomy, name),
        )

    def get_term_by_slug(self, taxonomy: str, slug: str) -> Term | None:
        return self._one_term(
            "SELECT term_id, name, slug FROM terms WHERE taxonomy = %s AND slug = %s",
            (taxonomy, slug),
        )

    def get_term(self, taxonomy: str, term_id: int) -> Term | None:
        return self._one_term(
            "SELECT term_id, name, slug FROM terms WHERE taxonomy = %s AND term_id = %s",
            (taxonomy, term_id),
        )

    def ensure_term(self, taxonomy: str, name: str, slug: str) -> Term:
        """The term with `slug` in `taxonomy`, inserted under `name` if missing."""
        with _store_errors(self.conn):
            row = self.conn.execute(
                """
                INSERT INTO terms (taxonomy, name, slug) VALUES (%s, %s, %s)
                ON CONFLICT (taxonomy, slug) DO UPDATE SET slug = EXCLUDED.slug
                RETURNING term_id, name, slug
                """,
                (taxonomy, name, slug),
            ).fetchone()
            self.conn.commit()
        return Term(term_id=row[0], name=row[1], slug=row[2])

    def get_attribute_taxonomy(self, name: str) -> str | None:
        with _store_errors(self.conn):
            row = self.conn.execute(
                """
                SELECT taxonomy FROM attribute_taxonomies
                WHERE lower(label) = lower(%s) OR taxonomy = %s
                ORDER BY taxonomy
                LIMIT 1
                """,
                (name.strip(), f"pa_{slugify(name)}"),
            ).fetchone()
        return row[0] if row else None

    def list_attribute_taxonomies(self) -> dict[str, str]:
        with _store_errors(self.conn):
            rows = self.conn.execute("SELECT label, taxonomy FROM attribute_taxonomies ORDER BY label").fetchall()
        return {label: taxonomy for label, taxonomy in rows}
