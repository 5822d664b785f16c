from __future__ import annotations

from pathlib import Path

import psycopg
from loguru import logger

from catalog_roundtrip.db.connect import connect


def _run_sql_file(conn: psycopg.Connection, sql_path: Path) -> None:
    """Read and execute a `.sql` file, one statement at a time."""
    text = sql_path.read_text(encoding="utf-8")

    # split on semicolons so a failure can name the statement that broke.
    statements = [s.strip() for s in text.split(";") if s.strip()]

    with conn.cursor() as cur:
        for i, stmt in enumerate(statements, 1):
            try:
                cur.execute(stmt)
            except psycopg.Error as e:
                raise RuntimeError(
                    f"DB init failed in {sql_path} on statement #{i}\n"
                    f"Postgres raised with: {e}\n"
                    f"--- statement ---\n{stmt}\n--- end ---\n"
                ) from e
    conn.commit()
    logger.info(f"applied {len(statements)} statements from {sql_path}")


def sql_files(sql_path: Path) -> list[Path]:
    """`*.sql` files of a directory in ASC order, or just the one file."""
    if sql_path.is_dir():
        return sorted(sql_path.glob("*.sql"))
    return [sql_path]


def db_init(*, sql_path: Path, database_url: str | None = None) -> list[Path]:
    """
    Initialize (or re-initialize) the catalog schema from `sql_path`.

    Returns the files that were run.
    """
    files = sql_files(sql_path)
    with connect(database_url) as conn:
        for p in files:
            _run_sql_file(conn, p)
    return files
