from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection

from catalog_roundtrip.core.config import get_database_url


def connect(database_url: Optional[str] = None) -> Connection:
    """
    Return a psycopg connection.

    - Uses `CATALOG_DSN` (or its default) when no URL is given.
    - Leaves autocommit OFF (commits are explicit in the store).
    """
    url = database_url or get_database_url()
    return psycopg.connect(url)
