"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`). Routes never touch the pool global
directly: they receive it through the `get_pool` dependency and hand it to
repository functions, so tests can swap in a fake store.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging
import os
from typing import Any, Protocol
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

import asyncpg

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


class Store(Protocol):
    """
    The subset of `asyncpg.Pool` the repositories rely on.
    """

    async def fetch(self, query: str, *args: Any) -> list[Any]: ...

    async def fetchrow(self, query: str, *args: Any) -> Any: ...

    async def execute(self, query: str, *args: Any) -> str: ...


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _url_from_pg_env() -> str:
    host = os.environ.get("PGHOST", "").strip() or "localhost"
    port = os.environ.get("PGPORT", "").strip() or "5432"
    user = os.environ.get("PGUSER", "").strip() or "postgres"
    password = os.environ.get("PGPASSWORD", "")
    database = os.environ.get("PGDATABASE", "").strip() or "postgres"

    auth = quote(user, safe="")
    if password:
        auth += ":" + quote(password, safe="")
    return f"postgresql://{auth}@{host}:{int(port)}/{database}"


def database_url() -> str:
    """
    DATABASE_URL when set, otherwise a DSN built from the libpq PG* variables.
    """
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        return _url_from_pg_env()
    return _sanitize_database_url(url)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=1,
        max_size=10,
        command_timeout=30,
    )
    logger.info("db_pool_ready max_size=%s", 10)


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


async def get_pool() -> Store:
    """
    FastAPI dependency yielding the store handle for a request.
    """
    return pool()


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(store: Store, sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await store.fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(store: Store, sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await store.fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def execute(store: Store, sql: str, *args: Any) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    await store.execute(sql, *args)
