"""
Entries persistence.
This module is where entries-related SQL lives.

Every function takes the store handle explicitly (the asyncpg pool in
production, see `core.db.get_pool`).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from core import db
from core.db import Store


def _json_arg(value: Any) -> str:
    """
    asyncpg does not automatically encode Python values for json/jsonb parameters.
    We pass JSON as a string and cast to jsonb in SQL; a missing document is `{}`.
    """
    if value is None:
        return "{}"
    return json.dumps(value, ensure_ascii=False)


def _json_value(value: Any) -> Any:
    """
    jsonb columns come back from asyncpg as text unless a codec is registered.
    """
    if isinstance(value, str):
        return json.loads(value)
    return value


async def insert_entry(store: Store, entry: Mapping[str, Any]) -> int:
    """
    Insert one entry and return its id.

    `created_at` defaults to now (UTC) when the caller did not send one.
    """
    created_at = entry.get("created_at") or datetime.now(timezone.utc)
    row = await db.fetch_one(
        store,
        """
        INSERT INTO entries
          (client_name, client_address, environment, pressure, oil_type,
           min_barrels, max_barrels, test_duration, results, params, created_at)
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9::jsonb, $10::jsonb, $11)
        RETURNING id
        """,
        entry.get("client_name"),
        entry.get("client_address"),
        entry.get("environment"),
        entry.get("pressure"),
        entry.get("oil_type"),
        entry.get("min_barrels"),
        entry.get("max_barrels"),
        entry.get("test_duration"),
        _json_arg(entry.get("results")),
        _json_arg(entry.get("params")),
        created_at,
    )
    if row is None or "id" not in row:
        raise RuntimeError("Failed to insert entry.")
    return int(row["id"])


async def fetch_all_ordered_by_creation(store: Store) -> list[dict[str, Any]]:
    rows = await db.fetch_all(
        store,
        """
        SELECT id, client_name, client_address, environment, pressure, oil_type,
               min_barrels, max_barrels, test_duration, results, params, created_at
        FROM entries
        ORDER BY created_at ASC, id ASC
        """,
    )
    for row in rows:
        row["results"] = _json_value(row.get("results"))
        row["params"] = _json_value(row.get("params"))
    return rows


async def truncate_entries(store: Store) -> None:
    """
    Remove every entry and reset the id sequence.
    """
    await db.execute(store, "TRUNCATE entries RESTART IDENTITY")
