"""
Pytest configuration for the entries API.

Provides fixtures for:
- A fake store standing in for the asyncpg pool
- Sample entry rows as the repository returns them
- A TestClient wired to the fake store
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

from core.db import get_pool


class FakeStore:
    """
    In-memory stand-in for `asyncpg.Pool` that records every statement.
    """

    def __init__(self, rows: list[dict[str, Any]] | None = None, *, error: Exception | None = None):
        self.rows = list(rows or [])
        self.error = error
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []
        self.next_id = 1

    def _record(self, method: str, query: str, args: tuple[Any, ...]) -> None:
        self.calls.append((method, query, args))
        if self.error is not None:
            raise self.error

    async def fetch(self, query: str, *args: Any) -> list[dict[str, Any]]:
        self._record("fetch", query, args)
        return [dict(row) for row in self.rows]

    async def fetchrow(self, query: str, *args: Any) -> dict[str, Any] | None:
        self._record("fetchrow", query, args)
        row = {"id": self.next_id}
        self.next_id += 1
        return row

    async def execute(self, query: str, *args: Any) -> str:
        self._record("execute", query, args)
        if query.lstrip().upper().startswith("TRUNCATE"):
            self.rows.clear()
            self.next_id = 1
        return "OK"


def make_row(entry_id: int, **overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": entry_id,
        "client_name": f"Client {entry_id}",
        "client_address": "Av. Siempre Viva 742",
        "environment": "offshore",
        "pressure": 120,
        "oil_type": "crude",
        "min_barrels": 10,
        "max_barrels": 50,
        "test_duration": 30,
        "results": {"ok": True},
        "params": {"runs": 3},
        "created_at": datetime(2024, 5, entry_id, 12, 0, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return row


@pytest.fixture()
def sample_rows() -> list[dict[str, Any]]:
    return [make_row(1), make_row(2), make_row(3)]


@pytest.fixture()
def store(sample_rows: list[dict[str, Any]]) -> FakeStore:
    return FakeStore(sample_rows)


@pytest.fixture()
def client(store: FakeStore) -> Iterator[TestClient]:
    """
    TestClient without the lifespan context, so no real pool is created.
    """
    from main import app

    app.dependency_overrides[get_pool] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
