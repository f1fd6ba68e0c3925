"""
Entry request models and the row type handed to the dump exporter.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class EntryCreate(BaseModel):
    """
    Partial entry as posted by the frontend.

    Everything is optional and passed to the store as sent; the table is
    what rejects a missing `client_name` or a non-integer `pressure`.
    """

    model_config = ConfigDict(extra="ignore")

    client_name: str | None = None
    client_address: str | None = None
    environment: str | None = None
    pressure: Any = None
    oil_type: str | None = None
    min_barrels: Any = None
    max_barrels: Any = None
    test_duration: Any = None
    results: Any = None
    params: Any = None
    created_at: datetime | None = None


def _as_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class EntryRecord:
    id: int
    client_name: str | None
    client_address: str | None = None
    environment: str | None = None
    pressure: int | None = None
    oil_type: str | None = None
    min_barrels: int | None = None
    max_barrels: int | None = None
    test_duration: int | None = None
    results: Any = None
    params: Any = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EntryRecord":
        return cls(
            id=int(row["id"]),
            client_name=row.get("client_name"),
            client_address=row.get("client_address"),
            environment=row.get("environment"),
            pressure=row.get("pressure"),
            oil_type=row.get("oil_type"),
            min_barrels=row.get("min_barrels"),
            max_barrels=row.get("max_barrels"),
            test_duration=row.get("test_duration"),
            results=row.get("results"),
            params=row.get("params"),
            created_at=_as_datetime(row.get("created_at")),
        )
