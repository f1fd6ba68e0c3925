"""
Entries "service layer".

Glue between the router and the repository: inserting, clearing and
exporting entries. No FastAPI types here; errors are raised as the
exceptions from `entries.dump` and translated to HTTP by the router.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from core.db import Store

from . import dump, repository
from .dump import Dialect
from .schemas import EntryCreate, EntryRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DumpExport:
    dialect: Dialect
    filename: str
    content: str
    count: int


async def create_entry(store: Store, payload: EntryCreate) -> int:
    entry_id = await repository.insert_entry(store, payload.model_dump())
    logger.info("entry_inserted id=%s", entry_id)
    return entry_id


async def clear_entries(store: Store) -> None:
    await repository.truncate_entries(store)
    logger.info("entries_truncated")


async def export_entries(
    store: Store,
    dialect: Dialect,
    *,
    now: datetime | None = None,
) -> DumpExport:
    """
    Fetch every entry (oldest first) and render it as a SQL dump.

    The same instant stamps the dump header and the filename.
    """
    now = now or datetime.now(timezone.utc)
    rows = await repository.fetch_all_ordered_by_creation(store)
    records = [EntryRecord.from_row(row) for row in rows]

    content = dump.render_dump(records, dialect, now=now)
    filename = dump.backup_filename(dialect, now)
    logger.info("entries_exported dialect=%s count=%s", dialect.value, len(records))
    return DumpExport(dialect=dialect, filename=filename, content=content, count=len(records))
