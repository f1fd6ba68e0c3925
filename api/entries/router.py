"""
FastAPI router for entries endpoints.
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from core.db import Store, get_pool

from . import service
from .dump import Dialect, NoRecordsError, SerializationError
from .schemas import EntryCreate

logger = logging.getLogger(__name__)

router = APIRouter()

# Store failures are reported as a bare 500, details only go to the log.
# InterfaceError covers asyncpg rejecting a badly typed argument (DataError).
_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


@router.post("/api/entries", status_code=status.HTTP_201_CREATED)
async def create_entry(
    payload: EntryCreate,
    store: Store = Depends(get_pool),
) -> dict:
    try:
        entry_id = await service.create_entry(store, payload)
    except _STORE_ERRORS as exc:
        logger.exception("entry_insert_failed")
        raise HTTPException(status_code=500, detail="Failed to insert entry.") from exc
    return {"ok": True, "id": entry_id}


@router.get("/api/entries/export")
async def export_entries(
    dialect: str | None = Query(default=None, alias="type", max_length=32),
    store: Store = Depends(get_pool),
) -> Response:
    """
    Download every entry as a SQL script (`?type=postgres` or `?type=mysql`).

    Unknown types fall back to postgres.
    """
    try:
        export = await service.export_entries(store, Dialect.parse(dialect))
    except NoRecordsError as exc:
        raise HTTPException(status_code=404, detail="No records to export.") from exc
    except SerializationError as exc:
        logger.exception("entries_export_failed")
        raise HTTPException(status_code=500, detail="Failed to generate export.") from exc
    except _STORE_ERRORS as exc:
        logger.exception("entries_export_failed")
        raise HTTPException(status_code=500, detail="Failed to generate export.") from exc

    return Response(
        content=export.content,
        media_type="text/sql",
        headers={"Content-Disposition": f"attachment; filename={export.filename}"},
    )


@router.delete("/api/entries")
async def clear_entries(store: Store = Depends(get_pool)) -> dict:
    """
    Empty the entries table (TRUNCATE ... RESTART IDENTITY).
    """
    try:
        await service.clear_entries(store)
    except _STORE_ERRORS as exc:
        logger.exception("entries_truncate_failed")
        raise HTTPException(status_code=500, detail="Failed to truncate entries.") from exc
    return {"ok": True, "message": "Table entries truncated."}
