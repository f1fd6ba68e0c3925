"""
SQL dump rendering for the `entries` table.

Turns an ordered list of entries into a standalone script that recreates the
table and re-inserts every row, for PostgreSQL or MySQL. Pure text building:
fetching rows is the caller's job.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .schemas import EntryRecord

TOOL_NAME = "Sistema de Inventariado Inteligente"
TABLE_NAME = "entries"

INSERT_COLUMNS = (
    "client_name",
    "client_address",
    "environment",
    "pressure",
    "oil_type",
    "min_barrels",
    "max_barrels",
    "test_duration",
    "results",
    "params",
    "created_at",
)


class DumpError(Exception):
    """Base class for export failures."""


class NoRecordsError(DumpError):
    """The table is empty, there is nothing to export."""


class SerializationError(DumpError):
    """A structured document could not be converted to JSON text."""


@dataclass(frozen=True)
class DialectSyntax:
    column_types: tuple[tuple[str, str], ...]
    # Cast appended to JSON literals, None when the column type is enough.
    document_cast: str | None
    table_options: str = ""


class Dialect(str, Enum):
    POSTGRES = "postgres"
    MYSQL = "mysql"

    @classmethod
    def parse(cls, value: str | None) -> "Dialect":
        """
        Case-insensitive lookup; anything unrecognized means PostgreSQL.
        """
        raw = (value or "").strip().lower()
        for dialect in cls:
            if dialect.value == raw:
                return dialect
        return cls.POSTGRES

    @property
    def syntax(self) -> DialectSyntax:
        return _SYNTAX[self]


_SYNTAX: dict[Dialect, DialectSyntax] = {
    Dialect.POSTGRES: DialectSyntax(
        column_types=(
            ("id", "SERIAL PRIMARY KEY"),
            ("client_name", "TEXT NOT NULL"),
            ("client_address", "TEXT"),
            ("environment", "TEXT"),
            ("pressure", "INTEGER"),
            ("oil_type", "TEXT"),
            ("min_barrels", "INTEGER"),
            ("max_barrels", "INTEGER"),
            ("test_duration", "INTEGER"),
            ("results", "JSONB NOT NULL"),
            ("params", "JSONB NOT NULL"),
            ("created_at", "TIMESTAMPTZ DEFAULT now()"),
        ),
        document_cast="jsonb",
    ),
    Dialect.MYSQL: DialectSyntax(
        column_types=(
            ("id", "INT AUTO_INCREMENT PRIMARY KEY"),
            ("client_name", "TEXT NOT NULL"),
            ("client_address", "TEXT"),
            ("environment", "VARCHAR(64)"),
            ("pressure", "INT"),
            ("oil_type", "VARCHAR(64)"),
            ("min_barrels", "INT"),
            ("max_barrels", "INT"),
            ("test_duration", "INT"),
            ("results", "JSON"),
            ("params", "JSON"),
            ("created_at", "TIMESTAMP DEFAULT CURRENT_TIMESTAMP"),
        ),
        document_cast=None,
        table_options=" ENGINE=InnoDB DEFAULT CHARSET=utf8mb4",
    ),
}


def escape_literal(value: str) -> str:
    """
    Escape text for a single-quoted SQL literal.

    Backslashes are doubled before quotes; the other order would double the
    backslashes produced for quotes.
    """
    return value.replace("\\", "\\\\").replace("'", "''")


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return _utc(value).isoformat(timespec="milliseconds")


def _text(value: str | None) -> str:
    return "'" + escape_literal("" if value is None else str(value)) + "'"


def _number(value: int | None) -> str:
    return "NULL" if value is None else str(value)


def _document(value: Any, cast: str | None) -> str:
    if value is None:
        text = "{}"
    else:
        try:
            text = json.dumps(value, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Cannot serialize document: {exc}") from exc
    literal = "'" + escape_literal(text) + "'"
    return f"{literal}::{cast}" if cast else literal


def _create_table(syntax: DialectSyntax) -> str:
    columns = ",\n".join(f"  {name} {sql_type}" for name, sql_type in syntax.column_types)
    return f"\nCREATE TABLE IF NOT EXISTS {TABLE_NAME} (\n{columns}\n){syntax.table_options};\n\n"


def _insert_statement(record: EntryRecord, syntax: DialectSyntax, now: datetime) -> str:
    values = [
        _text(record.client_name),
        _text(record.client_address),
        _text(record.environment),
        _number(record.pressure),
        _text(record.oil_type),
        _number(record.min_barrels),
        _number(record.max_barrels),
        _number(record.test_duration),
        _document(record.results, syntax.document_cast),
        _document(record.params, syntax.document_cast),
        "'" + format_timestamp(record.created_at or now) + "'",
    ]
    return (
        f"INSERT INTO {TABLE_NAME} ({', '.join(INSERT_COLUMNS)})\n"
        f"VALUES ({', '.join(values)});\n"
    )


def render_dump(
    records: Sequence[EntryRecord],
    dialect: Dialect,
    *,
    now: datetime | None = None,
) -> str:
    """
    Render the full dump: header comment, CREATE TABLE, one INSERT per record.

    Records are emitted in the order given. Raises `NoRecordsError` for an
    empty sequence and `SerializationError` when a document is not JSON
    serializable; nothing is returned in either case.
    """
    if not records:
        raise NoRecordsError("No records to export.")

    now = _utc(now or datetime.now(timezone.utc))
    syntax = dialect.syntax
    inserts = [_insert_statement(record, syntax, now) for record in records]

    header = f"-- Export generated by {TOOL_NAME}\n-- Date: {format_timestamp(now)}\n\n"
    return header + _create_table(syntax) + "\n".join(inserts)


def backup_filename(dialect: Dialect, now: datetime) -> str:
    return f"inventario_backup_{dialect.value}_{_utc(now).date().isoformat()}.sql"
