from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import DateTime, Integer, Select, String, Text, bindparam, column, select, table
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import ConfigurationError, QueryError

logger = logging.getLogger(__name__)

__all__ = [
    "CUTOFF_FORMAT",
    "Row",
    "ExportRequest",
    "validate_identifier",
    "format_cutoff",
    "build_query",
    "load_rows",
    "fetch_rows",
]

CUTOFF_FORMAT = "%Y-%m-%d %H:%M:%S"
CUTOFF_FORMAT_FRACTIONAL = "%Y-%m-%d %H:%M:%S.%f"
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_$]*")


@dataclass(frozen=True)
class Row:
    id: int
    text: str
    last_update: datetime


@dataclass(frozen=True)
class ExportRequest:
    """
    Which table and columns to read, and the optional last-pollified cutoff.
    """

    table_name: str
    id_column: str
    last_updated_column: str
    text_column: str
    last_pollified: Optional[datetime] = None

    def __post_init__(self) -> None:
        validate_identifier(self.table_name, kind="table", allow_schema=True)
        validate_identifier(self.id_column, kind="id column")
        validate_identifier(self.last_updated_column, kind="last updated column")
        validate_identifier(self.text_column, kind="text column")


def validate_identifier(name: str, *, kind: str, allow_schema: bool = False) -> str:
    """
    Reject anything that is not a plain SQL identifier.

    Table names may carry a single ``schema.`` qualifier when ``allow_schema`` is set.
    """
    parts = name.split(".") if allow_schema else [name]
    if len(parts) > 2 or not all(IDENTIFIER_PATTERN.fullmatch(part) for part in parts):
        raise ConfigurationError(f"Invalid {kind} name: {name!r}", details={kind: name})
    return name


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_cutoff(cutoff: datetime) -> str:
    cutoff = ensure_utc(cutoff)
    if cutoff.microsecond:
        return cutoff.strftime(CUTOFF_FORMAT_FRACTIONAL)
    return cutoff.strftime(CUTOFF_FORMAT)


def build_query(request: ExportRequest) -> Select:
    schema, _, name = request.table_name.rpartition(".")
    source = table(
        name,
        column(request.id_column, Integer()),
        column(request.last_updated_column, DateTime()),
        column(request.text_column, Text()),
        schema=schema or None,
    )
    query = select(
        source.c[request.id_column].label("id"),
        source.c[request.last_updated_column].label("last_update"),
        source.c[request.text_column].label("text"),
    )
    if request.last_pollified is not None:
        cutoff = bindparam("cutoff", format_cutoff(request.last_pollified), type_=String())
        query = query.where(source.c[request.last_updated_column] > cutoff)
    return query


def load_rows(connection: Connection, request: ExportRequest) -> List[Row]:
    query = build_query(request)
    if request.last_pollified is None:
        logger.info("Loading all rows from %s", request.table_name)
    else:
        logger.info(
            "Loading rows from %s updated after %s",
            request.table_name,
            format_cutoff(request.last_pollified),
        )

    try:
        result = connection.execute(query)
        records = result.mappings().all()
    except (SQLAlchemyError, ValueError) as exc:
        # ValueError covers values the column types cannot parse.
        raise QueryError(
            f"Query against {request.table_name} failed: {exc}",
            details={"table": request.table_name},
        ) from exc

    rows = [_decode_row(record) for record in records]
    logger.info("Loaded %d rows from %s", len(rows), request.table_name)
    return rows


def _decode_row(record: Any) -> Row:
    row_id = record["id"]
    text = record["text"]
    last_update = record["last_update"]

    if isinstance(row_id, bool) or not isinstance(row_id, int) or row_id < 0:
        raise QueryError(f"Row id {row_id!r} is not an unsigned integer.")
    if not isinstance(text, str):
        raise QueryError(f"Row {row_id} has non-text content: {text!r}")
    if not isinstance(last_update, datetime):
        raise QueryError(f"Row {row_id} has an invalid last update value: {last_update!r}")

    return Row(id=row_id, text=text, last_update=ensure_utc(last_update))


def fetch_rows(engine: Engine, request: ExportRequest) -> List[Row]:
    """
    Open a connection on ``engine``, load the requested rows and close it again.
    """
    try:
        connection = engine.connect()
    except SQLAlchemyError as exc:
        raise QueryError(f"Could not connect to the database: {exc}") from exc
    with connection:
        return load_rows(connection, request)
