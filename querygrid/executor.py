"""SQLAlchemy-backed execution collaborator.

A session only needs an object with::

    execute(connection_id, sql, database=None) -> QueryResult
    resolve_dialect(connection_id) -> Dialect
    resolve_current_database(connection_id) -> str | None

and ``execute`` raising ExecutionError for any database-side failure.
SqlAlchemyExecutor provides that over one Engine per connection id.
"""

from __future__ import annotations

import base64
import datetime as dt
import time
from decimal import Decimal
from typing import Mapping

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from .dialects import Dialect, dialect_for_backend, escape_identifier
from .errors import ExecutionError, QueryGridError, best_exception_message, unwrap_dbapi_original
from .i18n import t
from .logs import LOGGER, sql_for_log
from .models import QueryResult, Value

MAX_ATTEMPTS = 3

RETRYABLE_ERROR_SIGNATURES = (
    # SQL Server deadlocks/serialization failures
    "1205",
    "40001",
    "deadlocked on lock",
    # PostgreSQL
    "deadlock detected",
    "could not serialize access due to",
    # MySQL
    "1213",
    "deadlock found when trying to get lock",
    "lock wait timeout exceeded",
)


def normalize_value(value) -> Value:
    """Map a driver value onto the grid's value types."""
    if value is None or isinstance(value, (bool, int, float, str, Decimal)):
        return value
    if isinstance(value, dt.datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(raw).decode("ascii")
    if isinstance(value, (dict, list)):
        return value
    return str(value)


def _is_retryable(message: str) -> bool:
    lowered = message.lower()
    return any(signature in lowered for signature in RETRYABLE_ERROR_SIGNATURES)


class SqlAlchemyExecutor:
    def __init__(self, engines: Mapping[str, Engine] | None = None, retry_wait_base: float = 2.0):
        self._engines: dict[str, Engine] = dict(engines or {})
        self._current_databases: dict[str, str | None] = {}
        self.retry_wait_base = retry_wait_base

    def add_connection(self, connection_id: str, engine: Engine | str, **engine_kwargs) -> None:
        if isinstance(engine, str):
            engine = create_engine(engine, **engine_kwargs)
        self._engines[connection_id] = engine

    def engine(self, connection_id: str) -> Engine:
        try:
            return self._engines[connection_id]
        except KeyError:
            raise QueryGridError(t("ERR_UNKNOWN_CONNECTION", name=connection_id)) from None

    def dispose(self) -> None:
        for engine in self._engines.values():
            engine.dispose()

    def resolve_dialect(self, connection_id: str) -> Dialect:
        return dialect_for_backend(self.engine(connection_id).dialect.name)

    def set_current_database(self, connection_id: str, database: str | None) -> None:
        self._current_databases[connection_id] = database or None

    def resolve_current_database(self, connection_id: str) -> str | None:
        if connection_id in self._current_databases:
            return self._current_databases[connection_id]
        engine = self.engine(connection_id)
        if engine.dialect.name == "sqlite":
            return None
        return engine.url.database or None

    def _use_database(self, connection, connection_id: str, database: str | None) -> None:
        if not database:
            return
        dialect = self.resolve_dialect(connection_id)
        if dialect in (Dialect.BACKTICK, Dialect.BRACKET):
            connection.exec_driver_sql(f"USE {escape_identifier(database, dialect)}")
        # PostgreSQL binds the database to the connection URL; SQLite has none.

    def _execute_once(self, connection_id: str, sql: str, database: str | None) -> QueryResult:
        with self.engine(connection_id).begin() as connection:
            self._use_database(connection, connection_id, database)
            result = connection.exec_driver_sql(sql, execution_options={"no_parameters": True})
            if result.returns_rows:
                columns = list(result.keys())
                rows = [tuple(normalize_value(v) for v in row) for row in result.fetchall()]
                return QueryResult(columns=columns, rows=rows)
            return QueryResult(columns=("affected_rows",), rows=((max(result.rowcount, 0),),))

    def execute(self, connection_id: str, sql: str, database: str | None = None) -> QueryResult:
        label, logged_sql = sql_for_log(sql)
        LOGGER.info("Executing SQL (%s) on %s: %s", label, connection_id, logged_sql)

        for attempt in range(1, MAX_ATTEMPTS + 1):
            start = time.perf_counter()
            try:
                result = self._execute_once(connection_id, sql, database)
            except DBAPIError as exc:
                message = best_exception_message(unwrap_dbapi_original(exc))
                if _is_retryable(message) and attempt < MAX_ATTEMPTS:
                    wait_seconds = self.retry_wait_base ** attempt
                    LOGGER.warning(
                        "Deadlock-like error while executing SQL (attempt %s/%s, waiting %s s): %s",
                        attempt,
                        MAX_ATTEMPTS,
                        wait_seconds,
                        message,
                    )
                    time.sleep(wait_seconds)
                    continue
                LOGGER.warning("SQL execution failed (%s): %s | %s", label, message, logged_sql)
                raise ExecutionError(message, sql) from exc
            except SQLAlchemyError as exc:
                message = best_exception_message(exc)
                LOGGER.exception("SQLAlchemy error while executing SQL (%s): %s", label, logged_sql)
                raise ExecutionError(message, sql) from exc
            LOGGER.info(
                "SQL finished in %.3f s (%d row(s))",
                time.perf_counter() - start,
                result.row_count,
            )
            return result
        raise ExecutionError("retry limit reached", sql)
