"""
D1 database client.

This module provides:
1. The `D1Client` class that runs the prepare → send → translate → populate
   pipeline against the Cloudflare D1 REST API
2. Result accessors over the most recent execution
3. Query timing and logging through the `dumpsql` decorator

The D1Client exposes methods like:
- query(statement) - Execute and return a count, True, or rows read
- get_var(sql, *args) - Single value
- get_row(sql, *args) - Single row
- get_col(sql, *args) - Single column
- get_results(sql, *args) - Full result set
- insert/replace/update/delete(table, ...) - CRUD helpers
"""
import logging
import os
import threading
import time
import traceback
from collections.abc import Callable, Mapping
from functools import wraps
from typing import Any, Self, TypeVar

import pandas as pd
from d1db import results
from d1db.columns import Column, describe
from d1db.exceptions import ERROR_CLASSES, ErrorKind, TransportError
from d1db.options import D1Options
from d1db.response import ApiError, MalformedResponse, ReturnShape
from d1db.response import classify_return_shape, translate
from d1db.results import OBJECT, Output
from d1db.sql import PreparedStatement, build_delete, build_insert
from d1db.sql import build_update, interpolate, prepare
from d1db.state import QueryLogEntry, SessionState
from d1db.transport import Transport

from libb import attrdict

__all__ = [
    'D1Client',
    'dumpsql',
    'get_caller',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')
Query = PreparedStatement | str | None

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


def get_caller() -> str:
    """Location of the first stack frame outside this package."""
    for frame in reversed(traceback.extract_stack()):
        if not os.path.abspath(frame.filename).startswith(_PACKAGE_DIR):
            return f'{os.path.basename(frame.filename)}:{frame.lineno} in {frame.name}'
    return ''


def dumpsql(func: Callable[..., T]) -> Callable[..., T]:
    """Decorator for logging and timing each remote execution.

    The attempt is counted and logged whether it succeeds or raises.
    """
    @wraps(func)
    def wrapper(self: 'D1Client', statement: PreparedStatement) -> T:
        start = time.time()
        logger.debug(f'SQL:\n{statement.sql}\nargs: {statement.params}')
        try:
            return func(self, statement)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{statement.sql}\nargs: {statement.params}')
            raise
        finally:
            elapsed = time.time() - start
            self._state.log_query(self._state.last_query or statement.sql,
                                  elapsed, get_caller(), start)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class D1Client:
    """Client for one Cloudflare D1 database.

    Holds the session state of the most recent execution. Each instance
    serializes its own pipeline, so sharing one across threads is safe but
    never concurrent.
    """

    def __init__(self, options: D1Options, transport: Transport | None = None) -> None:
        self.options = options
        self.transport = transport or Transport(options)
        self._state = SessionState()
        self._lock = threading.RLock()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'D1Client(database_id={self.options.database_id!r}, queries={self._state.num_queries})'

    def close(self) -> None:
        """Release the HTTP session."""
        self.transport.close()
        logger.debug(f'Client closed: {self.num_queries} queries in {self._state.total_time:.2f}s')

    # Session state, read-only

    @property
    def last_query(self) -> str | None:
        return self._state.last_query

    @property
    def last_result(self) -> tuple[dict[str, Any], ...] | None:
        """Rows of the last success as a tuple of copies."""
        rows = self._state.last_result
        return None if rows is None else tuple(dict(row) for row in rows)

    @property
    def last_error(self) -> str | None:
        return self._state.last_error

    @property
    def last_error_kind(self) -> ErrorKind | None:
        return self._state.last_error_kind

    @property
    def rows_affected(self) -> int:
        return self._state.rows_affected

    @property
    def num_rows(self) -> int:
        return self._state.num_rows

    @property
    def insert_id(self) -> int:
        return self._state.insert_id

    @property
    def num_queries(self) -> int:
        return self._state.num_queries

    @property
    def queries(self) -> tuple[QueryLogEntry, ...]:
        return tuple(self._state.queries)

    @property
    def col_info(self) -> list[Column] | None:
        return self._state.col_info

    def flush(self) -> None:
        """Clear the outcome of the last execution."""
        with self._lock:
            self._state.reset()

    def raise_for_error(self) -> None:
        """Raise the recorded failure of the last execution, if any."""
        kind = self._state.last_error_kind
        if kind is not None:
            raise ERROR_CLASSES[kind](self._state.last_error)

    # Pipeline

    @staticmethod
    def prepare(template: str | None, *args: Any) -> PreparedStatement | None:
        """Build a prepared statement; see `d1db.sql.prepare`."""
        return prepare(template, *args)

    @dumpsql
    def _send(self, statement: PreparedStatement) -> str:
        return self.transport.send(statement)

    def _fail(self, kind: ErrorKind, message: str) -> bool:
        self._state.record_error(kind, message)
        logger.error(f'D1 {kind.value} error: {message}')
        return False

    def _failed(self) -> bool:
        return self._state.last_error_kind is not None

    def _load_col_info(self) -> None:
        if self._state.col_info or not self._state.last_result:
            return
        self._state.col_info = describe(self._state.last_result)

    def query(self, statement: Query) -> int | bool:
        """Execute a statement and record its outcome.

        Args:
            statement: A PreparedStatement, or raw SQL sent without parameters

        Returns
            Changed-row count for INSERT/DELETE/UPDATE/REPLACE, True for
            CREATE/ALTER/DROP, otherwise rows read. False on any failure;
            inspect `last_error` and `last_error_kind`.
        """
        if statement is None:
            logger.debug('No statement to execute')
            return False
        if not isinstance(statement, PreparedStatement):
            statement = PreparedStatement(str(statement))

        with self._lock:
            self._state.reset()
            self._state.last_query = interpolate(statement.sql, statement.params)

            try:
                body = self._send(statement)
            except TransportError as exc:
                return self._fail(ErrorKind.TRANSPORT, str(exc))

            outcome = translate(body)
            if isinstance(outcome, MalformedResponse):
                return self._fail(ErrorKind.MALFORMED, outcome.message)
            if isinstance(outcome, ApiError):
                return self._fail(ErrorKind.API, outcome.message)

            self._state.last_result = outcome.rows
            self._state.rows_affected = outcome.changes
            self._state.num_rows = outcome.rows_read
            self._state.insert_id = outcome.last_row_id
            self._load_col_info()

            shape = classify_return_shape(statement.sql)
            if shape is ReturnShape.COUNT:
                return self._state.rows_affected
            if shape is ReturnShape.BOOL:
                return True
            return self._state.num_rows

    def execute(self, sql: str, *args: Any) -> int | bool:
        """Prepare and execute in one call."""
        return self.query(prepare(sql, *args))

    def _run(self, sql: Query, args: tuple[Any, ...]) -> None:
        if sql is None:
            return
        if isinstance(sql, PreparedStatement):
            self.query(sql)
        else:
            self.query(prepare(sql, *args))

    # Result accessors

    def get_var(self, sql: Query = None, *args: Any, x: int = 0, y: int = 0) -> Any:
        """Value at column `x` of row `y`.

        Runs `sql` first when given, otherwise reads the last result.
        Returns None when the value is absent or the last execution failed.
        """
        with self._lock:
            self._run(sql, args)
            if self._failed():
                return None
            return results.scalar(self._state.last_result, x, y)

    def get_row(self, sql: Query = None, *args: Any, output: Output | str = OBJECT,
                y: int = 0) -> attrdict | dict[str, Any] | list[Any] | None:
        """Row `y` as an attrdict (OBJECT), dict (ARRAY_A) or list (ARRAY_N).

        Unknown output names are treated as OBJECT.
        """
        with self._lock:
            self._run(sql, args)
            if self._failed():
                return None
            return results.record(self._state.last_result, output, y)

    def get_col(self, sql: Query = None, *args: Any, x: int = 0) -> list[Any]:
        """Values at column `x` across all rows; empty on failure.
        """
        with self._lock:
            self._run(sql, args)
            if self._failed() or not self._state.last_result:
                return []
            return results.column(self._state.last_result, x)

    def get_results(self, sql: Query = None, *args: Any,
                    output: Output | str = OBJECT) -> list[Any] | dict[Any, attrdict] | pd.DataFrame | None:
        """Every row of the last result in the requested shape.

        Returns None, not an empty result, when the last execution failed.
        Unknown output names are treated as OBJECT.
        """
        with self._lock:
            self._run(sql, args)
            if self._failed() or self._state.last_result is None:
                return None
            return results.records(self._state.last_result, output, self._state.col_info)

    def get_col_info(self, info_type: str = 'name', col_offset: int = -1) -> Any:
        """One descriptor attribute for every column, or for column `col_offset`.
        """
        with self._lock:
            self._load_col_info()
            columns = self._state.col_info
            if columns is None:
                return None
            if col_offset == -1:
                return [getattr(col, info_type, None) for col in columns]
            if not 0 <= col_offset < len(columns):
                return None
            return getattr(columns[col_offset], info_type, None)

    # CRUD helpers

    def insert(self, table: str, data: Mapping[str, Any]) -> int | bool:
        """Insert one row; returns the changed-row count or False."""
        return self._insert_replace(table, data, 'INSERT')

    def replace(self, table: str, data: Mapping[str, Any]) -> int | bool:
        """Replace one row; returns the changed-row count or False."""
        return self._insert_replace(table, data, 'REPLACE')

    def _insert_replace(self, table: str, data: Mapping[str, Any], verb: str) -> int | bool:
        with self._lock:
            self._state.insert_id = 0
            if not data:
                return False
            return self.query(build_insert(table, data, verb))

    def update(self, table: str, data: Mapping[str, Any],
               where: Mapping[str, Any]) -> int | bool:
        """Update rows matching every `where` field."""
        if not data or not where:
            return False
        return self.query(build_update(table, data, where))

    def delete(self, table: str, where: Mapping[str, Any]) -> int | bool:
        """Delete rows matching every `where` field."""
        if not where:
            return False
        return self.query(build_delete(table, where))
