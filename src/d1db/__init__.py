"""
Cloudflare D1 client with parameterized statements and shaped results.

All query operations can be called either as:
- Module functions: d1db.get_row(cn, sql, *args)
- D1Client methods: cn.get_row(sql, *args)

The module functions are facades over the client methods.
"""
__version__ = '0.1.0'

from dataclasses import fields
from typing import Any

from d1db.client import D1Client
from d1db.columns import Column
from d1db.compat import CompatibilityAdapter
from d1db.exceptions import ApiError, ConnectionFailure, DatabaseError
from d1db.exceptions import DbConnectionError, ErrorKind
from d1db.exceptions import MalformedResponseError, ParameterCountError
from d1db.exceptions import ProgrammingError, QueryError, TransportError
from d1db.exceptions import ValidationError
from d1db.options import D1Options
from d1db.response import ReturnShape, classify_return_shape
from d1db.results import ARRAY_A, ARRAY_N, DATAFRAME, OBJECT, OBJECT_K
from d1db.results import Output
from d1db.sql import PreparedStatement, escape_like, prepare
from d1db.sql import quote_identifier
from d1db.transport import Transport

from libb import load_options


@load_options(cls=D1Options)
def connect(options: D1Options | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> D1Client:
    """Create a client for one D1 database.

    Args:
        options: Can be:
                - D1Options object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        D1Client ready for queries; no request is made until the first one
    """
    if isinstance(options, D1Options):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=D1Options)(lambda o, c: o)
        options = options_func(options, config, **kw)

    return D1Client(options)


def query(cn: D1Client, statement: PreparedStatement | str) -> int | bool:
    """Execute a statement; see `D1Client.query`.
    """
    return cn.query(statement)


def execute(cn: D1Client, sql: str, *args: Any) -> int | bool:
    """Prepare and execute a statement.
    """
    return cn.execute(sql, *args)


def get_var(cn: D1Client, sql: str | PreparedStatement | None = None,
            *args: Any, x: int = 0, y: int = 0) -> Any:
    """Return a single value, or None.
    """
    return cn.get_var(sql, *args, x=x, y=y)


def get_row(cn: D1Client, sql: str | PreparedStatement | None = None,
            *args: Any, output: Output | str = OBJECT, y: int = 0) -> Any:
    """Return a single row in the requested shape, or None.
    """
    return cn.get_row(sql, *args, output=output, y=y)


def get_col(cn: D1Client, sql: str | PreparedStatement | None = None,
            *args: Any, x: int = 0) -> list[Any]:
    """Return one column as a list.
    """
    return cn.get_col(sql, *args, x=x)


def get_results(cn: D1Client, sql: str | PreparedStatement | None = None,
                *args: Any, output: Output | str = OBJECT) -> Any:
    """Return the full result set, or None if the execution failed.
    """
    return cn.get_results(sql, *args, output=output)


def insert(cn: D1Client, table: str, data: dict[str, Any]) -> int | bool:
    """Insert one row into a table.
    """
    return cn.insert(table, data)


def replace(cn: D1Client, table: str, data: dict[str, Any]) -> int | bool:
    """Replace one row in a table.
    """
    return cn.replace(table, data)


def update(cn: D1Client, table: str, data: dict[str, Any],
           where: dict[str, Any]) -> int | bool:
    """Update rows matching every `where` field.
    """
    return cn.update(table, data, where)


def delete(cn: D1Client, table: str, where: dict[str, Any]) -> int | bool:
    """Delete rows matching every `where` field.
    """
    return cn.delete(table, where)


__all__ = [
    'connect',
    'D1Client',
    'D1Options',
    'Transport',
    'CompatibilityAdapter',
    'PreparedStatement',
    'prepare',
    'quote_identifier',
    'escape_like',
    'classify_return_shape',
    'ReturnShape',
    'query',
    'execute',
    'get_var',
    'get_row',
    'get_col',
    'get_results',
    'insert',
    'replace',
    'update',
    'delete',
    'Column',
    'Output',
    'OBJECT',
    'OBJECT_K',
    'ARRAY_A',
    'ARRAY_N',
    'DATAFRAME',
    'ErrorKind',
    'DatabaseError',
    'ConnectionFailure',
    'TransportError',
    'QueryError',
    'ApiError',
    'MalformedResponseError',
    'ValidationError',
    'ParameterCountError',
    'DbConnectionError',
    'ProgrammingError',
]
