"""
Statement preparation for the D1 query endpoint.

Templates use typed placeholders that are replaced by positional `?`
markers while the matching arguments are coerced and collected:

    template + args → Tokenize → Coerce per placeholder → PreparedStatement
                      (one scan)     (%d, %f, %s)         (sql, params)

Main entry points:
- `prepare(template, *args)` - Build a PreparedStatement
- `interpolate(sql, params)` - Render a statement for logs (never executed)
- `build_insert()`, `build_update()`, `build_delete()` - CRUD statements
- `quote_identifier()`, `escape_like()` - Identifier and LIKE helpers
"""
import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from d1db.exceptions import ParameterCountError

from libb import issequence

logger = logging.getLogger(__name__)

Scalar = str | int | float | None

# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True, slots=True)
class PreparedStatement:
    """SQL text with `?` markers and its ordered parameter list."""
    sql: str
    params: tuple[Scalar, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        """Wire form of the statement."""
        return {'sql': self.sql, 'params': list(self.params)}


# =============================================================================
# Regex Patterns
# =============================================================================

# A doubled percent is its own token so `%%s` never reads as `%` + `%s`
_TOKENIZE = re.compile(r'(?P<escaped>%%)|(?P<placeholder>%[dfs])')

_INT_PREFIX = re.compile(r'\s*[+-]?\d+')
_FLOAT_PREFIX = re.compile(r'\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')

_MARKER = re.compile(r'\?')


# =============================================================================
# Coercion
# =============================================================================

def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def to_int(value: Any) -> int:
    """Integer cast for `%d`.

    Strings are read by their leading numeric prefix; anything unreadable,
    infinite or NaN is 0. Only exponent forms go through float, so large
    integer strings keep every digit.

    >>> to_int('42abc'), to_int('1.5e3'), to_int('abc'), to_int(None)
    (42, 1500, 0, 0)
    >>> to_int('9007199254740993'), to_int('1e999')
    (9007199254740993, 0)
    """
    if value is None:
        return 0
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, float):
        return int(_finite(value))
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(value)
        if not match:
            return 0
        if 'e' in match.group(0).lower():
            return int(_finite(float(match.group(0))))
        whole = _INT_PREFIX.match(value)
        return int(whole.group(0)) if whole else 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def to_float(value: Any) -> float:
    """Float cast for `%f`.

    Infinite and NaN results are 0.0; JSON has no literal for them.

    >>> to_float('3.25kg'), to_float(''), to_float(2), to_float('1e999')
    (3.25, 0.0, 2.0, 0.0)
    """
    if value is None:
        return 0.0
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(value)
        return _finite(float(match.group(0))) if match else 0.0
    try:
        return _finite(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0.0


def to_str(value: Any) -> str:
    """String cast for `%s`.

    >>> to_str(None), to_str(True), to_str(False), to_str(7)
    ('', '1', '', '7')
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return '1' if value else ''
    return str(value)


_CASTS = {
    '%d': to_int,
    '%f': to_float,
    '%s': to_str,
}


# =============================================================================
# Core Functions
# =============================================================================

def _normalize_args(args: tuple[Any, ...]) -> list[Any]:
    """Unwrap a single sequence argument: prepare(sql, [1, 2]) == prepare(sql, 1, 2)."""
    if len(args) == 1 and issequence(args[0]) and not isinstance(args[0], str):
        return list(args[0])
    return list(args)


def prepare(template: str | None, *args: Any) -> PreparedStatement | None:
    """Build a prepared statement from a typed-placeholder template.

    Each `%d`, `%f` or `%s` consumes the next argument, coerced to int,
    float or str, and becomes a `?` marker. `%%` yields a literal `%`.

    Parameters
        template: SQL template, or None
        *args: Arguments in placeholder order, or a single list/tuple of them

    Returns
        PreparedStatement, or None when template is None

    Raises
        ParameterCountError: If the template needs more arguments than given

    >>> prepare('SELECT * FROM t WHERE id = %d AND name = %s', 7, 'ann')
    PreparedStatement(sql='SELECT * FROM t WHERE id = ? AND name = ?', params=(7, 'ann'))
    >>> prepare("SELECT 'a%%' , %f", ['1.5']).sql
    "SELECT 'a%' , ?"
    """
    if template is None:
        return None

    remaining = _normalize_args(args)
    supplied = len(remaining)
    params: list[Scalar] = []

    def substitute(match: re.Match) -> str:
        if match.group('escaped'):
            return '%'
        if not remaining:
            needed = len([m for m in _TOKENIZE.finditer(template) if m.group('placeholder')])
            raise ParameterCountError(
                f'Parameter count mismatch: template needs {needed} '
                f'but {supplied} were provided'
            )
        token = match.group('placeholder')
        params.append(_CASTS[token](remaining.pop(0)))
        return '?'

    sql = _TOKENIZE.sub(substitute, template)

    if remaining:
        logger.debug(f'Ignoring {len(remaining)} surplus argument(s) for: {sql[:60]}')

    return PreparedStatement(sql, tuple(params))


def _addslashes(value: str) -> str:
    return (value.replace('\\', '\\\\')
                 .replace("'", "\\'")
                 .replace('"', '\\"')
                 .replace('\0', '\\0'))


def interpolate(sql: str, params: tuple[Scalar, ...] | list[Scalar]) -> str:
    """Render `?` markers with literal values.

    For logging and `last_query` only; the output is not safe to execute.

    >>> interpolate('SELECT ? , ? , ?', ["it's", 3, None])
    "SELECT 'it\\\\'s' , 3 , NULL"
    """
    pending = list(params)

    def render(match: re.Match) -> str:
        if not pending:
            return '?'
        value = pending.pop(0)
        if value is None:
            return 'NULL'
        if isinstance(value, str):
            return "'" + _addslashes(value) + "'"
        return str(value)

    return _MARKER.sub(render, sql)


def quote_identifier(identifier: str) -> str:
    """Backtick-quote a table or column name.

    >>> quote_identifier('odd`name')
    '`odd``name`'
    """
    return '`' + identifier.replace('`', '``') + '`'


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so text matches literally.

    >>> escape_like('50%_off')
    '50\\\\%\\\\_off'
    """
    return re.sub(r'([\\%_])', r'\\\1', text)


# =============================================================================
# CRUD Builders
# =============================================================================

def build_insert(table: str, data: Mapping[str, Any], verb: str = 'INSERT') -> PreparedStatement:
    """Build an INSERT (or REPLACE) statement for one row."""
    fields = ', '.join(quote_identifier(field) for field in data)
    markers = ', '.join('?' * len(data))
    sql = f'{verb.upper()} INTO {quote_identifier(table)} ({fields}) VALUES ({markers})'
    return PreparedStatement(sql, tuple(data.values()))


def _assignments(data: Mapping[str, Any]) -> list[str]:
    return [f'{quote_identifier(field)} = ?' for field in data]


def build_update(table: str, data: Mapping[str, Any],
                 where: Mapping[str, Any]) -> PreparedStatement:
    """Build an UPDATE statement matching every `where` field by equality."""
    sql = (f'UPDATE {quote_identifier(table)} SET {", ".join(_assignments(data))}'
           f' WHERE {" AND ".join(_assignments(where))}')
    return PreparedStatement(sql, (*data.values(), *where.values()))


def build_delete(table: str, where: Mapping[str, Any]) -> PreparedStatement:
    """Build a DELETE statement matching every `where` field by equality."""
    sql = f'DELETE FROM {quote_identifier(table)} WHERE {" AND ".join(_assignments(where))}'
    return PreparedStatement(sql, tuple(where.values()))


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
