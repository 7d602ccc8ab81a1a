"""
Translation of D1 JSON envelopes into execution outcomes.

The API wraps every answer as::

    {"success": bool,
     "errors": [{"message": str}, ...],
     "result": [{"results": [record, ...],
                 "meta": {"changes": int, "rows_read": int, "last_row_id": int}}]}

Only `result[0]` is read. Later entries belong to batched statements, which
this client never sends, and are discarded.
"""
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

UNKNOWN_API_ERROR = 'Unknown D1 API error.'
MALFORMED_RESPONSE = 'Malformed response from D1 API.'

Record = dict[str, Any]


@dataclass(frozen=True, slots=True)
class ApiError:
    """The service rejected the statement."""
    message: str


@dataclass(frozen=True, slots=True)
class MalformedResponse:
    """The body was not a readable envelope."""
    message: str = MALFORMED_RESPONSE


@dataclass(frozen=True, slots=True)
class Success:
    """Rows and counters from the first result set."""
    rows: list[Record] = field(default_factory=list)
    changes: int = 0
    rows_read: int = 0
    last_row_id: int = 0


Outcome = ApiError | MalformedResponse | Success


class ReturnShape(Enum):
    """What a raw execution hands back to its caller."""
    COUNT = 'count'
    BOOL = 'bool'
    ROWS = 'rows'


_COUNT_KEYWORDS = {'INSERT', 'DELETE', 'UPDATE', 'REPLAC'}
_BOOL_KEYWORDS = ('CREATE', 'ALTER', 'DROP')


def classify_return_shape(statement_text: str) -> ReturnShape:
    """Classify a statement by its leading keyword.

    Looks only at the first six characters of the stripped, upper-cased text.

    >>> classify_return_shape('  insert into t values (1)')
    <ReturnShape.COUNT: 'count'>
    >>> classify_return_shape('DROP TABLE t')
    <ReturnShape.BOOL: 'bool'>
    >>> classify_return_shape('SELECT * FROM t')
    <ReturnShape.ROWS: 'rows'>
    """
    keyword = statement_text.strip()[:6].upper()
    if keyword in _COUNT_KEYWORDS:
        return ReturnShape.COUNT
    if keyword.startswith(_BOOL_KEYWORDS):
        return ReturnShape.BOOL
    return ReturnShape.ROWS


def _first(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def extract_error_message(envelope: dict[str, Any]) -> str:
    """Pick the error message from a failed envelope.

    Order: `errors[0].message`, then `result[0].error`, then a fixed string.
    """
    first_error = _first(envelope.get('errors'))
    if isinstance(first_error, dict) and first_error.get('message') is not None:
        return str(first_error['message'])

    first_result = _first(envelope.get('result'))
    if isinstance(first_result, dict) and first_result.get('error') is not None:
        return str(first_result['error'])

    return UNKNOWN_API_ERROR


def _as_int(meta: dict[str, Any], key: str, default: int) -> int:
    value = meta.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f'meta.{key} is not a number: {value!r}')
    return int(value)


def _read_success(envelope: dict[str, Any]) -> Success:
    """Read the first result set; raises TypeError on unexpected shapes."""
    result = envelope.get('result')
    if result is None:
        result = []
    if not isinstance(result, list):
        raise TypeError('result is not a list')
    if len(result) > 1:
        logger.debug(f'Discarding {len(result) - 1} batched result set(s)')

    first = result[0] if result else {}
    if not isinstance(first, dict):
        raise TypeError('result[0] is not an object')

    rows = first.get('results')
    if rows is None:
        rows = []
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise TypeError('results is not a list of records')

    meta = first.get('meta')
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise TypeError('meta is not an object')

    return Success(
        rows=rows,
        changes=_as_int(meta, 'changes', 0),
        rows_read=_as_int(meta, 'rows_read', len(rows)),
        last_row_id=_as_int(meta, 'last_row_id', 0),
    )


def translate(body: str | bytes | None) -> Outcome:
    """Turn a raw response body into an outcome.

    Returns
        ApiError when `success` is false or absent, MalformedResponse when the
        body is not a readable envelope, otherwise Success
    """
    try:
        envelope = json.loads(body)
    except (TypeError, ValueError) as exc:
        logger.debug(f'Response body is not JSON: {exc}')
        return MalformedResponse()

    if not isinstance(envelope, dict):
        return MalformedResponse()

    if not envelope.get('success'):
        return ApiError(extract_error_message(envelope))

    try:
        return _read_success(envelope)
    except TypeError as exc:
        logger.debug(f'Unexpected envelope shape: {exc}')
        return MalformedResponse()


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
