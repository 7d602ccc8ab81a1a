"""
Column metadata inferred from returned rows.

The D1 API reports no column types, so descriptors are derived from the
first record of a result set. Anything that cannot be read off a value
(table, keys, nullability) carries a fixed default.
"""
import re
from dataclasses import asdict, dataclass
from typing import Any, Self

# Decimal number with optional surrounding whitespace, sign, fraction, exponent
_NUMERIC = re.compile(r'\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*')

_TYPE_TAGS: dict[type, str] = {
    bool: 'boolean',
    int: 'integer',
    float: 'float',
    str: 'string',
}


def is_numeric(value: Any) -> bool:
    """True for numbers and numeric strings; booleans are not numeric.

    >>> is_numeric(7), is_numeric('-1.5e3'), is_numeric(' 42 '), is_numeric('ann')
    (True, True, True, False)
    >>> is_numeric(True), is_numeric(None)
    (False, False)
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        return _NUMERIC.fullmatch(value) is not None
    return False


def type_tag(value: Any) -> str:
    """Type tag for a JSON-decoded value."""
    if value is None:
        return 'null'
    return _TYPE_TAGS.get(type(value), type(value).__name__)


@dataclass(frozen=True, slots=True)
class Column:
    """Inferred column descriptor."""
    name: str
    numeric: bool = False
    type: str = 'null'
    table: str = ''
    default: str = ''
    max_length: int = -1
    not_null: bool = False
    primary_key: bool = False
    multiple_key: bool = False
    unique_key: bool = False
    blob: bool = False
    unsigned: bool = False
    zerofill: bool = False

    @classmethod
    def from_value(cls, name: str, value: Any) -> Self:
        return cls(name=name, numeric=is_numeric(value), type=type_tag(value))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def get_names(columns: list[Self]) -> list[str]:
        return [col.name for col in columns]

    @staticmethod
    def get_column_types_dict(columns: list[Self]) -> dict[str, dict]:
        return {col.name: col.to_dict() for col in columns}


def describe(rows: list[dict[str, Any]] | None) -> list[Column] | None:
    """Build descriptors from the first row, in column order.

    Returns None for an empty or missing result set.
    """
    if not rows:
        return None
    return [Column.from_value(name, value) for name, value in rows[0].items()]


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
