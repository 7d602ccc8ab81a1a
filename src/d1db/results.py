"""
Result shaping for translated row sets.

Pure functions over a list of records; the client feeds them its current
session state and never lets them write back.

Output shapes:
- OBJECT: attribute dictionaries (`row.name`)
- OBJECT_K: attribute dictionaries keyed by each row's first column value
- ARRAY_A: plain dictionaries
- ARRAY_N: lists of values in column order
- DATAFRAME: a pandas DataFrame (full result sets only)
"""
import logging
from enum import Enum
from typing import Any

import pandas as pd
from d1db.columns import Column

from libb import attrdict

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class Output(str, Enum):
    OBJECT = 'OBJECT'
    OBJECT_K = 'OBJECT_K'
    ARRAY_A = 'ARRAY_A'
    ARRAY_N = 'ARRAY_N'
    DATAFRAME = 'DATAFRAME'


OBJECT = Output.OBJECT
OBJECT_K = Output.OBJECT_K
ARRAY_A = Output.ARRAY_A
ARRAY_N = Output.ARRAY_N
DATAFRAME = Output.DATAFRAME


def as_output(output: Output | str) -> Output:
    """Resolve a shape name; unknown names fall back to OBJECT."""
    try:
        return Output(output)
    except ValueError:
        logger.debug(f'Unknown output shape {output!r}, using OBJECT')
        return OBJECT


def _at(values: list[Any], index: int) -> tuple[bool, Any]:
    if 0 <= index < len(values):
        return True, values[index]
    return False, None


def shape_row(row: Record, output: Output | str = OBJECT) -> attrdict | Record | list[Any]:
    """Present one record as an attrdict, dict or list."""
    output = as_output(output)
    if output == ARRAY_A:
        return dict(row)
    if output == ARRAY_N:
        return list(row.values())
    return attrdict(row)


def scalar(rows: list[Record] | None, x: int = 0, y: int = 0) -> Any:
    """Value at column `x` of row `y`, or None."""
    found, row = _at(rows or [], y)
    if not found:
        return None
    return _at(list(row.values()), x)[1]


def record(rows: list[Record] | None, output: Output | str = OBJECT,
           y: int = 0) -> attrdict | Record | list[Any] | None:
    """Row `y` in the requested shape, or None."""
    found, row = _at(rows or [], y)
    if not found:
        return None
    return shape_row(row, output)


def column(rows: list[Record] | None, x: int = 0) -> list[Any]:
    """Values at column `x` across all rows; rows without that column are skipped."""
    values = []
    for row in rows or []:
        found, value = _at(list(row.values()), x)
        if found:
            values.append(value)
    return values


def dataframe(rows: list[Record], columns: list[Column] | None) -> pd.DataFrame:
    """DataFrame loader.

    Always returns a DataFrame, never None, with inferred column descriptors
    in `df.attrs['column_types']`.
    """
    columns = columns or []
    names = Column.get_names(columns) or None
    if not rows:
        df = pd.DataFrame(columns=names)
    else:
        df = pd.DataFrame.from_records(rows, columns=names)
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def records(rows: list[Record], output: Output | str = OBJECT,
            columns: list[Column] | None = None) -> Any:
    """Every row in the requested shape."""
    output = as_output(output)
    if output == ARRAY_A:
        return [dict(row) for row in rows]
    if output == ARRAY_N:
        return [list(row.values()) for row in rows]
    if output == DATAFRAME:
        return dataframe(rows, columns)
    if output == OBJECT_K:
        keyed = {}
        for row in rows:
            if not row:
                continue
            keyed[next(iter(row.values()))] = attrdict(row)
        return keyed
    return [attrdict(row) for row in rows]
