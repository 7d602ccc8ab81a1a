"""
Tests for result shaping - these work on plain row lists, no client involved.
"""
import pandas as pd
from d1db.columns import describe
from d1db.results import ARRAY_A, ARRAY_N, DATAFRAME, OBJECT, OBJECT_K
from d1db.results import column, dataframe, record, records, scalar

from libb import attrdict


def test_scalar(people):
    assert scalar(people) == 1
    assert scalar(people, 1, 0) == 'ann'
    assert scalar(people, 2, 2) == 7.0


def test_scalar_out_of_range(people):
    assert scalar(people, 0, 5) is None
    assert scalar(people, 9, 0) is None
    assert scalar(people, 0, -1) is None
    assert scalar([], 0, 0) is None
    assert scalar(None) is None


def test_record_shapes(people):
    row = record(people, OBJECT, 0)
    assert isinstance(row, attrdict)
    assert row.name == 'ann'

    assert record(people, ARRAY_A, 1) == {'id': 2, 'name': 'bob', 'score': None}
    assert record(people, ARRAY_N, 2) == [3, 'cy', 7.0]
    assert record(people, 'ARRAY_N', 2) == [3, 'cy', 7.0]


def test_record_absent(people):
    assert record(people, OBJECT, 3) is None
    assert record([], ARRAY_A) is None


def test_record_does_not_alias_rows(people):
    row = record(people, ARRAY_A, 0)
    row['name'] = 'changed'
    assert people[0]['name'] == 'ann'


def test_column(people):
    assert column(people, 0) == [1, 2, 3]
    assert column(people, 2) == [9.5, None, 7.0]
    assert column(people, 5) == []
    assert column([]) == []


def test_column_skips_short_rows():
    rows = [{'a': 1, 'b': 2}, {'a': 3}]
    assert column(rows, 1) == [2]


def test_records_shapes(people):
    objects = records(people, OBJECT)
    assert [row.name for row in objects] == ['ann', 'bob', 'cy']

    assert records(people, ARRAY_A) == people
    assert records(people, ARRAY_N) == [[1, 'ann', 9.5], [2, 'bob', None], [3, 'cy', 7.0]]


def test_records_keyed_last_wins():
    rows = [{'k': 'a', 'v': 1}, {'k': 'b', 'v': 2}, {'k': 'a', 'v': 3}]
    keyed = records(rows, OBJECT_K)
    assert list(keyed) == ['a', 'b']
    assert keyed['a'].v == 3


def test_records_empty_is_empty_not_none():
    assert records([], OBJECT) == []
    assert records([], OBJECT_K) == {}


def test_unknown_shape_falls_back_to_object(people):
    rows = records(people, 'XML')
    assert isinstance(rows[0], attrdict)
    assert rows[0].name == 'ann'
    assert record(people, 'nonsense', y=1).name == 'bob'


def test_dataframe(people):
    df = records(people, DATAFRAME, describe(people))
    assert isinstance(df, pd.DataFrame)
    assert list(df.columns) == ['id', 'name', 'score']
    assert len(df) == 3
    assert df.attrs['column_types']['id']['numeric'] is True


def test_dataframe_empty():
    df = dataframe([], None)
    assert isinstance(df, pd.DataFrame)
    assert df.empty
    assert df.attrs['column_types'] == {}
