"""Unit tests for envelope translation and return-shape classification."""
import json

import pytest
from d1db.response import MALFORMED_RESPONSE, UNKNOWN_API_ERROR, ApiError
from d1db.response import MalformedResponse, ReturnShape, Success
from d1db.response import classify_return_shape, extract_error_message
from d1db.response import translate


class TestTranslateSuccess:

    def test_rows_and_meta(self, envelope):
        body = json.dumps(envelope(rows=[{'id': 7, 'name': 'ann'}], changes=0,
                                   rows_read=1, last_row_id=0))
        outcome = translate(body)
        assert outcome == Success(rows=[{'id': 7, 'name': 'ann'}], changes=0,
                                  rows_read=1, last_row_id=0)

    def test_missing_meta_defaults(self, envelope):
        outcome = translate(json.dumps(envelope(rows=[{'a': 1}, {'a': 2}])))
        assert outcome.changes == 0
        assert outcome.last_row_id == 0
        assert outcome.rows_read == 2

    def test_missing_results_defaults_to_empty(self):
        outcome = translate(json.dumps({'success': True, 'result': [{'meta': {'changes': 3}}]}))
        assert outcome == Success(rows=[], changes=3, rows_read=0, last_row_id=0)

    def test_missing_result_defaults_to_empty(self):
        assert translate(json.dumps({'success': True})) == Success()

    def test_only_first_result_is_read(self, envelope):
        extra = [{'results': [{'x': 'ignored'}], 'meta': {'changes': 99}}]
        outcome = translate(json.dumps(envelope(rows=[{'x': 1}], changes=1, extra_results=extra)))
        assert outcome.rows == [{'x': 1}]
        assert outcome.changes == 1

    def test_insert_meta(self, envelope):
        outcome = translate(json.dumps(envelope(changes=1, last_row_id=42, rows_read=0)))
        assert outcome.changes == 1
        assert outcome.last_row_id == 42
        assert outcome.rows_read == 0

    def test_bytes_body(self, envelope):
        outcome = translate(json.dumps(envelope(rows=[{'a': 1}])).encode())
        assert isinstance(outcome, Success)

    def test_column_order_preserved(self):
        body = '{"success": true, "result": [{"results": [{"z": 1, "a": 2, "m": 3}]}]}'
        assert list(translate(body).rows[0]) == ['z', 'a', 'm']


class TestTranslateErrors:

    def test_errors_message_wins(self):
        body = json.dumps({'success': False, 'errors': [{'message': 'A'}],
                           'result': [{'error': 'B'}]})
        assert translate(body) == ApiError('A')

    def test_result_error_fallback(self):
        body = json.dumps({'success': False, 'errors': [], 'result': [{'error': 'B'}]})
        assert translate(body) == ApiError('B')

    def test_unknown_error_fallback(self):
        assert translate(json.dumps({'success': False})) == ApiError(UNKNOWN_API_ERROR)

    def test_absent_success_is_error(self):
        body = json.dumps({'errors': [{'message': 'auth failed'}]})
        assert translate(body) == ApiError('auth failed')

    def test_error_entry_without_message_falls_through(self):
        body = json.dumps({'success': False, 'errors': [{'code': 1}], 'result': [{'error': 'B'}]})
        assert translate(body) == ApiError('B')

    def test_error_envelope_fixture(self, error_envelope):
        assert translate(json.dumps(error_envelope('near "SELEC": syntax error'))) == \
            ApiError('near "SELEC": syntax error')

    @pytest.mark.parametrize('body', [
        '',
        'not json',
        '<html>502 Bad Gateway</html>',
        None,
        '[1, 2, 3]',
        '"success"',
    ])
    def test_unreadable_body(self, body):
        assert translate(body) == MalformedResponse()

    @pytest.mark.parametrize('payload', [
        {'success': True, 'result': {'results': []}},
        {'success': True, 'result': ['oops']},
        {'success': True, 'result': [{'results': {'id': 1}}]},
        {'success': True, 'result': [{'results': [1, 2]}]},
        {'success': True, 'result': [{'results': [], 'meta': []}]},
        {'success': True, 'result': [{'results': [], 'meta': {'changes': 'many'}}]},
    ])
    def test_wrong_envelope_shape(self, payload):
        outcome = translate(json.dumps(payload))
        assert isinstance(outcome, MalformedResponse)
        assert outcome.message == MALFORMED_RESPONSE


def test_extract_error_message_tolerates_odd_shapes():
    assert extract_error_message({'errors': 'nope', 'result': 'nope'}) == UNKNOWN_API_ERROR
    assert extract_error_message({'errors': [None], 'result': [None]}) == UNKNOWN_API_ERROR


class TestClassifyReturnShape:

    @pytest.mark.parametrize(('sql', 'shape'), [
        ('INSERT INTO t VALUES (1)', ReturnShape.COUNT),
        ('insert into t values (1)', ReturnShape.COUNT),
        ('  DELETE FROM t', ReturnShape.COUNT),
        ('UPDATE t SET a = 1', ReturnShape.COUNT),
        ('REPLACE INTO t VALUES (1)', ReturnShape.COUNT),
        ('CREATE TABLE t (id INTEGER)', ReturnShape.BOOL),
        ('ALTER TABLE t ADD COLUMN b', ReturnShape.BOOL),
        ('DROP TABLE t', ReturnShape.BOOL),
        ('drop index i', ReturnShape.BOOL),
        ('SELECT * FROM t', ReturnShape.ROWS),
        ('PRAGMA table_list', ReturnShape.ROWS),
        ('WITH x AS (SELECT 1) INSERT INTO t SELECT * FROM x', ReturnShape.ROWS),
        ('', ReturnShape.ROWS),
    ])
    def test_leading_keyword(self, sql, shape):
        assert classify_return_shape(sql) is shape
