"""
D1 client exception classes.

Remote failures (transport, API, malformed response) are recorded on the
client's session state rather than raised; these classes exist so callers
can opt into exceptions via `D1Client.raise_for_error()` and so builder
misuse can fail loudly.
"""
from enum import Enum

import requests


class ErrorKind(str, Enum):
    """Classification of the last execution failure."""
    TRANSPORT = 'transport'
    API = 'api'
    MALFORMED = 'malformed'


class DatabaseError(Exception):
    """Base class for all d1db errors.
    """


class ConnectionFailure(DatabaseError):
    """Error reaching the D1 HTTP endpoint.
    """


class TransportError(ConnectionFailure):
    """Timeout or connection failure before any response was received.
    """


class QueryError(DatabaseError):
    """The service answered but the statement did not succeed.
    """


class ApiError(QueryError):
    """The D1 API rejected the statement.
    """


class MalformedResponseError(QueryError):
    """The response body could not be read as a D1 envelope.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class ParameterCountError(ValidationError):
    """Template has more placeholders than supplied arguments.
    """


ERROR_CLASSES: dict[ErrorKind, type[DatabaseError]] = {
    ErrorKind.TRANSPORT: TransportError,
    ErrorKind.API: ApiError,
    ErrorKind.MALFORMED: MalformedResponseError,
}

DbConnectionError = (
    requests.ConnectionError,
    requests.Timeout,
    ConnectionFailure,
    )

ProgrammingError = (
    ApiError,
    MalformedResponseError,
    ValidationError,
    )
