"""Per-client session state."""
import time
from dataclasses import dataclass, field
from typing import Any

from d1db.columns import Column
from d1db.exceptions import ErrorKind


@dataclass(frozen=True, slots=True)
class QueryLogEntry:
    """One execution attempt."""
    statement: str
    duration: float
    caller: str
    timestamp: float


@dataclass
class SessionState:
    """Outcome of the most recent execution plus lifetime counters.

    `reset()` runs at the start of every execution so nothing from a prior
    call is readable after a new one fails. `num_queries` and `queries`
    accumulate for the life of the client.
    """
    last_query: str | None = None
    last_result: list[dict[str, Any]] | None = None
    last_error: str | None = None
    last_error_kind: ErrorKind | None = None
    rows_affected: int = 0
    num_rows: int = 0
    insert_id: int = 0
    col_info: list[Column] | None = None
    num_queries: int = 0
    queries: list[QueryLogEntry] = field(default_factory=list)

    def reset(self) -> None:
        self.last_result = None
        self.last_error = None
        self.last_error_kind = None
        self.rows_affected = 0
        self.num_rows = 0
        self.insert_id = 0
        self.col_info = None

    def record_error(self, kind: ErrorKind, message: str) -> None:
        self.last_error_kind = kind
        self.last_error = message

    def log_query(self, statement: str, duration: float, caller: str,
                  timestamp: float | None = None) -> None:
        self.num_queries += 1
        self.queries.append(QueryLogEntry(
            statement=statement,
            duration=duration,
            caller=caller,
            timestamp=time.time() if timestamp is None else timestamp,
        ))

    @property
    def total_time(self) -> float:
        return sum(entry.duration for entry in self.queries)
