"""Capability answers for callers written against a MySQL-style client.

D1 has no charsets, collations or connection lifecycle to negotiate, so each
answer is fixed. The query pipeline does not depend on this module.
"""
from d1db.client import D1Client

CAPABILITIES = frozenset({'subqueries', 'group_concat'})


class CompatibilityAdapter:
    """Wraps a client with fixed capability answers."""

    def __init__(self, client: D1Client) -> None:
        self.client = client

    def db_version(self) -> str:
        return 'SQLite (via Cloudflare D1)'

    def db_server_info(self) -> str:
        return 'Cloudflare D1'

    def has_cap(self, db_cap: str) -> bool:
        return db_cap.lower() in CAPABILITIES

    def supports_collation(self) -> bool:
        return True

    def check_connection(self) -> bool:
        return True

    def close(self) -> bool:
        self.client.close()
        return True
