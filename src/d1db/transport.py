"""
HTTP transport for the D1 query endpoint.

One synchronous POST per statement, no retries. Network failures surface as
`TransportError`; any HTTP response, including error statuses, is handed back
as a body for the response translator to read.
"""
import logging
from typing import Any

import requests
from d1db.exceptions import TransportError
from d1db.options import D1Options
from d1db.sql import PreparedStatement

logger = logging.getLogger(__name__)


class Transport:
    """Posts prepared statements to the D1 REST API.

    Args:
        options: Client options holding the endpoint identifiers and token
        session: Optional `requests.Session`; one is created on first use
    """

    def __init__(self, options: D1Options, session: requests.Session | None = None) -> None:
        self.options = options
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    @property
    def url(self) -> str:
        return self.options.api_url

    def headers(self) -> dict[str, str]:
        return {
            'Authorization': f'Bearer {self.options.api_token}',
            'Content-Type': 'application/json',
        }

    def send(self, statement: PreparedStatement) -> str:
        """POST the statement and return the raw response body.

        Raises
            TransportError: On timeout or connection failure
        """
        payload: dict[str, Any] = statement.to_payload()
        try:
            response = self.session.post(
                self.url,
                json=payload,
                headers=self.headers(),
                timeout=self.options.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        if not response.ok:
            logger.debug(f'D1 responded with HTTP {response.status_code}')
        return response.text

    def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None
