"""
SPARQL Helper - HTTP transport for the archive's SPARQL endpoint.

This module is a small SPARQL protocol client that handles:
- Sending a query as a raw ``application/sparql-query`` POST body
- Content negotiation for SPARQL JSON results
- A wall-clock deadline covering connect, headers and the whole body
- Mapping transport failures onto a small exception hierarchy

It knows nothing about caching or query identifiers; see
:mod:`newsstats.gateway` for that.

Usage:
    from newsstats.sparql_helper import SparqlHelper

    helper = SparqlHelper("https://sparql.example.org/archive")
    body = helper.post_query("SELECT (COUNT(*) AS ?count) { ?s ?p ?o }")
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout

import requests

logger = logging.getLogger(__name__)


class SparqlHelperError(Exception):
    """Base exception for SPARQL helper errors."""

    pass


class EndpointTimeout(SparqlHelperError):
    """Raised when the endpoint does not answer within the timeout."""

    pass


class EndpointUnreachable(SparqlHelperError):
    """Raised on connection refused, DNS failure or other transport errors."""

    pass


class EndpointHTTPError(SparqlHelperError):
    """Raised when the endpoint answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str, reason: str = "") -> None:
        super().__init__(f"HTTP {status_code} {reason}".strip())
        self.status_code = status_code
        self.body = body
        self.reason = reason


# MIME types for SPARQL responses
class MimeTypes:
    """Standard MIME types for SPARQL protocol."""

    QUERY = "application/sparql-query"
    JSON = "application/sparql-results+json"


class SparqlHelper:
    """
    Executes SPARQL queries against a single endpoint.

    Each request runs on a worker thread and the caller waits for it at
    most ``timeout`` seconds.  The worker reads the body in chunks and
    stops once the same deadline has passed, so a slowly trickling
    endpoint cannot hold a worker indefinitely either.

    Attributes:
        endpoint_url: The SPARQL endpoint URL
        timeout: Deadline for the whole request in seconds

    Example:
        >>> helper = SparqlHelper("https://sparql.example.org/archive", timeout=10)
        >>> body = helper.post_query("SELECT ?s { ?s ?p ?o } LIMIT 1")
    """

    USER_AGENT = "newsstats/0.1 (SPARQL client)"

    CHUNK_SIZE = 8192

    def __init__(
        self,
        endpoint_url: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        max_workers: int = 16,
    ) -> None:
        """
        Initialize the SPARQL helper.

        Args:
            endpoint_url: SPARQL endpoint URL
            timeout: Deadline for the whole request in seconds (default: 30)
            session: Optional session to reuse; one is created otherwise
            max_workers: Number of requests that may run at once
        """
        self.endpoint_url = endpoint_url
        self.timeout = timeout

        # Session for connection pooling
        self._session = session if session is not None else requests.Session()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="sparql",
        )

        logger.debug(f"SparqlHelper initialized for {self.endpoint_url}")

    def post_query(self, query: str) -> bytes:
        """
        Execute a query with HTTP POST and return the raw response body.

        Args:
            query: SPARQL query string

        Returns:
            Response body as bytes (SPARQL JSON is UTF-8)

        Raises:
            EndpointTimeout: If the request does not complete within the timeout
            EndpointUnreachable: On connection-level failures
            EndpointHTTPError: If the endpoint returns a non-2xx status
        """
        deadline = time.monotonic() + self.timeout
        future = self._executor.submit(self._post, query, deadline)
        try:
            return future.result(timeout=self.timeout)
        except FuturesTimeout as e:
            future.cancel()
            raise self._timeout_error() from e

    def _post(self, query: str, deadline: float) -> bytes:
        if time.monotonic() >= deadline:
            raise self._timeout_error()

        headers = {
            "Accept": MimeTypes.JSON,
            "Content-Type": MimeTypes.QUERY,
            "User-Agent": self.USER_AGENT,
        }

        try:
            response = self._session.post(
                self.endpoint_url,
                data=query.encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
                stream=True,
            )
        except requests.exceptions.Timeout as e:
            raise self._timeout_error() from e
        except requests.exceptions.RequestException as e:
            raise EndpointUnreachable(
                f"Could not reach {self.endpoint_url}: {e}"
            ) from e

        try:
            body = self._read_body(response, deadline)
        finally:
            response.close()

        if not 200 <= response.status_code < 300:
            raise EndpointHTTPError(
                response.status_code,
                body.decode("utf-8", errors="replace"),
                response.reason or "",
            )

        return body

    def _read_body(self, response: requests.Response, deadline: float) -> bytes:
        """Read the streamed body, giving up once *deadline* has passed."""
        chunks: list[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                chunks.append(chunk)
                if time.monotonic() >= deadline:
                    raise self._timeout_error()
        except requests.exceptions.RequestException as e:
            # requests reports a read timeout while streaming as ConnectionError
            if isinstance(e, requests.exceptions.Timeout) or "timed out" in str(e):
                raise self._timeout_error() from e
            raise EndpointUnreachable(
                f"Connection to {self.endpoint_url} failed: {e}"
            ) from e
        return b"".join(chunks)

    def _timeout_error(self) -> EndpointTimeout:
        return EndpointTimeout(
            f"No response from {self.endpoint_url} within {self.timeout}s"
        )

    def close(self) -> None:
        """Release pooled connections and worker threads."""
        self._executor.shutdown(wait=False)
        self._session.close()
