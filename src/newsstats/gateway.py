"""SPARQL statistics gateway — cached, time-boxed execution of catalogue queries.

This module has no Flask dependency.  :class:`SparqlGateway` wires together
the query catalogue, the response cache and the HTTP transport and turns
every failure into a :class:`GatewayError` carried on the returned
:class:`GatewayResult`; callers never need to catch transport exceptions.

Concurrent cold requests for the same query share one in-flight fetch;
a forced refresh always makes its own request.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FuturesTimeout
from enum import Enum
from typing import Any

import requests
from pydantic import BaseModel, ValidationError

from newsstats.cache import ResponseCache
from newsstats.catalog import QueryId, parse_query_id, resolve_query
from newsstats.models import SparqlResult
from newsstats.sparql_helper import (
    EndpointHTTPError,
    EndpointTimeout,
    EndpointUnreachable,
    SparqlHelper,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_CACHE_TTL = 24 * 60 * 60


class ErrorKind(str, Enum):
    """Failure categories reported by :class:`SparqlGateway`."""

    INVALID_QUERY = "invalid_query"
    MISCONFIGURED = "misconfigured"
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"
    UPSTREAM_ERROR = "upstream_error"
    MALFORMED_RESPONSE = "malformed_response"


class GatewayError(BaseModel):
    """A classified failure of a single query execution."""

    kind: ErrorKind
    message: str
    details: str | None = None
    status_code: int | None = None

    @property
    def http_status(self) -> int:
        """Status code to answer the inbound request with."""
        if self.kind is ErrorKind.INVALID_QUERY:
            return 400
        if (
            self.kind is ErrorKind.UPSTREAM_ERROR
            and self.status_code is not None
            and self.status_code >= 400
        ):
            return self.status_code
        return 500


class GatewayResult(BaseModel):
    """Structured result of :meth:`SparqlGateway.execute`."""

    query_id: str
    data: dict[str, Any] | None = None
    timestamp: float | None = None
    served_from_cache: bool = False
    error: GatewayError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def upstream_message(status_code: int) -> str:
    """Human-readable message for a non-2xx endpoint status."""
    if status_code == 404:
        return "SPARQL endpoint not found"
    if status_code in (401, 403):
        return "SPARQL endpoint authentication failed"
    return "SPARQL endpoint request failed"


class SparqlGateway:
    """Execute catalogue queries against one endpoint with response caching.

    Parameters
    ----------
    endpoint:
        SPARQL endpoint URL.  ``None`` or blank leaves the gateway
        misconfigured: every execution fails without touching the network.
    cache:
        The :class:`ResponseCache` owned by the serving process.
    timeout:
        Seconds to wait for the endpoint before giving up.
    cache_ttl:
        Seconds a cached response is served without refetching.
    session:
        Optional ``requests.Session`` handed to the transport.
    """

    def __init__(
        self,
        endpoint: str | None,
        cache: ResponseCache,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        session: requests.Session | None = None,
    ) -> None:
        self.endpoint = (endpoint or "").strip() or None
        self.cache = cache
        self.timeout = timeout
        self.cache_ttl = cache_ttl

        self._helper: SparqlHelper | None = None
        if self.endpoint is not None:
            self._helper = SparqlHelper(
                self.endpoint, timeout=timeout, session=session,
            )

        self._lock = threading.Lock()
        self._inflight: dict[QueryId, Future] = {}

    @property
    def configured(self) -> bool:
        return self._helper is not None

    def execute(
        self, query_id: QueryId | str, force_refresh: bool = False,
    ) -> GatewayResult:
        """Run *query_id*, serving a fresh cached response when possible.

        Parameters
        ----------
        query_id:
            A :class:`QueryId` or its string value.
        force_refresh:
            Skip the cache lookup and always go to the endpoint.

        Returns
        -------
        GatewayResult
            ``data`` and ``timestamp`` on success, ``error`` otherwise.
        """
        qid = parse_query_id(query_id)
        if qid is None:
            return GatewayResult(
                query_id=str(query_id),
                error=GatewayError(
                    kind=ErrorKind.INVALID_QUERY,
                    message="Invalid query ID",
                ),
            )

        if self._helper is None:
            logger.error("SPARQL endpoint URL is not configured")
            return GatewayResult(
                query_id=qid.value,
                error=GatewayError(
                    kind=ErrorKind.MISCONFIGURED,
                    message="SPARQL endpoint not configured",
                ),
            )

        if not force_refresh:
            entry = self.cache.get(qid)
            if entry is not None:
                age = self.cache.now() - entry.timestamp
                if self.cache.is_fresh(entry, self.cache_ttl):
                    logger.debug(
                        "Using cached result for %s (age: %.1fs)",
                        qid.value, age,
                    )
                    return GatewayResult(
                        query_id=qid.value,
                        data=entry.data,
                        timestamp=entry.timestamp,
                        served_from_cache=True,
                    )
                logger.debug(
                    "Cache expired for %s (age: %.1fs)", qid.value, age,
                )

        return self._fetch_once(qid, force_refresh)

    def _fetch_once(self, qid: QueryId, force_refresh: bool) -> GatewayResult:
        """Fetch *qid*, joining an identical fetch already in flight.

        A forced refresh never joins: it always makes its own request.  It
        is registered for later callers to join only when no other fetch
        for *qid* is running.
        """
        with self._lock:
            current = self._inflight.get(qid)
            if current is not None and not force_refresh:
                future = current
                leader = False
            else:
                future = Future()
                leader = True
                if current is None:
                    self._inflight[qid] = future

        if not leader:
            logger.debug("Joining in-flight fetch for %s", qid.value)
            try:
                return future.result(timeout=self.timeout)
            except FuturesTimeout:
                return self._failure(
                    qid, ErrorKind.TIMEOUT,
                    "The SPARQL endpoint did not respond in time",
                    details=f"No shared result for {qid.value} within {self.timeout}s",
                )

        try:
            result = self._fetch(qid)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                if self._inflight.get(qid) is future:
                    del self._inflight[qid]

    def _fetch(self, qid: QueryId) -> GatewayResult:
        query = resolve_query(qid)
        logger.info("Executing SPARQL query: %s", qid.value)
        t0 = time.monotonic()

        try:
            body = self._helper.post_query(query)
        except EndpointTimeout as exc:
            return self._failure(
                qid, ErrorKind.TIMEOUT,
                "The SPARQL endpoint did not respond in time",
                details=str(exc),
            )
        except EndpointUnreachable as exc:
            return self._failure(
                qid, ErrorKind.UNREACHABLE,
                "Could not connect to the SPARQL endpoint",
                details=str(exc),
            )
        except EndpointHTTPError as exc:
            return self._failure(
                qid, ErrorKind.UPSTREAM_ERROR,
                upstream_message(exc.status_code),
                details=exc.body,
                status_code=exc.status_code,
            )
        except Exception as exc:
            logger.exception("Unexpected error querying %s", qid.value)
            return self._failure(
                qid, ErrorKind.UNREACHABLE,
                "Could not connect to the SPARQL endpoint",
                details=str(exc),
            )

        logger.debug(
            "Query %s completed in %dms",
            qid.value, int((time.monotonic() - t0) * 1000),
        )

        try:
            data = json.loads(body)
            SparqlResult.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            return self._failure(
                qid, ErrorKind.MALFORMED_RESPONSE,
                "Invalid SPARQL response from endpoint",
                details=str(exc),
            )

        entry = self.cache.put(qid, data)
        return GatewayResult(
            query_id=qid.value,
            data=entry.data,
            timestamp=entry.timestamp,
            served_from_cache=False,
        )

    def _failure(
        self,
        qid: QueryId,
        kind: ErrorKind,
        message: str,
        *,
        details: str | None = None,
        status_code: int | None = None,
    ) -> GatewayResult:
        logger.error(
            "SPARQL query %s failed (%s): %s", qid.value, kind.value, details,
        )
        return GatewayResult(
            query_id=qid.value,
            error=GatewayError(
                kind=kind,
                message=message,
                details=details,
                status_code=status_code,
            ),
        )

    def close(self) -> None:
        if self._helper is not None:
            self._helper.close()
