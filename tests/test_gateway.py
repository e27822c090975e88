"""Tests for SparqlGateway: caching, error classification, single-flight."""

from __future__ import annotations

import json
import threading
import time

import pytest
import requests

from newsstats.cache import ResponseCache
from newsstats.catalog import QueryId, resolve_query
from newsstats.gateway import ErrorKind, SparqlGateway
from newsstats.sparql_helper import MimeTypes

ENDPOINT = "http://example.org/sparql"


@pytest.fixture()
def cache(clock):
    return ResponseCache(clock=clock)


@pytest.fixture()
def gateway(cache, session):
    return SparqlGateway(
        ENDPOINT, cache, timeout=5, cache_ttl=60, session=session,
    )


def test_success_then_cache_hit(gateway, cache, session, clock):
    first = gateway.execute("totalArticles")
    assert first.ok
    assert first.served_from_cache is False
    assert first.data["results"]["bindings"][0]["count"]["value"] == "42"
    assert first.timestamp == clock.now
    assert cache.get(QueryId.TOTAL_ARTICLES).data == first.data

    clock.advance(30)
    second = gateway.execute("totalArticles")
    assert second.ok
    assert second.served_from_cache is True
    assert second.data == first.data
    assert second.timestamp == first.timestamp
    assert session.post.call_count == 1


def test_request_shape(gateway, session):
    gateway.execute(QueryId.TOP_AUTHORS)

    args, kwargs = session.post.call_args
    assert args[0] == ENDPOINT
    assert kwargs["data"] == resolve_query(QueryId.TOP_AUTHORS).encode("utf-8")
    assert kwargs["headers"]["Accept"] == MimeTypes.JSON
    assert kwargs["headers"]["Content-Type"] == MimeTypes.QUERY
    assert kwargs["timeout"] == 5
    assert kwargs["stream"] is True


def test_stale_entry_is_refetched(gateway, session, clock):
    gateway.execute("totalArticles")
    clock.advance(60)

    result = gateway.execute("totalArticles")
    assert result.served_from_cache is False
    assert session.post.call_count == 2


def test_force_refresh_always_fetches(gateway, session):
    gateway.execute("totalArticles")
    result = gateway.execute("totalArticles", force_refresh=True)

    assert result.ok
    assert result.served_from_cache is False
    assert session.post.call_count == 2


def test_invalid_query_id(gateway, session):
    result = gateway.execute("bogus")

    assert not result.ok
    assert result.error.kind is ErrorKind.INVALID_QUERY
    assert result.error.message == "Invalid query ID"
    assert result.error.http_status == 400
    session.post.assert_not_called()


@pytest.mark.parametrize("endpoint", [None, "", "   "])
def test_misconfigured(endpoint, cache, session):
    gateway = SparqlGateway(endpoint, cache, session=session)
    assert not gateway.configured

    for qid in QueryId:
        result = gateway.execute(qid)
        assert result.error.kind is ErrorKind.MISCONFIGURED
        assert result.error.http_status == 500
    session.post.assert_not_called()


def test_timeout_leaves_cache_untouched(gateway, cache, session):
    session.post.side_effect = requests.exceptions.ReadTimeout("slow")

    result = gateway.execute("totalArticles")

    assert result.error.kind is ErrorKind.TIMEOUT
    assert result.error.http_status == 500
    assert cache.get(QueryId.TOTAL_ARTICLES) is None


def test_connection_error_is_unreachable(gateway, session):
    session.post.side_effect = requests.exceptions.ConnectionError("refused")

    result = gateway.execute("uniqueAuthors")

    assert result.error.kind is ErrorKind.UNREACHABLE
    assert "refused" in result.error.details


@pytest.mark.parametrize(
    "status, message",
    [
        (404, "SPARQL endpoint not found"),
        (401, "SPARQL endpoint authentication failed"),
        (403, "SPARQL endpoint authentication failed"),
        (503, "SPARQL endpoint request failed"),
    ],
)
def test_upstream_errors(status, message, gateway, cache, session, make_response):
    session.post.return_value = make_response(
        status_code=status, body="upstream says no", reason="Nope",
    )

    result = gateway.execute("topPeople")

    assert result.error.kind is ErrorKind.UPSTREAM_ERROR
    assert result.error.message == message
    assert result.error.details == "upstream says no"
    assert result.error.status_code == status
    assert result.error.http_status == status
    assert cache.get(QueryId.TOP_PEOPLE) is None


@pytest.mark.parametrize(
    "body",
    ["<html>oops</html>", "", json.dumps({"head": {}}), json.dumps([1, 2])],
)
def test_malformed_response(body, gateway, cache, session, make_response):
    session.post.return_value = make_response(body=body)

    result = gateway.execute("dateRange")

    assert result.error.kind is ErrorKind.MALFORMED_RESPONSE
    assert cache.get(QueryId.DATE_RANGE) is None


def test_failed_refresh_keeps_previous_entry(gateway, cache, session, clock):
    gateway.execute("totalArticles")
    entry = cache.get(QueryId.TOTAL_ARTICLES)

    session.post.side_effect = requests.exceptions.ReadTimeout("slow")
    clock.advance(5)
    result = gateway.execute("totalArticles", force_refresh=True)

    assert result.error.kind is ErrorKind.TIMEOUT
    assert cache.get(QueryId.TOTAL_ARTICLES) is entry


def test_concurrent_cold_requests_share_one_fetch(gateway, session, make_response):
    started = threading.Event()
    release = threading.Event()

    def slow_post(*args, **kwargs):
        started.set()
        release.wait(5)
        return make_response()

    session.post.side_effect = slow_post
    results = []

    leader = threading.Thread(
        target=lambda: results.append(gateway.execute("totalArticles")),
    )
    leader.start()
    assert started.wait(5)

    follower = threading.Thread(
        target=lambda: results.append(gateway.execute("totalArticles")),
    )
    follower.start()
    release.set()
    leader.join(5)
    follower.join(5)

    assert len(results) == 2
    assert all(r.ok for r in results)
    assert results[0].data == results[1].data
    assert session.post.call_count == 1


@pytest.mark.parametrize("status", [300, 301, 304])
def test_non_2xx_success_range_is_not_cached(status, gateway, cache, session, make_response):
    # a valid SPARQL body does not make a redirect status a success
    session.post.return_value = make_response(status_code=status, reason="Redirect")

    result = gateway.execute("totalArticles")

    assert result.error.kind is ErrorKind.UPSTREAM_ERROR
    assert result.error.status_code == status
    assert result.error.http_status == 500
    assert cache.get(QueryId.TOTAL_ARTICLES) is None


def test_utf8_labels_are_decoded_from_bytes(gateway, session, make_response):
    body = {
        "results": {
            "bindings": [
                {
                    "locationName": {"value": "Località Forlì", "type": "literal"},
                    "mention_count": {"value": "3", "type": "literal"},
                },
            ],
        },
    }
    session.post.return_value = make_response(
        body=json.dumps(body, ensure_ascii=False).encode("utf-8"),
    )

    result = gateway.execute("topLocations")

    binding = result.data["results"]["bindings"][0]
    assert binding["locationName"]["value"] == "Località Forlì"


def test_forced_refresh_does_not_join_running_fetch(gateway, session, make_response):
    started = threading.Event()
    release = threading.Event()
    calls = []

    def post(*args, **kwargs):
        calls.append(1)
        if len(calls) == 1:
            started.set()
            release.wait(5)
        return make_response()

    session.post.side_effect = post
    results = []

    cold = threading.Thread(
        target=lambda: results.append(gateway.execute("totalArticles")),
    )
    cold.start()
    assert started.wait(5)

    forced = gateway.execute("totalArticles", force_refresh=True)
    release.set()
    cold.join(5)

    assert forced.ok
    assert forced.served_from_cache is False
    assert results[0].ok
    assert session.post.call_count == 2


def test_joining_callers_are_bounded_by_timeout(cache, session, make_response):
    gateway = SparqlGateway(
        ENDPOINT, cache, timeout=0.5, cache_ttl=60, session=session,
    )
    started = threading.Event()
    release = threading.Event()

    def stuck_post(*args, **kwargs):
        started.set()
        release.wait(5)
        return make_response()

    session.post.side_effect = stuck_post
    results = []

    leader = threading.Thread(
        target=lambda: results.append(gateway.execute("totalArticles")),
    )
    leader.start()
    assert started.wait(5)

    t0 = time.monotonic()
    follower = gateway.execute("totalArticles")
    elapsed = time.monotonic() - t0
    leader.join(5)
    release.set()

    assert follower.error.kind is ErrorKind.TIMEOUT
    assert elapsed < 2
    assert results[0].error.kind is ErrorKind.TIMEOUT
    assert cache.get(QueryId.TOTAL_ARTICLES) is None
    gateway.close()
