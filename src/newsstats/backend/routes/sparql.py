"""Statistics query routes — /api/sparql/*."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from newsstats.backend.utils.cache_headers import annotate, no_store
from newsstats.catalog import list_queries
from newsstats.gateway import SparqlGateway

sparql_bp = Blueprint("sparql", __name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _get_gateway() -> SparqlGateway:
    return current_app.config["GATEWAY"]


def force_refresh_arg() -> bool:
    """Read the ``forceRefresh`` query-string flag."""
    return request.args.get("forceRefresh", "").strip().lower() in _TRUTHY


@sparql_bp.route("", methods=["GET"])
@sparql_bp.route("/", methods=["GET"])
def fetch_statistic():
    """Run one catalogue query and return the raw SPARQL JSON results."""
    gateway = _get_gateway()
    result = gateway.execute(
        request.args.get("queryId", ""),
        force_refresh=force_refresh_arg(),
    )

    if not result.ok:
        body = {"error": result.error.message}
        if result.error.details:
            body["details"] = result.error.details
        return no_store(jsonify(body)), result.error.http_status

    return annotate(
        jsonify(result.data),
        result.timestamp,
        max_age=gateway.cache_ttl,
        served_from_cache=result.served_from_cache,
        now=gateway.cache.now(),
    )


@sparql_bp.route("/queries", methods=["GET"])
def queries():
    """List the available query identifiers and their SPARQL text."""
    return jsonify([
        {"id": qid.value, "query": text} for qid, text in list_queries()
    ])
