"""Dashboard statistics route — /api/statistics."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from newsstats.backend.routes.sparql import force_refresh_arg
from newsstats.backend.utils.cache_headers import no_store
from newsstats.statistics import load_statistics

statistics_bp = Blueprint("statistics", __name__)


@statistics_bp.route("", methods=["GET"])
@statistics_bp.route("/", methods=["GET"])
def get_statistics():
    """Load every dashboard metric; each one succeeds or fails on its own."""
    metrics = load_statistics(
        current_app.config["GATEWAY"], force_refresh=force_refresh_arg(),
    )
    return no_store(jsonify({
        "metrics": {
            name: metric.model_dump(exclude_none=True)
            for name, metric in metrics.items()
        },
    }))
