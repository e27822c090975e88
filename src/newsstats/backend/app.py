"""Flask application factory for the newsstats backend API."""

from __future__ import annotations

import logging

import requests
from flask import Flask, jsonify
from flask_cors import CORS

from newsstats.backend.config import Config
from newsstats.backend.utils.cache_headers import no_store
from newsstats.cache import ResponseCache
from newsstats.gateway import SparqlGateway
from newsstats.log import configure_logging

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Register consistent JSON error handlers."""

    @app.errorhandler(400)
    def bad_request(exc):
        return no_store(jsonify({"error": str(exc.description)})), 400

    @app.errorhandler(404)
    def not_found(exc):
        return no_store(jsonify({"error": "Resource not found"})), 404

    @app.errorhandler(405)
    def method_not_allowed(exc):
        return no_store(jsonify({"error": "Method not allowed"})), 405

    @app.errorhandler(Exception)
    def unhandled(exc):
        app.logger.exception("Unhandled exception")
        return no_store(jsonify({"error": "Internal server error"})), 500


def create_app(
    config_class: type[Config] = Config,
    *,
    cache: ResponseCache | None = None,
    session: requests.Session | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    config_class:
        Configuration class (default :class:`Config`).
    cache:
        Response cache to use; a fresh one is created otherwise.
    session:
        HTTP session for the SPARQL transport.

    Returns
    -------
    Flask
        Configured Flask application.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(production=config_class.is_production())

    # ── CORS ──────────────────────────────────────────────────────────
    CORS(app, resources={
        r"/api/*": {
            "origins": config_class.CORS_ORIGINS,
            "methods": ["GET", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        },
    })

    # ── SPARQL gateway ────────────────────────────────────────────────
    if not config_class.SPARQL_ENDPOINT:
        logger.error(
            "SPARQL_ENDPOINT is not set — statistics queries will fail",
        )
    gateway = SparqlGateway(
        config_class.SPARQL_ENDPOINT,
        cache if cache is not None else ResponseCache(),
        timeout=config_class.SPARQL_TIMEOUT,
        cache_ttl=config_class.CACHE_TTL,
        session=session,
    )
    app.config["GATEWAY"] = gateway

    # ── Blueprints ────────────────────────────────────────────────────
    from newsstats.backend.routes.sparql import sparql_bp
    from newsstats.backend.routes.statistics import statistics_bp

    app.register_blueprint(sparql_bp, url_prefix="/api/sparql")
    app.register_blueprint(statistics_bp, url_prefix="/api/statistics")

    # ── Error handlers ────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Health check ──────────────────────────────────────────────────
    @app.route("/api/health")
    def health():
        return jsonify({
            "status": "ok",
            "endpoint_configured": gateway.configured,
        })

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
