"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os


class Config:
    """Default configuration for the Flask backend."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-key-change-in-prod")
    DEBUG = os.getenv("FLASK_DEBUG", "0") == "1"

    # "production" silences info/debug logging
    APP_ENV = os.getenv("APP_ENV", "development")

    # CORS — origins allowed to call this API
    CORS_ORIGINS = os.getenv(
        "CORS_ORIGINS", "http://localhost:*",
    ).split(",")

    # Archive SPARQL endpoint; queries fail as misconfigured when unset
    SPARQL_ENDPOINT = os.getenv("SPARQL_ENDPOINT", "")

    # Seconds to wait for the endpoint
    SPARQL_TIMEOUT = float(os.getenv("SPARQL_TIMEOUT", "30"))

    # Cache TTL in seconds (default: 24 hours)
    CACHE_TTL = int(os.getenv("CACHE_TTL", str(24 * 60 * 60)))

    @classmethod
    def is_production(cls) -> bool:
        return cls.APP_ENV.lower() == "production"


class TestConfig(Config):
    """Configuration overrides for testing."""

    TESTING = True
    APP_ENV = "test"
    SPARQL_ENDPOINT = "http://example.org/sparql"
    SPARQL_TIMEOUT = 5.0
    CACHE_TTL = 60
