"""Fixtures for backend tests."""

from __future__ import annotations

import pytest

from newsstats.backend.app import create_app
from newsstats.backend.config import TestConfig
from newsstats.cache import ResponseCache


@pytest.fixture()
def cache(clock):
    return ResponseCache(clock=clock)


@pytest.fixture()
def app(cache, session):
    """Create a test Flask application backed by a mocked session."""
    application = create_app(TestConfig, cache=cache, session=session)
    yield application


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def gateway(app):
    """Direct access to the SparqlGateway instance."""
    return app.config["GATEWAY"]
