"""Flask HTTP API for the archive statistics."""

from newsstats.backend.app import create_app

__all__ = ["create_app"]
