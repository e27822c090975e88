"""Outbound cache headers for statistics responses."""

from __future__ import annotations

import math
import time

from flask import Response


def annotate(
    response: Response,
    timestamp: float,
    *,
    max_age: float,
    served_from_cache: bool = True,
    now: float | None = None,
) -> Response:
    """Set ``Cache-Control``, ``Age`` and ``X-Cache`` from the entry timestamp."""
    if now is None:
        now = time.time()
    age = max(0, math.floor(now - timestamp))

    response.headers["Cache-Control"] = f"public, max-age={math.floor(max_age)}"
    response.headers["Age"] = str(age)
    response.headers["X-Cache"] = "HIT" if served_from_cache else "MISS"
    return response


def no_store(response: Response) -> Response:
    response.headers["Cache-Control"] = "no-store"
    return response
