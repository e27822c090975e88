"""Pydantic models for SPARQL JSON results and API payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BindingValue(BaseModel):
    """One variable binding in a SPARQL result row."""

    model_config = ConfigDict(extra="allow")

    value: str
    type: str | None = None  # "uri" | "literal" | "bnode"


class SparqlBindings(BaseModel):
    model_config = ConfigDict(extra="allow")

    bindings: list[dict[str, BindingValue]]


class SparqlResult(BaseModel):
    """The ``application/sparql-results+json`` document shape we rely on."""

    model_config = ConfigDict(extra="allow")

    results: SparqlBindings


class ListItem(BaseModel):
    """A labelled count shown in the top-N lists."""

    label: str
    value: int


class DateRange(BaseModel):
    oldest_date: str | None = Field(default=None, alias="oldestDate")
    most_recent_date: str | None = Field(default=None, alias="mostRecentDate")

    model_config = ConfigDict(populate_by_name=True)


class MetricResult(BaseModel):
    """Outcome of loading a single dashboard metric."""

    status: str  # "success" | "error"
    value: Any = None
    error: str | None = None
    served_from_cache: bool = False
