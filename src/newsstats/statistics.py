"""Turn raw statistics bindings into dashboard metrics.

Each query in the catalogue feeds one metric.  :func:`load_statistics`
runs all of them and summarises each independently, so one failing
query only marks its own metric as unavailable.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from newsstats.catalog import QueryId
from newsstats.gateway import SparqlGateway
from newsstats.models import DateRange, ListItem, MetricResult

logger = logging.getLogger(__name__)

TOP_PEOPLE_LIMIT = 20

COUNT_QUERIES = (
    QueryId.TOTAL_ARTICLES,
    QueryId.UNIQUE_AUTHORS,
    QueryId.UNIQUE_LOCATIONS,
    QueryId.TOTAL_PEOPLE,
)

# (label variable, count variable) for the top-N lists
LIST_QUERIES = {
    QueryId.TOP_AUTHORS: ("authorName", "article_count"),
    QueryId.TOP_LOCATIONS: ("locationName", "mention_count"),
}

_NAME_PART = re.compile(r"[A-Z][a-z]+")


def _bindings(data: dict[str, Any]) -> list[dict[str, Any]]:
    return data["results"]["bindings"]


def _value(binding: dict[str, Any], var: str) -> str | None:
    cell = binding.get(var)
    if not cell:
        return None
    return cell.get("value")


def name_parts(name: str) -> list[str]:
    """Capitalised words of *name*, e.g. ``"Mario Rossi"`` → ``["Mario", "Rossi"]``."""
    return _NAME_PART.findall(name)


def is_name_variation(short_name: str, full_name: str) -> bool:
    """True if the parts of *short_name* occur, in order, in *full_name*."""
    short_parts = name_parts(short_name)
    full_parts = name_parts(full_name)

    if len(short_parts) > len(full_parts):
        return False

    full_index = 0
    for part in short_parts:
        while full_index < len(full_parts) and full_parts[full_index] != part:
            full_index += 1
        if full_index >= len(full_parts):
            return False
        full_index += 1
    return True


def _canonical_sort_key(name: str) -> tuple[int, int]:
    # single-word names sort after multi-word ones, then shortest first
    return (1 if len(name_parts(name)) == 1 else 0, len(name))


def merge_name_variations(
    counts: dict[str, int], limit: int = TOP_PEOPLE_LIMIT,
) -> list[ListItem]:
    """Fold counts of name variations into one entry per person.

    ``"Mattarella"`` and ``"Sergio Mattarella"`` are merged; the label kept
    is the shortest multi-word variation.
    """
    processed: set[str] = set()
    aggregated: dict[str, int] = {}

    # stable on ties, longest names first
    names = sorted(counts, key=len, reverse=True)

    for name in names:
        if name in processed:
            continue

        total = counts[name]
        variations = [name]
        for other in names:
            if other == name or other in processed:
                continue
            if is_name_variation(other, name) or is_name_variation(name, other):
                total += counts[other]
                variations.append(other)
                processed.add(other)

        canonical = sorted(variations, key=_canonical_sort_key)[0]
        aggregated[canonical] = aggregated.get(canonical, 0) + total
        processed.add(name)

    items = [ListItem(label=label, value=value) for label, value in aggregated.items()]
    items.sort(key=lambda item: item.value, reverse=True)
    return items[:limit]


def summarize(query_id: QueryId, data: dict[str, Any]) -> Any:
    """Extract the metric value for *query_id* from a SPARQL result.

    Raises
    ------
    KeyError, ValueError
        If the bindings lack the variables the metric needs.
    """
    bindings = _bindings(data)

    if query_id is QueryId.DATE_RANGE:
        if not bindings:
            return None
        return DateRange(
            oldest_date=_value(bindings[0], "oldestDate"),
            most_recent_date=_value(bindings[0], "mostRecentDate"),
        ).model_dump(by_alias=True)

    if query_id in COUNT_QUERIES:
        raw = _value(bindings[0], "count") if bindings else None
        return int(raw) if raw else None

    if query_id in LIST_QUERIES:
        label_var, count_var = LIST_QUERIES[query_id]
        return [
            ListItem(
                label=b[label_var]["value"], value=int(b[count_var]["value"]),
            ).model_dump()
            for b in bindings
        ]

    if query_id is QueryId.TOP_PEOPLE:
        counts: dict[str, int] = {}
        for b in bindings:
            counts[b["personLabel"]["value"]] = int(b["mentions_count"]["value"])
        return [item.model_dump() for item in merge_name_variations(counts)]

    raise ValueError(f"No summary defined for {query_id.value}")


def load_metric(
    gateway: SparqlGateway, query_id: QueryId, force_refresh: bool = False,
) -> MetricResult:
    """Execute one query and summarise it, never raising."""
    result = gateway.execute(query_id, force_refresh=force_refresh)
    if not result.ok:
        return MetricResult(status="error", error=result.error.message)

    try:
        value = summarize(query_id, result.data)
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("Could not summarise %s: %s", query_id.value, exc)
        return MetricResult(
            status="error", error="Unexpected result structure",
        )

    return MetricResult(
        status="success",
        value=value,
        served_from_cache=result.served_from_cache,
    )


def load_statistics(
    gateway: SparqlGateway, force_refresh: bool = False,
) -> dict[str, MetricResult]:
    """Load every metric; failures are reported per metric."""
    return {
        qid.value: load_metric(gateway, qid, force_refresh=force_refresh)
        for qid in QueryId
    }
