"""Fixed catalogue of statistics queries run against the archive graph.

Every query is parameterless and identified by a :class:`QueryId`.  The
text is literal; nothing is composed at runtime.
"""

from __future__ import annotations

from enum import Enum


class QueryId(str, Enum):
    """Identifiers of the statistics queries."""

    DATE_RANGE = "dateRange"
    TOTAL_ARTICLES = "totalArticles"
    UNIQUE_AUTHORS = "uniqueAuthors"
    TOP_AUTHORS = "topAuthors"
    UNIQUE_LOCATIONS = "uniqueLocations"
    TOP_LOCATIONS = "topLocations"
    TOTAL_PEOPLE = "totalPeople"
    TOP_PEOPLE = "topPeople"


_PREFIXES = """\
PREFIX schema: <http://schema.org/>
PREFIX rdfs: <http://www.w3.org/2000/01/rdf-schema#>
PREFIX xsd: <http://www.w3.org/2001/XMLSchema#>
"""

QUERY_CATALOG: dict[QueryId, str] = {
    QueryId.DATE_RANGE: _PREFIXES + """
SELECT (MIN(?date) AS ?oldestDate) (MAX(?date) AS ?mostRecentDate)
WHERE {
  ?article a schema:NewsArticle ;
           schema:datePublished ?date .
}
""",
    QueryId.TOTAL_ARTICLES: _PREFIXES + """
SELECT (COUNT(DISTINCT ?article) AS ?count)
WHERE {
  ?article a schema:NewsArticle .
}
""",
    QueryId.UNIQUE_AUTHORS: _PREFIXES + """
SELECT (COUNT(DISTINCT ?author) AS ?count)
WHERE {
  ?article a schema:NewsArticle ;
           schema:author ?author .
}
""",
    QueryId.TOP_AUTHORS: _PREFIXES + """
SELECT ?authorName (COUNT(DISTINCT ?article) AS ?article_count)
WHERE {
  ?article a schema:NewsArticle ;
           schema:author ?author .
  ?author schema:name ?authorName .
}
GROUP BY ?authorName
ORDER BY DESC(?article_count)
LIMIT 10
""",
    QueryId.UNIQUE_LOCATIONS: _PREFIXES + """
SELECT (COUNT(DISTINCT ?location) AS ?count)
WHERE {
  ?article a schema:NewsArticle ;
           schema:mentions ?location .
  ?location a schema:Place .
}
""",
    QueryId.TOP_LOCATIONS: _PREFIXES + """
SELECT ?locationName (COUNT(?article) AS ?mention_count)
WHERE {
  ?article a schema:NewsArticle ;
           schema:mentions ?location .
  ?location a schema:Place ;
            rdfs:label ?locationName .
}
GROUP BY ?locationName
ORDER BY DESC(?mention_count)
LIMIT 10
""",
    QueryId.TOTAL_PEOPLE: _PREFIXES + """
SELECT (COUNT(DISTINCT ?person) AS ?count)
WHERE {
  ?article a schema:NewsArticle ;
           schema:mentions ?person .
  ?person a schema:Person .
}
""",
    QueryId.TOP_PEOPLE: _PREFIXES + """
SELECT ?personLabel (COUNT(?article) AS ?mentions_count)
WHERE {
  ?article a schema:NewsArticle ;
           schema:mentions ?person .
  ?person a schema:Person ;
          rdfs:label ?personLabel .
}
GROUP BY ?personLabel
ORDER BY DESC(?mentions_count)
LIMIT 50
""",
}


def parse_query_id(raw: str | None) -> QueryId | None:
    """Return the :class:`QueryId` for *raw*, or ``None`` if unknown."""
    if raw is None:
        return None
    try:
        return QueryId(raw)
    except ValueError:
        return None


def resolve_query(query_id: QueryId) -> str:
    """Return the SPARQL text for *query_id*.

    Callers validate membership first (see :func:`parse_query_id`).
    """
    return QUERY_CATALOG[query_id]


def list_queries() -> list[tuple[QueryId, str]]:
    """All ``(query_id, text)`` pairs in declaration order."""
    return [(qid, QUERY_CATALOG[qid]) for qid in QueryId]
