"""newsstats: statistics for a news archive knowledge graph.

Main modules:
- catalog: the fixed set of statistics queries
- cache: in-memory response cache
- gateway: cached, time-boxed query execution with classified errors
- statistics: dashboard metrics built from query results
- backend: Flask HTTP API
"""

from .cache import CacheEntry, ResponseCache
from .catalog import QueryId, resolve_query
from .gateway import ErrorKind, GatewayError, GatewayResult, SparqlGateway

# Import version information
from .version import VERSION

__all__ = [
    "VERSION",
    "CacheEntry",
    "ErrorKind",
    "GatewayError",
    "GatewayResult",
    "QueryId",
    "ResponseCache",
    "SparqlGateway",
    "resolve_query",
]
