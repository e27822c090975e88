"""Command line interface for :mod:`newsstats`."""

import json
import sys

import click

from .cache import ResponseCache
from .catalog import QueryId, list_queries, resolve_query
from .gateway import DEFAULT_CACHE_TTL, DEFAULT_TIMEOUT, SparqlGateway
from .log import configure_logging
from .statistics import load_statistics

__all__ = [
    "main",
]


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--endpoint",
    envvar="SPARQL_ENDPOINT",
    default="",
    help="SPARQL endpoint URL (default: $SPARQL_ENDPOINT)",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Request timeout in seconds",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, endpoint: str, timeout: float) -> None:
    """newsstats - statistics for the news archive knowledge graph."""
    ctx.ensure_object(dict)
    ctx.obj["endpoint"] = endpoint
    ctx.obj["timeout"] = timeout

    configure_logging(production=not verbose, force=True)


def _gateway(ctx: click.Context) -> SparqlGateway:
    return SparqlGateway(
        ctx.obj["endpoint"],
        ResponseCache(),
        timeout=ctx.obj["timeout"],
        cache_ttl=DEFAULT_CACHE_TTL,
    )


@main.command()
def queries() -> None:
    """List the available query identifiers."""
    for qid, _text in list_queries():
        click.echo(qid.value)


@main.command()
@click.argument("query_id", type=click.Choice([q.value for q in QueryId]))
@click.option(
    "--force-refresh", is_flag=True, help="Bypass the response cache",
)
@click.option("--show-query", is_flag=True, help="Print the SPARQL text first")
@click.pass_context
def query(
    ctx: click.Context, query_id: str, force_refresh: bool, show_query: bool,
) -> None:
    """Run one statistics query and print the SPARQL JSON results."""
    if show_query:
        click.echo(resolve_query(QueryId(query_id)))

    gateway = _gateway(ctx)
    try:
        result = gateway.execute(query_id, force_refresh=force_refresh)
    finally:
        gateway.close()

    if not result.ok:
        click.echo(f"Error: {result.error.message}", err=True)
        if result.error.details:
            click.echo(result.error.details, err=True)
        sys.exit(1)

    click.echo(json.dumps(result.data, indent=2))


@main.command()
@click.option(
    "--force-refresh", is_flag=True, help="Bypass the response cache",
)
@click.pass_context
def stats(ctx: click.Context, force_refresh: bool) -> None:
    """Load every dashboard metric and print the summary as JSON."""
    gateway = _gateway(ctx)
    try:
        metrics = load_statistics(gateway, force_refresh=force_refresh)
    finally:
        gateway.close()

    click.echo(json.dumps(
        {name: m.model_dump(exclude_none=True) for name, m in metrics.items()},
        indent=2,
    ))
    if any(m.status == "error" for m in metrics.values()):
        sys.exit(1)


@main.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=5000, type=int, show_default=True)
@click.option("--debug", is_flag=True, help="Run Flask in debug mode")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, debug: bool) -> None:
    """Serve the statistics API."""
    from .backend.app import create_app
    from .backend.config import Config

    endpoint = ctx.obj["endpoint"] or Config.SPARQL_ENDPOINT

    class ServeConfig(Config):
        SPARQL_ENDPOINT = endpoint
        SPARQL_TIMEOUT = ctx.obj["timeout"]

    app = create_app(ServeConfig)
    click.echo(f"Server will be available at: http://localhost:{port}")
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
