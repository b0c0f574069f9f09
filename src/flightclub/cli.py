import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, TextIO

import pyarrow as pa
import pyarrow.flight as flight
import typer

from core.config import HEADERS_ENV, TOKEN_ENV, CLIConfig, parse_headers
from core.errors import FlightClubError
from core.timings import Timings
from flight_client.client import FlightSqlClient
from flight_client.executor import QueryExecutor
from flight_client.session import build_session, generate_trace_id, parse_url

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Run a SQL query against an Arrow Flight SQL endpoint.")

FATAL_ERRORS = (FlightClubError, flight.FlightError, pa.ArrowException, OSError)


def _fail(e: Exception) -> None:
    logger.debug("Query failed", exc_info=e)
    typer.echo(f"error: {e}", err=True)
    raise typer.Exit(code=1)


def run_query(config: CLIConfig, query: str, stdout: TextIO) -> Timings:
    credentials = parse_url(config.url)

    trace_id = None
    if config.gen_trace_id:
        trace_id = generate_trace_id()
        typer.echo(f"Trace ID set to {trace_id}")

    session = build_session(config, trace_id)
    with FlightSqlClient(credentials, session) as client:
        executor = QueryExecutor(client)
        if config.output is None:
            return executor.run(query, stdout, skip_warmup=config.skip_warmup)
        with open(config.output, "w", encoding="utf-8") as out:
            return executor.run(query, out, skip_warmup=config.skip_warmup)


@app.callback()
def main(
    ctx: typer.Context,
    url: str = typer.Option(..., help="Endpoint, http://host[:port] or https://host[:port]."),
    db: str = typer.Option(..., help="Database name."),
    token: str = typer.Option("", envvar=TOKEN_ENV, help="Bearer token."),
    header: Optional[List[str]] = typer.Option(
        None, "--header", "-H", help=f"Extra header key=value, repeatable (env {HEADERS_ENV}: k=v;k2=v2)."),
    gen_trace_id: bool = typer.Option(False, "--gen-trace-id", help="Generate a trace id and send it along."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        headers = parse_headers(header, os.environ.get(HEADERS_ENV))
    except FlightClubError as e:
        _fail(e)
    ctx.obj = CLIConfig(url=url, db=db, token=token, headers=headers, gen_trace_id=gen_trace_id)


@app.command()
def query(
    ctx: typer.Context,
    sql: str = typer.Argument(..., help="Query text."),
    skip_warmup: bool = typer.Option(False, "--skip-warmup", help="Skip warmup request."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, help="File where the table is written."),
):
    config: CLIConfig = ctx.obj
    config.skip_warmup = skip_warmup
    config.output = output

    try:
        timings = run_query(config, sql, sys.stdout)
    except FATAL_ERRORS as e:
        _fail(e)

    typer.echo()
    typer.echo(str(timings))


if __name__ == "__main__":
    app()
