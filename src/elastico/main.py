import logging
import sys
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from elastico.config import get_settings
from elastico.core.models import MAX_RESULTS, SearchOptions, SortMode
from elastico.core.orchestrator import QueryOrchestrator
from elastico.exceptions import EXIT_USER_ERROR, BackendQueryFailure, ElasticoError
from elastico.render import render

logger = logging.getLogger(__name__)

APP_HELP = """
elastico: search and display loglines from Elasticsearch.

The QUERY uses the Lucene Query Syntax, almost identical to the one accepted
by Kibana. It is matched against the field holding the raw log line (default
'src') of the configured index (default 'lclslogs').

TIME WINDOWS (-t):

\b
  2d, 5h, 10m                       the last 2 days, 5 hours, 10 minutes
  2018-dec-06-10:30__+2d            two days starting at 2018-dec-06 10:30
  2018-dec-06-10:30__2018-dec-08    until the end of 2018-dec-08
  dec-06__15-dec                    current year, both days included
  10:30__-1h                        today, from 9:30 to 10:30

A time window sets the number of lines by itself, it can not be combined
with -l. At most 10_000 lines can be fetched.

EXAMPLES:

\b
  elastico psana101                               generic search over a word
  elastico 'psana*'                               quote wildcards for the shell
  elastico 'nmingott AND machine:(*metric* OR *ana*)'
  elastico -l 200 'machine:psmetric01'            the last 200 lines
  elastico -S 'ana*'                              sort by relevance, not time
  elastico -l 20 -h 'wilko'                       highlight the matches
  elastico -t 2h 'monit'                          everything in the last 2 hours

EXIT STATUS: 1 for input errors, 3 for unparsable dates, 4 for backend errors.
"""

app = typer.Typer(name="elastico", add_completion=False)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.command(help=APP_HELP, no_args_is_help=True)
def search(
    query: str = typer.Argument(..., help="Lucene query string, e.g. 'nmingott AND machine:*metric*'"),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", min=1, max=MAX_RESULTS,
        help="Maximum number of lines to retrieve (default 20)."
    ),
    time_expression: Optional[str] = typer.Option(
        None, "--time", "-t", help="Time window, e.g. '2d' or 'dec-06__15-dec'."
    ),
    sort: bool = typer.Option(
        True, "--sort/--no-sort", "-s/-S", help="Sort by date (-s) or by relevance (-S)."
    ),
    highlight: bool = typer.Option(
        False, "--highlight/--no-highlight", "-h/-H", help="Bold the matched words."
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Log the queries sent to Elasticsearch."),
    url: Optional[str] = typer.Option(None, "--url", help="Elasticsearch URL (overrides ELASTICO_URL)."),
    index: Optional[str] = typer.Option(None, "--index", help="Index to search (overrides ELASTICO_INDEX)."),
):
    _configure_logging(debug)
    err_console = Console(stderr=True)

    try:
        settings = get_settings()
        overrides = {k: v for k, v in (("url", url), ("index", index)) if v}
        if overrides:
            settings = settings.model_copy(update=overrides)

        options = SearchOptions(
            query=query,
            limit=limit,
            time_expression=time_expression,
            sort=SortMode.TIME_DESC if sort else SortMode.RELEVANCE,
            highlight=highlight,
        )
    except ValidationError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(code=EXIT_USER_ERROR)

    logger.debug(f"Options: {options.model_dump()}")

    try:
        result = QueryOrchestrator.from_settings(settings).run(options)
    except ElasticoError as e:
        err_console.print(f"[red]Error: {escape(e.message)}[/red]", soft_wrap=True)
        if isinstance(e, BackendQueryFailure) and e.raw_response:
            err_console.print(f"[dim]{escape(e.raw_response[:2000])}[/dim]", soft_wrap=True)
        raise typer.Exit(code=e.exit_code)

    render(result, Console())


if __name__ == "__main__":
    app()
