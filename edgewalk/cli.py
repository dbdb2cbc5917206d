"""CLI entry point for Edgewalk."""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from edgewalk.core.extract import DropReason, ExtractStats
from edgewalk.core.pipeline import collect_edges
from edgewalk.core.serialize import serialize, to_dot
from edgewalk.languages import JavaScriptEngine
from edgewalk.log import setup_logging

app = typer.Typer(
    name="edgewalk",
    help="Flatten a JavaScript call graph into caller -> callee source ranges.",
    add_completion=False,
    pretty_exceptions_enable=False,
)
logger = logging.getLogger(__name__)

USAGE = "Usage: edgewalk <entry_file>"


class OutputFormat(str, Enum):
    JSON = "json"
    DOT = "dot"


def log_drop(reason: DropReason, detail: str) -> None:
    """Report a dropped node, call site or target."""
    logger.debug("dropped (%s): %s", reason.value, detail)


@app.command()
def main(
    entry: Annotated[
        Path | None, typer.Argument(help="Entry script or HTML page of the program to analyze")
    ] = None,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.JSON,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log dropped call sites and targets")
    ] = False,
    timeout: Annotated[
        float | None, typer.Option("--timeout", "-t", help="Give up on analysis after SECONDS")
    ] = None,
) -> None:
    """Print every caller -> callee edge of ENTRY's call graph."""
    if entry is None:
        print(USAGE)
        raise typer.Exit(code=1)

    setup_logging(verbose)

    stats = ExtractStats()
    edges = collect_edges(
        entry,
        engine=JavaScriptEngine(timeout=timeout),
        on_drop=log_drop if verbose else None,
        stats=stats,
    )
    logger.info("%r", stats)

    if output_format is OutputFormat.DOT:
        print(to_dot(edges))
    else:
        print(serialize(edges))


if __name__ == "__main__":
    app()
