"""
Root Typer application for the cronguard CLI.

    cronguard validate "*/5 * * * *"
    cronguard next "0 8 * * 1-5" --count 3 --timezone Europe/Berlin
"""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from cronguard.core.errors import ScheduleError
from cronguard.core.scheduling.cron import upcoming, validate
from cronguard.core.timestamps import to_iso8601

app = typer.Typer(
    name="cronguard",
    help="cronguard: protected cron task execution.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("cronguard")
        except PackageNotFoundError:
            from cronguard import __version__ as v
        typer.echo(f"cronguard {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """cronguard CLI. Validate expressions and preview firing times."""


@app.command("validate")
def validate_expression(
    expression: str = typer.Argument(..., help="Cron expression"),
) -> None:
    """Check a cron expression. Exits 1 if it is invalid."""
    if validate(expression):
        console.print(f"[green]valid[/green]  {expression}")
        return
    err_console.print(f"[red]invalid[/red]  {expression}")
    raise typer.Exit(code=1)


@app.command("next")
def next_runs(
    expression: str = typer.Argument(..., help="Cron expression"),
    count: int = typer.Option(5, "--count", "-n", min=1, help="How many firing times"),
    timezone: str = typer.Option("UTC", "--timezone", "-z", help="IANA timezone"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the next firing times of a cron expression (UTC)."""
    try:
        times = upcoming(expression, count, timezone=timezone)
    except ScheduleError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1) from None

    if json_out:
        typer.echo(json.dumps({
            "expression": expression,
            "timezone": timezone,
            "next_runs": [to_iso8601(t) for t in times],
        }, indent=2))
        return

    table = Table(title=f"Next runs: {expression} ({timezone})")
    table.add_column("#", justify="right")
    table.add_column("UTC")
    for i, t in enumerate(times, 1):
        table.add_row(str(i), to_iso8601(t))
    console.print(table)
